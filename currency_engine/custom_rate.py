from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from currency_engine.converter import DisplayMode, get_display_rate
from currency_engine.currencies import CurrencyCode
from currency_engine.inversion_guard import InversionGuard
from currency_engine.money import ZERO
from currency_engine.rate_catalog import RateCatalog, RateType

logger = logging.getLogger(__name__)


class InvalidCustomInput(ValueError):
    """Raised when a typed custom rate is not a positive number."""


def parse_custom_rate(raw: str | Decimal | int | float) -> Decimal:
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip().replace(",", "")
        try:
            value = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidCustomInput(f"Not a number: {raw!r}") from exc
    if not value.is_finite() or value <= ZERO:
        raise InvalidCustomInput(f"Custom rate must be positive: {raw!r}")
    return value


class CustomRateField:
    """Holds the last valid custom rate typed by the user.

    Invalid input is ignored and the previous value kept; blank input clears it.
    """

    def __init__(self, initial: Optional[Decimal] = None) -> None:
        self.value: Optional[Decimal] = None
        if initial is not None:
            self.value = parse_custom_rate(initial)

    def update(self, raw: str | Decimal | int | float | None) -> Optional[Decimal]:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            self.value = None
            return self.value
        try:
            self.value = parse_custom_rate(raw)
        except InvalidCustomInput:
            logger.debug("Ignoring invalid custom rate input %r", raw)
        return self.value


def custom_system_rate(
    value: Decimal,
    currency: str,
    mode: DisplayMode | str = DisplayMode.USD_TO_FOREIGN,
    declared_type: Optional[RateType] = None,
    catalog: Optional[RateCatalog] = None,
    guard: Optional[InversionGuard] = None,
) -> Decimal:
    """Turn a custom rate typed in ``mode`` into the stored convention.

    Values typed as "1 unit = X USD" for a fiat currency go through the
    inversion guard before being flipped into units per USD.
    """
    code = CurrencyCode.parse(currency)
    typed = parse_custom_rate(value)
    if code.is_crypto or DisplayMode(mode) is DisplayMode.USD_TO_FOREIGN:
        return typed

    if catalog is not None:
        guard = guard or InversionGuard()
        typed = guard.check(typed, declared_type, catalog).value
    return get_display_rate(typed, code, DisplayMode.FOREIGN_TO_USD)
