"""Detection of custom rates typed in the wrong quotation convention.

A custom fiat rate is expected as "1 unit = X USD". When the typed number is
within the tolerance band of the catalog rate of the same type (which is stored
as units per USD) the user almost certainly typed the system convention, so the
value is replaced by its reciprocal.

This is a heuristic. A reference rate that moved more than the tolerance makes
an inverted entry slip through, and a deliberate manual rate close to the raw
catalog value gets flipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from currency_engine.config import get_inversion_tolerance
from currency_engine.currencies import CurrencyCode
from currency_engine.money import ONE, coerce_rate
from currency_engine.rate_catalog import RateCatalog, RateType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardResult:
    value: Decimal
    corrected: bool = False


def looks_inverted(
    custom_rate: Decimal,
    catalog_rate: Decimal,
    tolerance: Decimal,
) -> bool:
    ratio = custom_rate / catalog_rate
    return ONE - tolerance <= ratio <= ONE + tolerance


def correct_inverted_rate(
    custom_rate: Decimal | int | float | str,
    currency: str,
    catalog_rate: Decimal | int | float | str | None,
    tolerance: Decimal | None = None,
) -> GuardResult:
    value = coerce_rate(custom_rate)
    if value is None:
        raise ValueError("Custom rate must be a positive number.")
    reference = coerce_rate(catalog_rate)
    code = CurrencyCode.coerce(currency)
    if reference is None or code.is_crypto or code.is_usd:
        return GuardResult(value)

    band = get_inversion_tolerance() if tolerance is None else Decimal(tolerance)
    if not looks_inverted(value, reference, band):
        return GuardResult(value)

    corrected = ONE / value
    logger.info(
        "Custom %s rate %s matches catalog rate %s; storing reciprocal %s",
        code.code,
        value,
        reference,
        corrected,
    )
    return GuardResult(corrected, corrected=True)


class InversionGuard:
    """Runs the inversion check once per distinct (value, rate type) pair."""

    def __init__(self, tolerance: Decimal | None = None) -> None:
        self.tolerance = get_inversion_tolerance() if tolerance is None else Decimal(tolerance)
        self._checked: Optional[tuple[Decimal, Optional[RateType]]] = None
        self._last_result: Optional[GuardResult] = None

    def check(
        self,
        value: Decimal | int | float | str,
        declared_type: Optional[RateType],
        catalog: RateCatalog,
    ) -> GuardResult:
        rate = coerce_rate(value)
        if rate is None:
            raise ValueError("Custom rate must be a positive number.")

        pair = (rate, declared_type)
        if self._last_result is not None and self._checked is not None:
            if pair == self._checked:
                return self._last_result
            # The value we produced last time coming back is not a new entry.
            if self._last_result.corrected and pair == (self._last_result.value, self._checked[1]):
                return GuardResult(rate)

        reference = None
        if declared_type is not None:
            matching = catalog.rate_for(declared_type)
            reference = matching.rate if matching else None

        result = correct_inverted_rate(rate, catalog.currency, reference, self.tolerance)
        self._checked = pair
        self._last_result = result
        return result

    def reset(self) -> None:
        self._checked = None
        self._last_result = None
