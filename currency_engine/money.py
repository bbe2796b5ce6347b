from __future__ import annotations

import re
from dataclasses import dataclass, replace
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from currency_engine.currencies import CurrencyCode

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")

CUSTOM_TAG = "custom"

_RATE_TAG_PATTERN = re.compile(r"^[a-z0-9_-]{1,32}$")


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", coerce_amount(self.amount))
        object.__setattr__(self, "currency", CurrencyCode.parse(self.currency).code)


@dataclass(frozen=True)
class MoneyRecord:
    """Shape shared by normalized expenses, budgets, assets and recurring templates.

    ``amount_in_usd`` is the snapshot taken with the rate that was effective when
    the record was created or last edited.
    """

    amount: Decimal
    currency: str
    recorded_rate: Optional[Decimal] = None
    recorded_rate_type: Optional[str] = None
    amount_in_usd: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", coerce_amount(self.amount))
        object.__setattr__(self, "currency", CurrencyCode.parse(self.currency).code)
        object.__setattr__(self, "recorded_rate", coerce_rate(self.recorded_rate))
        if self.amount_in_usd is not None:
            object.__setattr__(self, "amount_in_usd", coerce_amount(self.amount_in_usd))
        if self.recorded_rate_type is not None:
            object.__setattr__(self, "recorded_rate_type", normalize_rate_tag(self.recorded_rate_type))

    @property
    def money(self) -> Money:
        return Money(self.amount, self.currency)

    @property
    def has_snapshot(self) -> bool:
        return self.amount_in_usd is not None

    def with_snapshot(self, rate: Decimal | None, rate_type: str | None, amount_in_usd: Decimal) -> "MoneyRecord":
        return replace(
            self,
            recorded_rate=rate,
            recorded_rate_type=rate_type,
            amount_in_usd=amount_in_usd,
        )


def round_cents(value: Decimal) -> Decimal:
    if not value.is_finite():
        return value
    # Enough digits for the integer part plus cents, however large the value.
    context = Context(prec=max(28, value.adjusted() + 3))
    return value.quantize(CENT, rounding=ROUND_HALF_UP, context=context)


def normalize_rate_tag(tag: str) -> str:
    """Lowercased rate type tag; `custom` is accepted here."""
    normalized = tag.strip().lower()
    if not _RATE_TAG_PATTERN.match(normalized):
        raise ValueError(f"Invalid rate type: {tag!r}")
    return normalized


def coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def coerce_rate(rate: Decimal | int | float | str | None) -> Decimal | None:
    """Return a usable positive rate, or None when no rate is available."""
    if rate is None:
        return None
    try:
        value = rate if isinstance(rate, Decimal) else Decimal(str(rate).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= ZERO:
        return None
    return value
