"""Direction-aware conversion between any currency and the USD pivot.

Stored rates follow two opposite conventions:

* fiat: units of the currency per 1 USD (ARS 1415 means 1415 ARS = 1 USD)
* crypto: USD per 1 unit of the currency (BTC 50000 means 1 BTC = 50000 USD)

Every function here picks the operation from the currency's quotation
convention, never from which side of the conversion the currency sits on.
All functions are total: a missing or non-positive rate yields ``0``.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from currency_engine.currencies import CurrencyCode, QuotationConvention
from currency_engine.money import ONE, ZERO, coerce_amount, coerce_rate, round_cents

AmountLike = Decimal | int | float | str
RateLike = Decimal | int | float | str | None


class DisplayMode(str, Enum):
    USD_TO_FOREIGN = "usd-to-foreign"
    FOREIGN_TO_USD = "foreign-to-usd"


def to_usd(amount: AmountLike, currency: str | CurrencyCode, rate: RateLike) -> Decimal:
    value = coerce_amount(amount)
    if value == ZERO:
        return ZERO
    code = CurrencyCode.coerce(currency)
    if code.is_usd:
        return value
    usable_rate = coerce_rate(rate)
    if usable_rate is None:
        return ZERO

    if code.quotation_convention() is QuotationConvention.USD_PER_UNIT:
        usd_value = value * usable_rate
    else:
        usd_value = value / usable_rate
    return round_cents(usd_value)


def from_usd(usd_amount: AmountLike, target_currency: str | CurrencyCode, rate: RateLike) -> Decimal:
    value = coerce_amount(usd_amount)
    if value == ZERO:
        return ZERO
    code = CurrencyCode.coerce(target_currency)
    if code.is_usd:
        return value
    usable_rate = coerce_rate(rate)
    if usable_rate is None:
        return ZERO

    if code.quotation_convention() is QuotationConvention.USD_PER_UNIT:
        target_value = value / usable_rate
    else:
        target_value = value * usable_rate
    return round_cents(target_value)


def convert(
    amount: AmountLike,
    source_currency: str | CurrencyCode,
    source_rate: RateLike,
    target_currency: str | CurrencyCode,
    target_rate: RateLike,
) -> Decimal:
    source = CurrencyCode.coerce(source_currency)
    target = CurrencyCode.coerce(target_currency)
    value = coerce_amount(amount)
    if source == target:
        return value

    # USD is always the pivot; no direct cross rate between two non-USD currencies.
    usd_value = to_usd(value, source, source_rate)
    if target.is_usd:
        return round_cents(usd_value)
    return from_usd(usd_value, target, target_rate)


def get_display_rate(
    rate: RateLike,
    currency: str | CurrencyCode,
    mode: DisplayMode | str = DisplayMode.USD_TO_FOREIGN,
) -> Decimal:
    """Rate as shown to a person; not meant for money math."""
    usable_rate = coerce_rate(rate)
    if usable_rate is None:
        return ZERO
    code = CurrencyCode.coerce(currency)
    if code.is_usd:
        return ONE
    if code.is_crypto:
        return usable_rate
    if DisplayMode(mode) is DisplayMode.FOREIGN_TO_USD:
        return ONE / usable_rate
    return usable_rate
