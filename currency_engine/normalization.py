"""Snapshotting money records into USD.

A record's ``amount_in_usd`` is computed once, when the record is created or
when its amount, currency or rate is edited. Showing a record under another
rate goes through :func:`redisplay` and never touches the stored snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from currency_engine.converter import from_usd, to_usd
from currency_engine.currencies import CurrencyCode
from currency_engine.money import ONE, MoneyRecord, coerce_amount, coerce_rate
from currency_engine.rate_catalog import OFFICIAL, CustomRate, RateCatalog, RateChoice
from currency_engine.rate_resolver import resolve_rate

logger = logging.getLogger(__name__)

# Fiat currencies worth more than 1 USD, where a USD value above the native
# amount is expected.
STRONG_FIAT_CURRENCIES = frozenset({"GBP", "EUR", "KWD", "BHD", "OMR", "JOD"})

SANITY_FACTOR = Decimal("1.5")


class NoRateAvailable(ValueError):
    """Raised when a snapshot must be taken but no usable rate exists."""


class ConversionSanityError(ValueError):
    """Raised when a USD snapshot is implausible for the native amount."""


@dataclass(frozen=True)
class ResolvedRecordRate:
    rate: Decimal
    rate_type: str


def resolve_record_rate(
    currency: str,
    catalog: Optional[RateCatalog] = None,
    choice: Optional[RateChoice] = None,
) -> ResolvedRecordRate:
    code = CurrencyCode.parse(currency)
    if code.is_usd:
        return ResolvedRecordRate(ONE, OFFICIAL.tag)
    if isinstance(choice, CustomRate):
        return ResolvedRecordRate(choice.value, choice.tag)
    if catalog is None:
        logger.warning("No rate catalog supplied for %s", code.code)
        raise NoRateAvailable(f"No exchange rate available for {code.code}.")

    resolution = resolve_rate(code.code, catalog)
    selected = resolution.choose(choice) if choice is not None else resolution.selected
    if selected is None:
        logger.warning(
            "No %s rate available for %s",
            choice.tag if choice is not None else "default",
            code.code,
        )
        raise NoRateAvailable(f"No exchange rate available for {code.code}.")
    return ResolvedRecordRate(selected.rate, selected.tag)


def check_usd_sanity(amount: Decimal, amount_in_usd: Decimal, currency: str) -> None:
    """Reject fiat snapshots where the USD value dwarfs the native amount.

    A weak currency converted by multiplying instead of dividing produces a
    USD value far above the native amount.
    """
    code = CurrencyCode.coerce(currency)
    if code.is_usd or code.is_crypto or code.code in STRONG_FIAT_CURRENCIES:
        return
    if abs(amount_in_usd) > abs(amount) * SANITY_FACTOR:
        raise ConversionSanityError(
            f"USD value {amount_in_usd} is implausible for {amount} {code.code}; "
            "the rate may be inverted."
        )


def normalize_record(
    amount: Decimal | int | float | str,
    currency: str,
    catalog: Optional[RateCatalog] = None,
    choice: Optional[RateChoice] = None,
) -> MoneyRecord:
    value = coerce_amount(amount)
    code = CurrencyCode.parse(currency).code
    resolved = resolve_record_rate(code, catalog, choice)
    amount_in_usd = to_usd(value, code, resolved.rate)
    check_usd_sanity(value, amount_in_usd, code)
    return MoneyRecord(
        amount=value,
        currency=code,
        recorded_rate=resolved.rate,
        recorded_rate_type=resolved.rate_type,
        amount_in_usd=amount_in_usd,
    )


def edit_record(
    record: MoneyRecord,
    *,
    amount: Decimal | int | float | str | None = None,
    currency: Optional[str] = None,
    choice: Optional[RateChoice] = None,
    catalog: Optional[RateCatalog] = None,
) -> MoneyRecord:
    """Apply a user edit, re-snapshotting only when amount, currency or rate changed."""
    new_amount = record.amount if amount is None else coerce_amount(amount)
    new_currency = record.currency if currency is None else CurrencyCode.parse(currency).code

    unchanged = (
        new_amount == record.amount
        and new_currency == record.currency
        and choice is None
        and record.has_snapshot
    )
    if unchanged:
        return record

    if choice is None and new_currency == record.currency and record.recorded_rate is not None:
        # Same currency, same rate: keep the rate the record was taken with.
        amount_in_usd = to_usd(new_amount, new_currency, record.recorded_rate)
        check_usd_sanity(new_amount, amount_in_usd, new_currency)
        return MoneyRecord(
            amount=new_amount,
            currency=new_currency,
            recorded_rate=record.recorded_rate,
            recorded_rate_type=record.recorded_rate_type,
            amount_in_usd=amount_in_usd,
        )
    return normalize_record(new_amount, new_currency, catalog, choice)


def redisplay(
    record: MoneyRecord,
    display_currency: str,
    display_rate: Decimal | int | float | str | None,
) -> Decimal:
    """Show one record's snapshot in another currency without changing it."""
    code = CurrencyCode.parse(display_currency)
    if code.code == record.currency:
        return record.amount
    if record.amount_in_usd is None:
        return Decimal("0")
    return from_usd(record.amount_in_usd, code, coerce_rate(display_rate))
