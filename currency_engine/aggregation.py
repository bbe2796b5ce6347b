"""Multi-record totals pivoted through USD.

Every total is ``sum(record.amount_in_usd)`` converted once to the display
currency with a single rate. Records are never converted one by one, and their
rates are never re-derived at aggregation time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Optional

from currency_engine.converter import from_usd
from currency_engine.currencies import USD, CurrencyCode
from currency_engine.money import ZERO, MoneyRecord, coerce_rate

logger = logging.getLogger(__name__)

RateLookup = Callable[[str], Optional[Decimal]]


@dataclass(frozen=True)
class AggregateTotal:
    total: Decimal
    total_usd: Decimal
    display_currency: str
    display_rate: Optional[Decimal]
    record_count: int
    missing_snapshots: int = 0
    source_currencies: tuple[str, ...] = ()

    @property
    def is_convertible(self) -> bool:
        return self.display_currency == USD or coerce_rate(self.display_rate) is not None


@dataclass(frozen=True)
class UsdSum:
    total_usd: Decimal
    record_count: int
    missing_snapshots: int
    source_currencies: tuple[str, ...]


def sum_usd(records: Iterable[MoneyRecord]) -> UsdSum:
    total = ZERO
    count = 0
    missing = 0
    currencies: set[str] = set()
    for record in records:
        count += 1
        currencies.add(record.currency)
        if record.amount_in_usd is None:
            missing += 1
            continue
        total += record.amount_in_usd
    if missing:
        logger.debug("Skipped %d record(s) without a USD snapshot", missing)
    return UsdSum(total, count, missing, tuple(sorted(currencies)))


def aggregate(
    records: Iterable[MoneyRecord],
    display_currency: str,
    rate_for: RateLookup,
) -> AggregateTotal:
    code = CurrencyCode.parse(display_currency).code
    usd_sum = sum_usd(records)
    display_rate = None if code == USD else rate_for(code)
    return _convert_once(usd_sum, code, display_rate)


def aggregate_with_rate(
    records: Iterable[MoneyRecord],
    display_currency: str,
    display_rate: Optional[Decimal],
) -> AggregateTotal:
    code = CurrencyCode.parse(display_currency).code
    return _convert_once(sum_usd(records), code, display_rate)


def _convert_once(usd_sum: UsdSum, currency: str, display_rate: Optional[Decimal]) -> AggregateTotal:
    return AggregateTotal(
        total=from_usd(usd_sum.total_usd, currency, display_rate),
        total_usd=usd_sum.total_usd,
        display_currency=currency,
        display_rate=display_rate,
        record_count=usd_sum.record_count,
        missing_snapshots=usd_sum.missing_snapshots,
        source_currencies=usd_sum.source_currencies,
    )


@dataclass(frozen=True)
class AssetRecord:
    record: MoneyRecord
    is_liability: bool = False
    is_liquid: bool = False


@dataclass(frozen=True)
class NetWorthSummary:
    display_currency: str
    net_worth: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    liquid_assets: Decimal
    net_worth_usd: Decimal
    source_currencies: tuple[str, ...] = ()


def summarize_net_worth(
    assets: Iterable[AssetRecord],
    display_currency: str,
    rate_for: RateLookup,
) -> NetWorthSummary:
    asset_records: list[MoneyRecord] = []
    liability_records: list[MoneyRecord] = []
    liquid_records: list[MoneyRecord] = []
    for asset in assets:
        if asset.is_liability:
            liability_records.append(asset.record)
            continue
        asset_records.append(asset.record)
        if asset.is_liquid:
            liquid_records.append(asset.record)

    code = CurrencyCode.parse(display_currency).code
    display_rate = None if code == USD else rate_for(code)
    assets_total = aggregate_with_rate(asset_records, code, display_rate)
    liabilities_total = aggregate_with_rate(liability_records, code, display_rate)
    liquid_total = aggregate_with_rate(liquid_records, code, display_rate)

    # Liabilities are stored as positive balances and subtracted in USD.
    net_usd = assets_total.total_usd - liabilities_total.total_usd
    currencies = set(assets_total.source_currencies) | set(liabilities_total.source_currencies)
    return NetWorthSummary(
        display_currency=code,
        net_worth=from_usd(net_usd, code, display_rate),
        total_assets=assets_total.total,
        total_liabilities=liabilities_total.total,
        liquid_assets=liquid_total.total,
        net_worth_usd=net_usd,
        source_currencies=tuple(sorted(currencies)),
    )
