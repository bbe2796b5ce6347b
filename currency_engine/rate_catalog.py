from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol, Union

from currency_engine.currencies import CurrencyCode
from currency_engine.money import CUSTOM_TAG, coerce_rate, normalize_rate_tag

RATE_TYPE_LABELS: dict[str, str] = {
    "official": "Official",
    "blue": "Blue (Informal)",
    "mep": "MEP",
    "crypto": "Crypto",
    "tourist": "Tourist",
}


@dataclass(frozen=True)
class RateType:
    """A rate type published by the catalog (official, blue, mep, ...)."""

    tag: str

    @classmethod
    def parse(cls, value: "str | RateType") -> "RateType":
        if isinstance(value, RateType):
            return value
        normalized = normalize_rate_tag(value)
        if normalized == CUSTOM_TAG:
            raise ValueError("custom is not a catalog rate type; use CustomRate(value).")
        return cls(normalized)

    @property
    def label(self) -> str:
        return rate_type_label(self.tag)

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class CustomRate:
    """A one-off rate typed by the user. Never looked up in the catalog."""

    value: Decimal

    def __post_init__(self) -> None:
        rate = coerce_rate(self.value)
        if rate is None:
            raise ValueError("Custom rate must be a positive number.")
        object.__setattr__(self, "value", rate)

    @property
    def tag(self) -> str:
        return CUSTOM_TAG

    @property
    def label(self) -> str:
        return "Custom"


RateChoice = Union[RateType, CustomRate]

OFFICIAL = RateType("official")
BLUE = RateType("blue")


def rate_type_label(tag: str) -> str:
    if tag == CUSTOM_TAG:
        return "Custom"
    if tag in RATE_TYPE_LABELS:
        return RATE_TYPE_LABELS[tag]
    return tag[:1].upper() + tag[1:]


@dataclass(frozen=True)
class ExchangeRate:
    currency: str
    rate_type: RateType
    rate: Decimal
    as_of: date
    id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", CurrencyCode.parse(self.currency).code)
        object.__setattr__(self, "rate_type", RateType.parse(self.rate_type))
        rate = coerce_rate(self.rate)
        if rate is None:
            raise ValueError("Exchange rate must be greater than zero.")
        object.__setattr__(self, "rate", rate)


@dataclass(frozen=True)
class RateCatalog:
    """Immutable snapshot of the rates available for one currency."""

    currency: str
    rates: tuple[ExchangeRate, ...] = ()
    favorites: tuple[RateType, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        code = CurrencyCode.parse(self.currency).code
        object.__setattr__(self, "currency", code)
        object.__setattr__(
            self, "rates", tuple(rate for rate in self.rates if rate.currency == code)
        )
        object.__setattr__(
            self, "favorites", tuple(RateType.parse(tag) for tag in self.favorites)
        )

    @classmethod
    def from_source(
        cls,
        source: "RateCatalogSource",
        currency: str,
        as_of: date | None = None,
        favorites: Iterable[RateType | str] = (),
    ) -> "RateCatalog":
        return cls(
            currency=currency,
            rates=tuple(source.get_rates_for_currency(currency, as_of)),
            favorites=tuple(favorites),
        )

    @property
    def is_empty(self) -> bool:
        return not self.rates

    def rate_for(self, rate_type: RateType | str) -> ExchangeRate | None:
        wanted = RateType.parse(rate_type)
        for rate in self.rates:
            if rate.rate_type == wanted:
                return rate
        return None


class RateCatalogSource(Protocol):
    def get_rates_for_currency(self, currency: str, as_of: date | None = None) -> list[ExchangeRate]: ...


@dataclass
class InMemoryRateCatalogSource:
    """Catalog source over a fixed list of rates, newest rate per type wins."""

    rates: list[ExchangeRate] = field(default_factory=list)

    def add(self, rate: ExchangeRate) -> None:
        self.rates.append(rate)

    def get_rates_for_currency(self, currency: str, as_of: date | None = None) -> list[ExchangeRate]:
        code = CurrencyCode.parse(currency).code
        candidates = [
            rate
            for rate in self.rates
            if rate.currency == code and (as_of is None or rate.as_of <= as_of)
        ]
        candidates.sort(key=lambda rate: rate.rate_type.tag)
        candidates.sort(key=lambda rate: rate.as_of, reverse=True)
        return latest_per_type(candidates)


def latest_per_type(rates: Iterable[ExchangeRate]) -> list[ExchangeRate]:
    """Keep the first rate seen for each type; input is expected newest first."""
    seen: set[RateType] = set()
    latest: list[ExchangeRate] = []
    for rate in rates:
        if rate.rate_type in seen:
            continue
        seen.add(rate.rate_type)
        latest.append(rate)
    return latest
