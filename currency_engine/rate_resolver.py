from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from currency_engine.currencies import CurrencyCode
from currency_engine.money import ONE
from currency_engine.rate_catalog import (
    CUSTOM_TAG,
    OFFICIAL,
    CustomRate,
    RateCatalog,
    RateChoice,
    RateType,
    rate_type_label,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateOption:
    rate_type: Optional[RateType]
    rate: Optional[Decimal]
    label: str

    @property
    def is_custom(self) -> bool:
        return self.rate_type is None

    @property
    def tag(self) -> str:
        return CUSTOM_TAG if self.rate_type is None else self.rate_type.tag


CUSTOM_OPTION = RateOption(rate_type=None, rate=None, label=rate_type_label(CUSTOM_TAG))


@dataclass(frozen=True)
class SelectedRate:
    currency: str
    rate: Decimal
    choice: RateChoice

    @property
    def tag(self) -> str:
        return self.choice.tag

    @property
    def is_custom(self) -> bool:
        return isinstance(self.choice, CustomRate)


@dataclass(frozen=True)
class RateResolution:
    currency: str
    selected: Optional[SelectedRate]
    options: tuple[RateOption, ...]

    @property
    def is_convertible(self) -> bool:
        return self.selected is not None

    @property
    def rate(self) -> Optional[Decimal]:
        return self.selected.rate if self.selected else None

    def option_for(self, rate_type: RateType | str) -> Optional[RateOption]:
        wanted = RateType.parse(rate_type)
        for option in self.options:
            if option.rate_type == wanted:
                return option
        return None

    def choose(self, choice: RateChoice) -> Optional[SelectedRate]:
        """Apply an explicit user choice; custom values bypass the catalog."""
        if isinstance(choice, CustomRate):
            return SelectedRate(self.currency, choice.value, choice)
        option = self.option_for(choice)
        if option is None or option.rate is None:
            return None
        return SelectedRate(self.currency, option.rate, option.rate_type)


def resolve_rate(
    currency: str,
    catalog: RateCatalog,
    prefer_favorites: bool = False,
) -> RateResolution:
    code = CurrencyCode.parse(currency)
    if catalog.currency != code.code:
        raise ValueError(
            f"Catalog for {catalog.currency} cannot resolve rates for {code.code}."
        )

    options = [
        RateOption(rate_type=rate.rate_type, rate=rate.rate, label=rate.rate_type.label)
        for rate in catalog.rates
    ]
    if code.is_usd and not options:
        options = [RateOption(rate_type=OFFICIAL, rate=ONE, label=OFFICIAL.label)]
    if prefer_favorites and catalog.favorites:
        options = _favorites_first(options, catalog.favorites)

    selected = _default_selection(code.code, options)
    if selected is None:
        logger.debug("No rate available for %s", code.code)
    return RateResolution(
        currency=code.code,
        selected=selected,
        options=tuple(options) + (CUSTOM_OPTION,),
    )


def rate_resolver_for(
    catalog_for: Callable[[str], RateCatalog],
    prefer_favorites: bool = False,
) -> Callable[[str], Optional[Decimal]]:
    """Build the single-rate lookup consumed by aggregations."""

    def rate_for(currency: str) -> Optional[Decimal]:
        return resolve_rate(currency, catalog_for(currency), prefer_favorites).rate

    return rate_for


def _favorites_first(
    options: list[RateOption], favorites: tuple[RateType, ...]
) -> list[RateOption]:
    rank = {rate_type: index for index, rate_type in enumerate(favorites)}
    favored = [option for option in options if option.rate_type in rank]
    favored.sort(key=lambda option: rank[option.rate_type])
    rest = [option for option in options if option.rate_type not in rank]
    return favored + rest


def _default_selection(currency: str, options: list[RateOption]) -> Optional[SelectedRate]:
    if not options:
        return None
    for option in options:
        if option.rate_type == OFFICIAL:
            return SelectedRate(currency, option.rate, option.rate_type)
    first = options[0]
    return SelectedRate(currency, first.rate, first.rate_type)
