from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional, Set

from currency_engine.aggregation import AggregateTotal, RateLookup, aggregate
from currency_engine.money import ZERO, MoneyRecord

WEEKLY_DAYS = 7
BIWEEKLY_DAYS = 14
SUPPORTED_FREQUENCIES = {"weekly", "biweekly", "monthly", "yearly"}
SUPPORTED_KINDS = {"income", "expense"}


@dataclass(frozen=True)
class RecurringTemplate:
    record: MoneyRecord
    start_date: date
    frequency: str = "monthly"
    kind: str = "expense"
    end_date: Optional[date] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class ProjectedOccurrence:
    date: date
    record: MoneyRecord
    kind: str
    name: Optional[str] = None


def project_occurrences(
    template: RecurringTemplate,
    range_start: date,
    range_end: date,
    skip_dates: Iterable[date] = (),
) -> List[ProjectedOccurrence]:
    """Occurrences of ``template`` in ``[range_start, range_end]``.

    Each occurrence carries the template's record unchanged, snapshot included.
    Dates in ``skip_dates`` already have an actual entry and are left out.
    """
    if range_start > range_end:
        raise ValueError("range_start must be on or before range_end.")
    if template.record.amount <= ZERO:
        raise ValueError("template amount must be greater than zero.")
    frequency = _validate_frequency(template.frequency)
    kind = _validate_kind(template.kind)
    last_date = range_end
    if template.end_date is not None and template.end_date < last_date:
        last_date = template.end_date

    excluded: Set[date] = set(skip_dates)
    occurrences: List[ProjectedOccurrence] = []
    if frequency in {"monthly", "yearly"}:
        month_increment = 1 if frequency == "monthly" else 12
        current_date, month_offset = _first_monthly_on_or_after(
            template.start_date, range_start, month_increment
        )
    else:
        interval = WEEKLY_DAYS if frequency == "weekly" else BIWEEKLY_DAYS
        current_date = _first_occurrence_on_or_after(template.start_date, range_start, interval)

    while current_date <= last_date:
        if current_date not in excluded:
            occurrences.append(
                ProjectedOccurrence(
                    date=current_date,
                    record=template.record,
                    kind=kind,
                    name=template.name,
                )
            )
        if frequency in {"monthly", "yearly"}:
            month_offset += month_increment
            current_date = _add_months(template.start_date, month_offset)
        else:
            current_date += timedelta(days=interval)
    return occurrences


def project_templates(
    templates: Iterable[RecurringTemplate],
    range_start: date,
    range_end: date,
    skip_dates: Optional[Mapping[str, Iterable[date]]] = None,
) -> List[ProjectedOccurrence]:
    """Occurrences of every template, sorted by date.

    ``skip_dates`` maps a template name to the dates it already has actual entries for.
    """
    skip_dates = skip_dates or {}
    projections: List[ProjectedOccurrence] = []
    for template in templates:
        skipped = skip_dates.get(template.name, ()) if template.name is not None else ()
        projections.extend(project_occurrences(template, range_start, range_end, skipped))
    projections.sort(key=lambda occurrence: occurrence.date)
    return projections


def projected_total(
    templates: Iterable[RecurringTemplate],
    range_start: date,
    range_end: date,
    display_currency: str,
    rate_for: RateLookup,
    kind: str = "expense",
    skip_dates: Optional[Mapping[str, Iterable[date]]] = None,
) -> AggregateTotal:
    wanted = _validate_kind(kind)
    occurrences = project_templates(templates, range_start, range_end, skip_dates)
    return aggregate(
        [occurrence.record for occurrence in occurrences if occurrence.kind == wanted],
        display_currency,
        rate_for,
    )


def _validate_frequency(frequency: str) -> str:
    normalized = "".join(ch for ch in frequency.strip().lower() if ch.isalnum())
    if normalized == "byweekly":
        normalized = "biweekly"
    if normalized not in SUPPORTED_FREQUENCIES:
        raise ValueError("Only weekly, biweekly, monthly, or yearly templates are supported.")
    return normalized


def _validate_kind(kind: str) -> str:
    normalized = kind.strip().lower()
    if normalized not in SUPPORTED_KINDS:
        raise ValueError("Only income or expense templates are supported.")
    return normalized


def _first_occurrence_on_or_after(start_date: date, minimum_date: date, interval_days: int) -> date:
    if start_date >= minimum_date:
        return start_date
    days_between = (minimum_date - start_date).days
    intervals = (days_between + interval_days - 1) // interval_days
    return start_date + timedelta(days=interval_days * intervals)


def _first_monthly_on_or_after(
    start_date: date, minimum_date: date, month_increment: int
) -> tuple[date, int]:
    if start_date >= minimum_date:
        return start_date, 0
    months_between = (minimum_date.year - start_date.year) * 12 + (
        minimum_date.month - start_date.month
    )
    months_between -= months_between % month_increment
    candidate = _add_months(start_date, months_between)
    while candidate < minimum_date:
        months_between += month_increment
        candidate = _add_months(start_date, months_between)
    return candidate, months_between


def _add_months(start_date: date, months: int) -> date:
    # Day is clamped to the month's length; later months go back to the anchor day.
    total_month = start_date.month - 1 + months
    year = start_date.year + total_month // 12
    month = total_month % 12 + 1
    day = min(start_date.day, monthrange(year, month)[1])
    return date(year, month, day)
