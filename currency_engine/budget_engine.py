from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from currency_engine.aggregation import aggregate_with_rate
from currency_engine.converter import to_usd
from currency_engine.money import ZERO, MoneyRecord, coerce_rate

BUDGET_TYPES = {"fixed", "peg_to_actual", "peg_to_last_month"}


@dataclass(frozen=True)
class ExpenseRecord:
    record: MoneyRecord
    date: date
    category: Optional[str] = None


@dataclass(frozen=True)
class BudgetRule:
    budget_type: str
    amount: MoneyRecord
    category: Optional[str] = None


@dataclass(frozen=True)
class BudgetEvaluation:
    currency: str
    amount: Decimal
    amount_usd: Decimal
    actual_spend: Decimal
    actual_spend_usd: Decimal
    effective_amount: Decimal
    effective_amount_usd: Decimal
    remaining: Decimal
    status: str


def evaluate_budget(
    expenses: Iterable[ExpenseRecord],
    rule: BudgetRule,
    start_date: date,
    end_date: date,
    budget_rate: Decimal | int | float | str | None,
    previous_expenses: Iterable[ExpenseRecord] = (),
) -> BudgetEvaluation:
    """Evaluate one budget line against expenses in ``[start_date, end_date]``.

    ``budget_rate`` is the rate currently effective for the budget's currency.
    Spend is summed in USD and converted once with that rate.
    ``previous_expenses`` feeds ``peg_to_last_month`` budgets and should hold
    the prior period's expenses.
    """
    if start_date > end_date:
        raise ValueError("start_date must be on or before end_date.")
    budget_type = _validate_budget_type(rule.budget_type)
    if budget_type == "fixed" and rule.amount.amount <= ZERO:
        raise ValueError("rule.amount must be greater than zero.")

    currency = rule.amount.currency
    rate = coerce_rate(budget_rate)
    filtered = [
        expense
        for expense in expenses
        if start_date <= expense.date <= end_date
    ]
    actual = aggregate_with_rate(_records_for(filtered, rule.category), currency, rate)

    amount = rule.amount.amount
    amount_usd = rule.amount.amount_in_usd
    if amount_usd is None:
        amount_usd = to_usd(amount, currency, rate)

    if budget_type == "peg_to_actual":
        effective_amount = actual.total
        effective_amount_usd = actual.total_usd
    elif budget_type == "peg_to_last_month":
        if actual.total_usd > ZERO:
            previous = aggregate_with_rate(
                _records_for(previous_expenses, rule.category), currency, rate
            )
            effective_amount = previous.total
            effective_amount_usd = previous.total_usd
        else:
            # Nothing spent yet this period.
            effective_amount = ZERO
            effective_amount_usd = ZERO
    else:
        effective_amount = amount
        effective_amount_usd = amount_usd

    remaining = effective_amount - actual.total
    status = "ok" if actual.total_usd <= effective_amount_usd else "over"
    return BudgetEvaluation(
        currency=currency,
        amount=amount,
        amount_usd=amount_usd,
        actual_spend=actual.total,
        actual_spend_usd=actual.total_usd,
        effective_amount=effective_amount,
        effective_amount_usd=effective_amount_usd,
        remaining=remaining,
        status=status,
    )


def _records_for(
    expenses: Iterable[ExpenseRecord],
    category: Optional[str],
) -> list[MoneyRecord]:
    return [
        expense.record
        for expense in expenses
        if category is None or expense.category == category
    ]


def _validate_budget_type(budget_type: str) -> str:
    normalized = budget_type.strip().lower()
    if normalized not in BUDGET_TYPES:
        raise ValueError(f"Unsupported budget_type: {budget_type}")
    return normalized
