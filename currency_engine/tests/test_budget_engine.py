import unittest
from datetime import date
from decimal import Decimal

from currency_engine.budget_engine import BudgetRule, ExpenseRecord, evaluate_budget
from currency_engine.money import MoneyRecord

MAY_START = date(2024, 5, 1)
MAY_END = date(2024, 5, 31)
ARS_RATE = Decimal("1415")


def expenses() -> list[ExpenseRecord]:
    return [
        ExpenseRecord(
            MoneyRecord(Decimal("5000"), "ARS", ARS_RATE, "official", Decimal("3.53")),
            date(2024, 5, 3),
            "Food",
        ),
        ExpenseRecord(
            MoneyRecord(Decimal("10"), "USD", Decimal("1"), "official", Decimal("10")),
            date(2024, 5, 10),
            "Food",
        ),
        ExpenseRecord(
            MoneyRecord(Decimal("100"), "EUR", Decimal("0.92"), "official", Decimal("108.70")),
            date(2024, 5, 12),
            "Travel",
        ),
        ExpenseRecord(
            MoneyRecord(Decimal("50"), "USD", Decimal("1"), "official", Decimal("50")),
            date(2024, 4, 20),
            "Food",
        ),
    ]


def ars_budget(budget_type: str) -> BudgetRule:
    return BudgetRule(
        budget_type=budget_type,
        amount=MoneyRecord(Decimal("20000"), "ARS", ARS_RATE, "official", Decimal("14.13")),
        category="Food",
    )


class BudgetEngineTests(unittest.TestCase):
    def test_fixed_budget_sums_category_in_usd(self) -> None:
        result = evaluate_budget(expenses(), ars_budget("fixed"), MAY_START, MAY_END, ARS_RATE)

        self.assertEqual(result.actual_spend_usd, Decimal("13.53"))
        self.assertEqual(result.actual_spend, Decimal("19144.95"))
        self.assertEqual(result.effective_amount, Decimal("20000"))
        self.assertEqual(result.effective_amount_usd, Decimal("14.13"))
        self.assertEqual(result.remaining, Decimal("855.05"))
        self.assertEqual(result.status, "ok")

    def test_peg_to_actual_tracks_spend(self) -> None:
        result = evaluate_budget(expenses(), ars_budget(" PEG_TO_ACTUAL "), MAY_START, MAY_END, ARS_RATE)

        self.assertEqual(result.effective_amount, result.actual_spend)
        self.assertEqual(result.remaining, Decimal("0"))
        self.assertEqual(result.status, "ok")

    def test_peg_to_last_month_uses_previous_spend(self) -> None:
        previous = [
            ExpenseRecord(
                MoneyRecord(Decimal("10000"), "ARS", ARS_RATE, "official", Decimal("7.07")),
                date(2024, 4, 8),
                "Food",
            )
        ]

        result = evaluate_budget(
            expenses(),
            ars_budget("peg_to_last_month"),
            MAY_START,
            MAY_END,
            ARS_RATE,
            previous_expenses=previous,
        )

        self.assertEqual(result.effective_amount_usd, Decimal("7.07"))
        self.assertEqual(result.effective_amount, Decimal("10004.05"))
        self.assertEqual(result.remaining, Decimal("-9140.90"))
        self.assertEqual(result.status, "over")

    def test_peg_to_last_month_is_zero_without_spend(self) -> None:
        result = evaluate_budget([], ars_budget("peg_to_last_month"), MAY_START, MAY_END, ARS_RATE)

        self.assertEqual(result.effective_amount, Decimal("0"))
        self.assertEqual(result.status, "ok")

    def test_usd_budget_without_category(self) -> None:
        rule = BudgetRule(
            budget_type="fixed",
            amount=MoneyRecord(Decimal("200"), "USD", Decimal("1"), "official", Decimal("200")),
        )

        result = evaluate_budget(expenses(), rule, MAY_START, MAY_END, None)

        self.assertEqual(result.actual_spend, Decimal("122.23"))
        self.assertEqual(result.remaining, Decimal("77.77"))

    def test_budget_without_snapshot_is_converted(self) -> None:
        rule = BudgetRule(budget_type="fixed", amount=MoneyRecord(Decimal("20000"), "ARS"), category="Food")

        result = evaluate_budget(expenses(), rule, MAY_START, MAY_END, ARS_RATE)

        self.assertEqual(result.amount_usd, Decimal("14.13"))

    def test_invalid_inputs_raise(self) -> None:
        with self.assertRaises(ValueError):
            evaluate_budget(expenses(), ars_budget("category_cap"), MAY_START, MAY_END, ARS_RATE)
        with self.assertRaises(ValueError):
            evaluate_budget(expenses(), ars_budget("fixed"), MAY_END, MAY_START, ARS_RATE)
        zero = BudgetRule(budget_type="fixed", amount=MoneyRecord(Decimal("0"), "ARS"))
        with self.assertRaises(ValueError):
            evaluate_budget(expenses(), zero, MAY_START, MAY_END, ARS_RATE)


if __name__ == "__main__":
    unittest.main()
