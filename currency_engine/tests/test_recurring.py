import unittest
from datetime import date
from decimal import Decimal

from currency_engine.money import MoneyRecord
from currency_engine.recurring import (
    RecurringTemplate,
    project_occurrences,
    project_templates,
    projected_total,
)

USD_120 = MoneyRecord(Decimal("120"), "USD", Decimal("1"), "official", Decimal("120"))


class ProjectOccurrencesTests(unittest.TestCase):
    def test_weekly_skips_recorded_dates(self) -> None:
        template = RecurringTemplate(record=USD_120, start_date=date(2024, 1, 1), frequency="weekly")

        occurrences = project_occurrences(
            template,
            range_start=date(2024, 1, 1),
            range_end=date(2024, 1, 20),
            skip_dates=[date(2024, 1, 8)],
        )

        self.assertEqual([item.date for item in occurrences], [date(2024, 1, 1), date(2024, 1, 15)])
        self.assertEqual(occurrences[0].record, USD_120)

    def test_biweekly_starting_before_range(self) -> None:
        template = RecurringTemplate(record=USD_120, start_date=date(2024, 1, 1), frequency="By-Weekly")

        occurrences = project_occurrences(template, date(2024, 1, 10), date(2024, 1, 31))

        self.assertEqual([item.date for item in occurrences], [date(2024, 1, 15), date(2024, 1, 29)])

    def test_monthly_clamps_to_month_end(self) -> None:
        template = RecurringTemplate(record=USD_120, start_date=date(2024, 1, 31))

        occurrences = project_occurrences(template, date(2024, 2, 1), date(2024, 4, 30))

        self.assertEqual(
            [item.date for item in occurrences],
            [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)],
        )

    def test_yearly_leap_day(self) -> None:
        template = RecurringTemplate(record=USD_120, start_date=date(2020, 2, 29), frequency="yearly")

        occurrences = project_occurrences(template, date(2021, 1, 1), date(2024, 12, 31))

        self.assertEqual(
            [item.date for item in occurrences],
            [date(2021, 2, 28), date(2022, 2, 28), date(2023, 2, 28), date(2024, 2, 29)],
        )

    def test_end_date_stops_projection(self) -> None:
        template = RecurringTemplate(
            record=USD_120,
            start_date=date(2024, 1, 15),
            end_date=date(2024, 3, 1),
        )

        occurrences = project_occurrences(template, date(2024, 1, 1), date(2024, 6, 30))

        self.assertEqual([item.date for item in occurrences], [date(2024, 1, 15), date(2024, 2, 15)])

    def test_invalid_templates_raise(self) -> None:
        with self.assertRaises(ValueError):
            project_occurrences(
                RecurringTemplate(record=USD_120, start_date=date(2024, 1, 1), frequency="daily"),
                date(2024, 1, 1),
                date(2024, 1, 31),
            )
        with self.assertRaises(ValueError):
            project_occurrences(
                RecurringTemplate(record=USD_120, start_date=date(2024, 1, 1)),
                date(2024, 2, 1),
                date(2024, 1, 1),
            )
        with self.assertRaises(ValueError):
            project_occurrences(
                RecurringTemplate(record=USD_120, start_date=date(2024, 1, 1), kind="transfer"),
                date(2024, 1, 1),
                date(2024, 1, 31),
            )


class ProjectedTotalTests(unittest.TestCase):
    def setUp(self) -> None:
        self.templates = [
            RecurringTemplate(
                record=MoneyRecord(Decimal("5000"), "ARS", Decimal("1415"), "official", Decimal("3.53")),
                start_date=date(2024, 1, 5),
                name="rent",
            ),
            RecurringTemplate(
                record=MoneyRecord(Decimal("10"), "USD", Decimal("1"), "official", Decimal("10")),
                start_date=date(2024, 1, 20),
            ),
            RecurringTemplate(
                record=MoneyRecord(Decimal("1000"), "USD", Decimal("1"), "official", Decimal("1000")),
                start_date=date(2024, 1, 1),
                kind="income",
            ),
        ]

    def test_expense_total_pivots_through_usd(self) -> None:
        total = projected_total(
            self.templates,
            date(2024, 1, 1),
            date(2024, 3, 31),
            "EUR",
            lambda currency: Decimal("0.92"),
        )

        self.assertEqual(total.record_count, 6)
        self.assertEqual(total.total_usd, Decimal("40.59"))
        self.assertEqual(total.total, Decimal("37.34"))

    def test_income_total(self) -> None:
        total = projected_total(
            self.templates,
            date(2024, 1, 1),
            date(2024, 3, 31),
            "EUR",
            lambda currency: Decimal("0.92"),
            kind="income",
        )

        self.assertEqual(total.total, Decimal("2760.00"))

    def test_skip_dates_apply_to_the_named_template_only(self) -> None:
        skip_dates = {"rent": [date(2024, 2, 5)], "gym": [date(2024, 2, 20)]}

        occurrences = project_templates(self.templates, date(2024, 1, 1), date(2024, 3, 31), skip_dates)
        total = projected_total(
            self.templates,
            date(2024, 1, 1),
            date(2024, 3, 31),
            "EUR",
            lambda currency: Decimal("0.92"),
            skip_dates=skip_dates,
        )

        rent_dates = [occurrence.date for occurrence in occurrences if occurrence.name == "rent"]
        self.assertEqual(rent_dates, [date(2024, 1, 5), date(2024, 3, 5)])
        self.assertIn(date(2024, 2, 20), [occurrence.date for occurrence in occurrences])
        self.assertEqual(total.record_count, 5)
        self.assertEqual(total.total_usd, Decimal("37.06"))
        self.assertEqual(total.total, Decimal("34.10"))


if __name__ == "__main__":
    unittest.main()
