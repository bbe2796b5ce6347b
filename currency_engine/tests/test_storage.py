import unittest
from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine, insert

from currency_engine.favorites import FavoritesView, PersistenceFailure
from currency_engine.rate_catalog import ExchangeRate, RateCatalog
from currency_engine.rate_resolver import resolve_rate
from currency_engine.storage import (
    SqlFavoritesStore,
    SqlRateCatalogSource,
    build_engine,
    exchange_rates,
    init_db,
)


class StorageTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = build_engine("sqlite://")
        init_db(self.engine)
        self.source = SqlRateCatalogSource(self.engine)
        for rate in (
            ExchangeRate("ARS", "official", Decimal("1400"), date(2024, 5, 1), id="a1"),
            ExchangeRate("ARS", "official", Decimal("1415"), date(2024, 5, 2), id="a2"),
            ExchangeRate("ARS", "blue", Decimal("1500"), date(2024, 5, 1), id="a3"),
            ExchangeRate("EUR", "official", Decimal("0.92"), date(2024, 5, 2), id="e1"),
        ):
            self.source.add_rate(rate)
        self.store = SqlFavoritesStore(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()

    def test_latest_rate_per_type(self) -> None:
        rates = self.source.get_rates_for_currency("ars")

        self.assertEqual([rate.id for rate in rates], ["a2", "a3"])
        self.assertEqual(rates[0].rate, Decimal("1415"))

    def test_rates_as_of_date(self) -> None:
        rates = self.source.get_rates_for_currency("ARS", as_of=date(2024, 5, 1))

        self.assertEqual([rate.id for rate in rates], ["a3", "a1"])

    def test_rows_failing_payload_validation_are_skipped(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                insert(exchange_rates).values(
                    id="a4", currency="ARS", type="mep", rate=Decimal("0"), date=date(2024, 5, 3)
                )
            )
            conn.execute(
                insert(exchange_rates).values(
                    id="a5", currency="ARS", type="custom", rate=Decimal("1600"), date=date(2024, 5, 3)
                )
            )

        with self.assertLogs("currency_engine.storage", level="WARNING") as captured:
            rates = self.source.get_rates_for_currency("ARS")

        self.assertEqual([rate.id for rate in rates], ["a2", "a3"])
        self.assertEqual(len(captured.records), 2)

    def test_catalog_from_source_resolves_official(self) -> None:
        catalog = RateCatalog.from_source(self.source, "ARS")

        self.assertEqual(resolve_rate("ARS", catalog).rate, Decimal("1415"))

    def test_toggle_appends_and_removes(self) -> None:
        self.assertTrue(self.store.toggle_favorite("u1", "a2"))
        self.assertTrue(self.store.toggle_favorite("u1", "e1"))

        marks = self.store.list_favorites("u1")
        self.assertEqual([(mark.rate_id, mark.order) for mark in marks], [("a2", 0), ("e1", 1)])
        self.assertEqual(marks[1].currency, "EUR")

        self.assertTrue(self.store.toggle_favorite("u1", "a2"))
        self.assertEqual([mark.rate_id for mark in self.store.list_favorites("u1")], ["e1"])
        self.assertEqual(self.store.list_favorites("u2"), [])

    def test_reorder_filters_unknown_ids(self) -> None:
        for rate_id in ("a2", "a3", "e1"):
            self.store.toggle_favorite("u1", rate_id)

        self.assertTrue(self.store.reorder("u1", ["e1", "zzz", "a2", "a3"]))

        marks = self.store.list_favorites("u1")
        self.assertEqual([(mark.rate_id, mark.order) for mark in marks], [("e1", 0), ("a2", 1), ("a3", 2)])

    def test_view_round_trip_through_store(self) -> None:
        for rate_id in ("a2", "a3"):
            self.store.toggle_favorite("u1", rate_id)
        view = FavoritesView.load(self.store, "u1")

        view.reorder(self.store, "u1", ["a3", "a2"])

        self.assertEqual([mark.rate_id for mark in self.store.list_favorites("u1")], ["a3", "a2"])
        self.assertEqual([mark.rate_type.tag for mark in view.marks], ["blue", "official"])

    def test_database_errors_are_reported_as_failure(self) -> None:
        broken = SqlFavoritesStore(create_engine("sqlite://"))

        with self.assertLogs("currency_engine.storage", level="ERROR"):
            self.assertFalse(broken.toggle_favorite("u1", "a2"))
        with self.assertLogs("currency_engine.storage", level="ERROR"):
            self.assertFalse(broken.reorder("u1", ["a2"]))

    def test_view_rolls_back_on_database_error(self) -> None:
        broken = SqlFavoritesStore(create_engine("sqlite://"))
        view = FavoritesView(self.store.list_favorites("u1"))
        rate = ExchangeRate("ARS", "official", Decimal("1415"), date(2024, 5, 2), id="a2")

        with self.assertRaises(PersistenceFailure):
            view.toggle(broken, "u1", rate)

        self.assertEqual(view.marks, [])


if __name__ == "__main__":
    unittest.main()
