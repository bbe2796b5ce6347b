"""SQLAlchemy Core adapters for the rate catalog and favorites collaborators."""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from currency_engine.config import get_database_url
from currency_engine.currencies import normalize_currency
from currency_engine.favorites import FavoriteMark
from currency_engine.rate_catalog import ExchangeRate, latest_per_type
from currency_engine.schemas import ExchangeRatePayload

logger = logging.getLogger(__name__)

metadata = MetaData()

exchange_rates = Table(
    "exchange_rates",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("currency", String(10), nullable=False),
    Column("type", String(32), nullable=False),
    Column("rate", Numeric(24, 10), nullable=False),
    Column("date", Date, nullable=False),
    UniqueConstraint("date", "currency", "type", name="uq_exchange_rates_date_currency_type"),
)

exchange_rate_favorites = Table(
    "exchange_rate_favorites",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False),
    Column("exchange_rate_id", String(36), ForeignKey("exchange_rates.id"), nullable=False),
    Column("sort_order", Integer, nullable=False, server_default="0"),
    UniqueConstraint("user_id", "exchange_rate_id", name="uq_favorites_user_rate"),
)


def build_engine(database_url: str | None = None) -> Engine:
    url = database_url or get_database_url()
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    metadata.create_all(engine)


def _row_to_rate(row) -> ExchangeRate | None:
    try:
        payload = ExchangeRatePayload(
            id=row["id"],
            currency=row["currency"],
            type=row["type"],
            rate=row["rate"],
            as_of=row["date"],
        )
        return ExchangeRatePayload.validate_payload(payload).to_rate()
    except ValueError:
        logger.warning("Skipping unusable exchange rate row %s", row["id"])
        return None


class SqlRateCatalogSource:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get_rates_for_currency(self, currency: str, as_of: date | None = None) -> list[ExchangeRate]:
        code = normalize_currency(currency)
        stmt = select(exchange_rates).where(exchange_rates.c.currency == code)
        if as_of is not None:
            stmt = stmt.where(exchange_rates.c.date <= as_of)
        stmt = stmt.order_by(exchange_rates.c.date.desc(), exchange_rates.c.type.asc())
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
        rates = [rate for rate in (_row_to_rate(row) for row in rows) if rate is not None]
        return latest_per_type(rates)

    def add_rate(self, rate: ExchangeRate) -> None:
        if rate.id is None:
            raise ValueError("Stored exchange rates need an id.")
        with self.engine.begin() as conn:
            conn.execute(
                insert(exchange_rates).values(
                    id=rate.id,
                    currency=rate.currency,
                    type=rate.rate_type.tag,
                    rate=rate.rate,
                    date=rate.as_of,
                )
            )


class SqlFavoritesStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def list_favorites(self, user_id: str) -> list[FavoriteMark]:
        stmt = (
            select(
                exchange_rate_favorites.c.exchange_rate_id,
                exchange_rate_favorites.c.sort_order,
                exchange_rates.c.currency,
                exchange_rates.c.type,
            )
            .select_from(
                exchange_rate_favorites.join(
                    exchange_rates,
                    exchange_rate_favorites.c.exchange_rate_id == exchange_rates.c.id,
                )
            )
            .where(exchange_rate_favorites.c.user_id == user_id)
            .order_by(exchange_rate_favorites.c.sort_order.asc())
        )
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            FavoriteMark(
                rate_id=row["exchange_rate_id"],
                currency=row["currency"],
                rate_type=row["type"],
                order=row["sort_order"],
            )
            for row in rows
        ]

    def reorder(self, user_id: str, ordered_ids: Sequence[str]) -> bool:
        try:
            with self.engine.begin() as conn:
                existing = set(
                    conn.execute(
                        select(exchange_rate_favorites.c.exchange_rate_id).where(
                            exchange_rate_favorites.c.user_id == user_id
                        )
                    ).scalars()
                )
                valid_ids = [rate_id for rate_id in ordered_ids if rate_id in existing]
                # Negative orders first so no two rows share an order mid-update.
                for index, rate_id in enumerate(valid_ids):
                    self._set_order(conn, user_id, rate_id, -1 - index)
                for index, rate_id in enumerate(valid_ids):
                    self._set_order(conn, user_id, rate_id, index)
        except SQLAlchemyError:
            logger.exception("Failed to reorder favorites for user %s", user_id)
            return False
        return True

    def toggle_favorite(self, user_id: str, rate_id: str) -> bool:
        try:
            with self.engine.begin() as conn:
                existing = conn.execute(
                    select(exchange_rate_favorites.c.id).where(
                        exchange_rate_favorites.c.user_id == user_id,
                        exchange_rate_favorites.c.exchange_rate_id == rate_id,
                    )
                ).scalar_one_or_none()
                if existing is not None:
                    conn.execute(
                        delete(exchange_rate_favorites).where(
                            exchange_rate_favorites.c.id == existing
                        )
                    )
                    return True
                max_order = conn.execute(
                    select(func.max(exchange_rate_favorites.c.sort_order)).where(
                        exchange_rate_favorites.c.user_id == user_id
                    )
                ).scalar_one_or_none()
                conn.execute(
                    insert(exchange_rate_favorites).values(
                        user_id=user_id,
                        exchange_rate_id=rate_id,
                        sort_order=0 if max_order is None else max_order + 1,
                    )
                )
        except SQLAlchemyError:
            logger.exception("Failed to toggle favorite %s for user %s", rate_id, user_id)
            return False
        return True

    @staticmethod
    def _set_order(conn, user_id: str, rate_id: str, order: int) -> None:
        conn.execute(
            update(exchange_rate_favorites)
            .where(
                exchange_rate_favorites.c.user_id == user_id,
                exchange_rate_favorites.c.exchange_rate_id == rate_id,
            )
            .values(sort_order=order)
        )
