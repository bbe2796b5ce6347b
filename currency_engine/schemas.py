from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from currency_engine.currencies import normalize_currency
from currency_engine.money import MoneyRecord, normalize_rate_tag
from currency_engine.rate_catalog import ExchangeRate, RateType


class ExchangeRatePayload(BaseModel):
    id: str | None = None
    currency: str
    type: str
    rate: Decimal
    as_of: date

    @classmethod
    def validate_payload(cls, payload: "ExchangeRatePayload") -> "ExchangeRatePayload":
        payload.currency = normalize_currency(payload.currency)
        payload.type = RateType.parse(payload.type).tag
        if not payload.rate.is_finite() or payload.rate <= 0:
            raise ValueError("Exchange rate must be greater than zero.")
        return payload

    def to_rate(self) -> ExchangeRate:
        return ExchangeRate(
            currency=self.currency,
            rate_type=RateType.parse(self.type),
            rate=self.rate,
            as_of=self.as_of,
            id=self.id,
        )


class MoneyRecordPayload(BaseModel):
    amount: Decimal
    currency: str
    exchange_rate: Decimal | None = None
    exchange_rate_type: str | None = None
    amount_in_usd: Decimal | None = None

    @classmethod
    def validate_payload(cls, payload: "MoneyRecordPayload") -> "MoneyRecordPayload":
        payload.currency = normalize_currency(payload.currency)
        if payload.exchange_rate is not None and payload.exchange_rate <= 0:
            # Stored rows use 0 for "no rate"; treat it as absent.
            payload.exchange_rate = None
        if payload.exchange_rate_type is not None:
            normalized_type = payload.exchange_rate_type.strip()
            payload.exchange_rate_type = normalize_rate_tag(normalized_type) if normalized_type else None
        return payload

    def to_record(self) -> MoneyRecord:
        return MoneyRecord(
            amount=self.amount,
            currency=self.currency,
            recorded_rate=self.exchange_rate,
            recorded_rate_type=self.exchange_rate_type,
            amount_in_usd=self.amount_in_usd,
        )

    @classmethod
    def from_record(cls, record: MoneyRecord) -> "MoneyRecordPayload":
        return cls(
            amount=record.amount,
            currency=record.currency,
            exchange_rate=record.recorded_rate,
            exchange_rate_type=record.recorded_rate_type,
            amount_in_usd=record.amount_in_usd,
        )
