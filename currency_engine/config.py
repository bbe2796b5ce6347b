from __future__ import annotations

import logging.config
import os
from decimal import Decimal, InvalidOperation

from currency_engine.currencies import normalize_currency

DEFAULT_INVERSION_TOLERANCE = Decimal("0.01")
DEFAULT_DATABASE_URL = "sqlite:///./currency_engine.db"

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "currency_engine": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        },
    },
}


def get_default_display_currency() -> str:
    raw = os.getenv("DEFAULT_CURRENCY", "USD")
    try:
        return normalize_currency(raw)
    except ValueError:
        return "USD"


def get_inversion_tolerance() -> Decimal:
    raw = os.getenv("INVERSION_TOLERANCE")
    if not raw:
        return DEFAULT_INVERSION_TOLERANCE
    try:
        tolerance = Decimal(raw.strip())
    except InvalidOperation:
        return DEFAULT_INVERSION_TOLERANCE
    if not tolerance.is_finite() or tolerance < 0 or tolerance >= 1:
        return DEFAULT_INVERSION_TOLERANCE
    return tolerance


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def configure_logging(level: str | None = None) -> None:
    config = {**LOGGING_CONFIG, "loggers": dict(LOGGING_CONFIG["loggers"])}
    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    if resolved_level not in logging.getLevelNamesMapping():
        resolved_level = "INFO"
    config["loggers"]["currency_engine"] = {
        **config["loggers"]["currency_engine"],
        "level": resolved_level,
    }
    logging.config.dictConfig(config)
