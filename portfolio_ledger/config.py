"""Configuration for the portfolio ledger."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_CURRENCY = "PKR"
DEFAULT_PRICE_CACHE_TTL_SECONDS = 15 * 60


class LedgerSettings(BaseSettings):
    """Tunable options; read from ``PORTFOLIO_LEDGER_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="Portfolio Ledger")
    base_currency: str = Field(default=DEFAULT_BASE_CURRENCY, min_length=3, max_length=3)
    log_level: str = Field(default="INFO")

    price_cache_ttl_seconds: int = Field(
        default=DEFAULT_PRICE_CACHE_TTL_SECONDS,
        gt=0,
        description="How long a fetched quote stays usable.",
    )
    closed_position_epsilon: Decimal = Field(
        default=Decimal("0.0001"),
        gt=0,
        description="Largest bought/sold share difference still treated as fully closed.",
    )
    xirr_guess: float = Field(default=0.1, gt=-0.99, lt=10)
    daily_movers_limit: int = Field(default=5, gt=0)


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> LedgerSettings:
    """Return cached settings with optional overrides."""

    if overrides:
        return LedgerSettings(**overrides)
    return LedgerSettings()


__all__ = [
    "LedgerSettings",
    "DEFAULT_BASE_CURRENCY",
    "DEFAULT_PRICE_CACHE_TTL_SECONDS",
    "get_settings",
]
