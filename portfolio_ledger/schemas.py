"""Pydantic schemas for ingesting and serializing ledger records."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Dividend, Transaction, TransactionType


class TransactionCreateRequest(BaseModel):
    symbol: str = Field(..., min_length=1, examples=["OGDC"])
    type: TransactionType
    shares: Decimal = Field(..., gt=0)
    price: Decimal = Field(..., gt=0)
    date: datetime
    id: str | None = None

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("symbol must not be blank")
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    def to_transaction(self) -> Transaction:
        extra = {"id": self.id} if self.id else {}
        return Transaction(
            symbol=self.symbol,
            type=self.type,
            shares=self.shares,
            price=self.price,
            date=self.date,
            **extra,
        )


class DividendCreateRequest(BaseModel):
    symbol: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    date: datetime
    notes: str | None = None

    def to_dividend(self) -> Dividend:
        return Dividend(symbol=self.symbol, amount=self.amount, date=self.date, notes=self.notes)


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    symbol: str
    type: TransactionType
    shares: Decimal
    price: Decimal
    date: datetime
    amount: Decimal


class DailyChangeSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference_close: Decimal
    amount: Decimal
    percent: Decimal


class EarningsBreakdownSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    symbol: str
    category: str | None = None
    shares: Decimal
    average_cost: Decimal
    price: Decimal
    price_is_estimated: bool
    market_value: Decimal
    holding_cost: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_percent: Decimal
    realized_capital_gain: Decimal
    realized_dividend: Decimal
    capital_deployed: Decimal
    overall_without_dividend: Decimal
    overall_percent_without_dividend: Decimal
    overall_with_dividend: Decimal
    overall_percent_with_dividend: Decimal
    daily_change: DailyChangeSchema | None = Field(
        default=None, description="Missing when no prior close or current price is known."
    )


class ClosedPositionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    symbol: str
    category: str | None = None
    total_shares_bought: Decimal
    total_shares_sold: Decimal
    avg_buy_price: Decimal
    avg_sell_price: Decimal
    total_bought_amount: Decimal
    total_sold_amount: Decimal
    realized_pnl: Decimal
    pnl_percent: Decimal
    buy_transactions: list[TransactionSchema] = Field(default_factory=list)
    sell_transactions: list[TransactionSchema] = Field(default_factory=list)


class PortfolioSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position_count: int
    total_investment: Decimal
    current_value: Decimal
    total_pnl: Decimal
    total_pnl_percent: Decimal
    gainers: int
    losers: int
    category_count: int
    realized_gain: Decimal
    dividend_total: Decimal
    best_performer: EarningsBreakdownSchema | None = None
    worst_performer: EarningsBreakdownSchema | None = None
    xirr_percent: float | None = Field(default=None, description="Null when no rate can be solved.")


__all__ = [
    "TransactionCreateRequest",
    "DividendCreateRequest",
    "TransactionSchema",
    "DailyChangeSchema",
    "EarningsBreakdownSchema",
    "ClosedPositionSchema",
    "PortfolioSummarySchema",
]
