"""Domain models used by the portfolio ledger."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Sequence

from .errors import ErrorKind, ValidationError

ZERO = Decimal("0")


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, value: "TransactionType | str") -> "TransactionType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(ErrorKind.INVALID_TYPE, f"Unknown transaction type {value!r}") from None


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Coerce user input to ``Decimal`` without inheriting binary float noise."""

    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(ErrorKind.INVALID_AMOUNT, f"Not a number: {value!r}") from None
    if not result.is_finite():
        raise ValidationError(ErrorKind.INVALID_AMOUNT, f"Not a finite number: {value!r}")
    return result


def to_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def normalize_symbol(symbol: str) -> str:
    normalized = (symbol or "").strip().upper()
    if not normalized:
        raise ValidationError(ErrorKind.INVALID_SYMBOL, "symbol must not be empty")
    return normalized


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Transaction:
    """A single BUY or SELL of one symbol."""

    symbol: str
    type: TransactionType
    shares: Decimal
    price: Decimal
    date: datetime
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        object.__setattr__(self, "type", TransactionType.parse(self.type))
        object.__setattr__(self, "shares", to_decimal(self.shares))
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "date", to_datetime(self.date))
        if not self.shares > 0:
            raise ValidationError(ErrorKind.INVALID_SHARES, "shares must be > 0")
        if not self.price > 0:
            raise ValidationError(ErrorKind.INVALID_PRICE, "price must be > 0")

    @property
    def amount(self) -> Decimal:
        return self.shares * self.price

    @property
    def is_buy(self) -> bool:
        return self.type == TransactionType.BUY


@dataclass(frozen=True)
class Dividend:
    """Cash dividend received for a symbol; realized income outside the cost basis."""

    symbol: str
    amount: Decimal
    date: datetime
    notes: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "date", to_datetime(self.date))
        if not self.amount > 0:
            raise ValidationError(ErrorKind.INVALID_AMOUNT, "dividend amount must be > 0")


@dataclass(frozen=True)
class CashFlow:
    """Dated cash flow; outflows negative, inflows positive."""

    amount: Decimal
    date: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "date", to_datetime(self.date))


@dataclass(frozen=True)
class CostBasis:
    shares: Decimal = ZERO
    average_cost: Decimal = ZERO
    cost_basis_amount: Decimal = ZERO
    realized_gain: Decimal = ZERO
    total_bought_shares: Decimal = ZERO
    total_bought_amount: Decimal = ZERO
    total_sold_shares: Decimal = ZERO
    total_sold_amount: Decimal = ZERO


@dataclass(frozen=True)
class Position:
    """A holding in one symbol, always derived from its transaction log.

    Use :meth:`from_transactions`; ``basis`` is the replay of ``transactions`` and
    is never edited on its own.
    """

    symbol: str
    transactions: tuple[Transaction, ...]
    basis: CostBasis
    current_price: Optional[Decimal] = None
    category: Optional[str] = None

    @classmethod
    def from_transactions(
        cls,
        symbol: str,
        transactions: Sequence[Transaction],
        *,
        current_price: Decimal | float | str | None = None,
        category: str | None = None,
    ) -> "Position":
        from .cost_basis import compute_cost_basis, sort_transactions

        symbol = normalize_symbol(symbol)
        ordered = tuple(sort_transactions(tx for tx in transactions if tx.symbol == symbol))
        price = to_decimal(current_price) if current_price is not None else None
        if price is not None and price <= 0:
            price = None
        return cls(
            symbol=symbol,
            transactions=ordered,
            basis=compute_cost_basis(ordered),
            current_price=price,
            category=category,
        )

    @property
    def shares(self) -> Decimal:
        return self.basis.shares

    @property
    def average_cost(self) -> Decimal:
        return self.basis.average_cost

    @property
    def is_open(self) -> bool:
        return self.basis.shares > 0

    @property
    def opened_at(self) -> datetime | None:
        return self.transactions[0].date if self.transactions else None


@dataclass(frozen=True)
class DailyChange:
    reference_close: Decimal
    amount: Decimal
    percent: Decimal


@dataclass(frozen=True)
class EarningsBreakdown:
    """Unrealized, realized and overall gain/loss for one position."""

    symbol: str
    category: Optional[str]
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
    realized_percent: Decimal
    overall_without_dividend: Decimal
    overall_percent_without_dividend: Decimal
    overall_with_dividend: Decimal
    overall_percent_with_dividend: Decimal
    total_sold_shares: Decimal
    total_sold_value: Decimal
    daily_change: Optional[DailyChange] = None

    @property
    def total_gain(self) -> Decimal:
        return self.overall_with_dividend


@dataclass(frozen=True)
class ClosedPositionSummary:
    symbol: str
    category: Optional[str]
    total_shares_bought: Decimal
    total_shares_sold: Decimal
    avg_buy_price: Decimal
    avg_sell_price: Decimal
    total_bought_amount: Decimal
    total_sold_amount: Decimal
    realized_pnl: Decimal
    pnl_percent: Decimal
    buy_transactions: tuple[Transaction, ...] = ()
    sell_transactions: tuple[Transaction, ...] = ()


@dataclass(frozen=True)
class Quote:
    """Latest market data for a symbol; non-positive values count as missing."""

    symbol: str
    price: Optional[Decimal] = None
    reference_close: Optional[Decimal] = None
    high_52w: Optional[Decimal] = None
    day_low: Optional[Decimal] = None
    day_high: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        for name in ("price", "reference_close", "high_52w", "day_low", "day_high"):
            value = getattr(self, name)
            if value is None:
                continue
            value = to_decimal(value)
            object.__setattr__(self, name, value if value > 0 else None)

    @property
    def has_price(self) -> bool:
        return self.price is not None
