"""In-memory transaction ledger with order-entry checks.

The ledger owns the transaction and dividend logs and nothing else. Share
counts and average costs are always recomputed from the log, so deleting a
transaction simply replays what is left.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from .closed_positions import aggregate_closed
from .cost_basis import compute_cost_basis
from .errors import ErrorKind, OrderCheck, TransactionNotFoundError, UnknownSymbolError
from .models import (
    ClosedPositionSummary,
    Dividend,
    Position,
    Transaction,
    TransactionType,
    normalize_symbol,
    to_decimal,
)
from .portfolio import build_positions
from .prices import PriceSnapshot

logger = logging.getLogger(__name__)


class Ledger:
    """Minimal in-memory portfolio store."""

    def __init__(self):
        self._transactions: Dict[str, List[Transaction]] = {}
        self._categories: Dict[str, Optional[str]] = {}
        self._dividends: Dict[str, Dividend] = {}

    def symbols(self) -> List[str]:
        return sorted(self._transactions)

    def transactions(self, symbol: str | None = None) -> List[Transaction]:
        if symbol is None:
            return [tx for txs in self._transactions.values() for tx in txs]
        return list(self._transactions.get(normalize_symbol(symbol), []))

    def shares_held(self, symbol: str) -> Decimal:
        return compute_cost_basis(self.transactions(symbol)).shares

    def buy(
        self,
        symbol: str,
        shares: Decimal | float | str,
        price: Decimal | float | str,
        date: datetime | None = None,
        *,
        category: str | None = None,
    ) -> Transaction:
        tx = Transaction(
            symbol=symbol,
            type=TransactionType.BUY,
            shares=shares,
            price=price,
            date=date or datetime.now(),
        )
        if tx.symbol not in self._transactions:
            logger.info("Opening position in %s", tx.symbol)
            self._transactions[tx.symbol] = []
            self._categories[tx.symbol] = category
        elif category:
            self._categories[tx.symbol] = category
        self._transactions[tx.symbol].append(tx)
        return tx

    def check_sell(self, symbol: str, shares: Decimal | float | str) -> OrderCheck:
        """Decide whether a sell may be recorded, without raising."""

        symbol = normalize_symbol(symbol)
        requested = to_decimal(shares)
        if symbol not in self._transactions:
            return OrderCheck(
                symbol=symbol,
                requested=requested,
                available=Decimal("0"),
                error=ErrorKind.UNKNOWN_SYMBOL,
                detail=f"Stock {symbol} not found",
            )
        available = self.shares_held(symbol)
        if requested <= 0:
            return OrderCheck(
                symbol=symbol,
                requested=requested,
                available=available,
                error=ErrorKind.INVALID_SHARES,
                detail="shares must be > 0",
            )
        if requested > available:
            return OrderCheck(
                symbol=symbol,
                requested=requested,
                available=available,
                error=ErrorKind.INSUFFICIENT_SHARES,
                detail=f"Cannot sell more than {available} shares",
            )
        return OrderCheck(symbol=symbol, requested=requested, available=available)

    def sell(
        self,
        symbol: str,
        shares: Decimal | float | str,
        price: Decimal | float | str,
        date: datetime | None = None,
    ) -> Transaction:
        """Record a sell after :meth:`check_sell` accepts it.

        Raises ``UnknownSymbolError`` or ``InsufficientSharesError`` otherwise;
        nothing is appended in that case.
        """

        check = self.check_sell(symbol, shares)
        check.raise_for_error()
        tx = Transaction(
            symbol=check.symbol,
            type=TransactionType.SELL,
            shares=check.requested,
            price=price,
            date=date or datetime.now(),
        )
        self._transactions[tx.symbol].append(tx)
        if check.requested == check.available:
            logger.info("Sold all %s shares; position closed", tx.symbol)
        return tx

    def delete_transaction(self, symbol: str, transaction_id: str) -> None:
        symbol = normalize_symbol(symbol)
        if symbol not in self._transactions:
            raise UnknownSymbolError(symbol)
        remaining = [tx for tx in self._transactions[symbol] if tx.id != transaction_id]
        if len(remaining) == len(self._transactions[symbol]):
            raise TransactionNotFoundError(symbol, transaction_id)
        if remaining:
            self._transactions[symbol] = remaining
        else:
            logger.info("Removed last transaction of %s; dropping symbol", symbol)
            self.delete_symbol(symbol)

    def delete_symbol(self, symbol: str) -> None:
        symbol = normalize_symbol(symbol)
        if symbol not in self._transactions:
            raise UnknownSymbolError(symbol)
        del self._transactions[symbol]
        self._categories.pop(symbol, None)

    def set_category(self, symbol: str, category: str | None) -> None:
        symbol = normalize_symbol(symbol)
        if symbol not in self._transactions:
            raise UnknownSymbolError(symbol)
        self._categories[symbol] = category

    def add_dividend(
        self,
        symbol: str,
        amount: Decimal | float | str,
        date: datetime | None = None,
        notes: str | None = None,
    ) -> Dividend:
        dividend = Dividend(symbol=symbol, amount=amount, date=date or datetime.now(), notes=notes)
        self._dividends[dividend.id] = dividend
        return dividend

    def delete_dividend(self, dividend_id: str) -> None:
        if self._dividends.pop(dividend_id, None) is None:
            raise KeyError(f"Dividend {dividend_id} not found")

    def dividends(self, symbol: str | None = None) -> List[Dividend]:
        selected = list(self._dividends.values())
        if symbol is not None:
            symbol = normalize_symbol(symbol)
            selected = [d for d in selected if d.symbol == symbol]
        return sorted(selected, key=lambda d: d.date, reverse=True)

    def position(self, symbol: str, prices: PriceSnapshot | None = None) -> Position:
        symbol = normalize_symbol(symbol)
        if symbol not in self._transactions:
            raise UnknownSymbolError(symbol)
        return Position.from_transactions(
            symbol,
            self._transactions[symbol],
            current_price=prices.price(symbol) if prices is not None else None,
            category=self._categories.get(symbol),
        )

    def positions(self, prices: PriceSnapshot | None = None) -> Dict[str, Position]:
        return build_positions(self.transactions(), prices, self._categories)

    def closed_positions(self) -> List[ClosedPositionSummary]:
        return aggregate_closed(self.transactions(), self.positions())


__all__ = ["Ledger"]
