"""Error taxonomy for the portfolio ledger."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_SHARES = "INVALID_SHARES"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_SYMBOL = "INVALID_SYMBOL"
    UNKNOWN_SYMBOL = "UNKNOWN_SYMBOL"
    INSUFFICIENT_SHARES = "INSUFFICIENT_SHARES"


class LedgerError(Exception):
    """Base class for ledger failures."""


class ValidationError(LedgerError, ValueError):
    """A record was rejected before it could enter the ledger."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


class UnknownSymbolError(LedgerError, KeyError):
    def __init__(self, symbol: str):
        super().__init__(f"Stock {symbol} not found")
        self.kind = ErrorKind.UNKNOWN_SYMBOL
        self.symbol = symbol

    def __str__(self) -> str:
        return str(self.args[0])


class InsufficientSharesError(LedgerError):
    def __init__(self, symbol: str, requested: Decimal, available: Decimal):
        super().__init__(f"Cannot sell more than {available} shares of {symbol} (requested {requested})")
        self.kind = ErrorKind.INSUFFICIENT_SHARES
        self.symbol = symbol
        self.requested = requested
        self.available = available


class TransactionNotFoundError(LedgerError, KeyError):
    def __init__(self, symbol: str, transaction_id: str):
        super().__init__(f"Transaction {transaction_id} not found for {symbol}")
        self.symbol = symbol
        self.transaction_id = transaction_id

    def __str__(self) -> str:
        return str(self.args[0])


@dataclass(frozen=True)
class OrderCheck:
    """Outcome of an order-entry check; ``error`` is ``None`` when the order may proceed."""

    symbol: str
    requested: Decimal
    available: Decimal
    error: ErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise the exception matching ``error``, if any."""

        if self.error is None:
            return
        if self.error == ErrorKind.UNKNOWN_SYMBOL:
            raise UnknownSymbolError(self.symbol)
        if self.error == ErrorKind.INSUFFICIENT_SHARES:
            raise InsufficientSharesError(self.symbol, self.requested, self.available)
        raise ValidationError(self.error, self.detail or self.error.value)


__all__ = [
    "ErrorKind",
    "LedgerError",
    "ValidationError",
    "UnknownSymbolError",
    "InsufficientSharesError",
    "TransactionNotFoundError",
    "OrderCheck",
]
