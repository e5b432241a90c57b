"""Core package for the portfolio ledger and valuation engine."""

from .closed_positions import aggregate_closed, closed_totals
from .cost_basis import compute_cost_basis
from .errors import (
    ErrorKind,
    InsufficientSharesError,
    LedgerError,
    OrderCheck,
    UnknownSymbolError,
    ValidationError,
)
from .ledger import Ledger
from .models import (
    CashFlow,
    ClosedPositionSummary,
    CostBasis,
    Dividend,
    EarningsBreakdown,
    Position,
    Quote,
    Transaction,
    TransactionType,
)
from .portfolio import build_positions, daily_summary, portfolio_xirr, summarize_portfolio
from .prices import CachingPriceSource, PriceCache, PriceSnapshot
from .valuation import daily_change, valuate
from .xirr import xirr, xnpv

__all__ = [
    "CashFlow",
    "ClosedPositionSummary",
    "CostBasis",
    "Dividend",
    "EarningsBreakdown",
    "Position",
    "Quote",
    "Transaction",
    "TransactionType",
    "ErrorKind",
    "LedgerError",
    "ValidationError",
    "UnknownSymbolError",
    "InsufficientSharesError",
    "OrderCheck",
    "Ledger",
    "PriceCache",
    "PriceSnapshot",
    "CachingPriceSource",
    "compute_cost_basis",
    "valuate",
    "daily_change",
    "aggregate_closed",
    "closed_totals",
    "build_positions",
    "summarize_portfolio",
    "daily_summary",
    "portfolio_xirr",
    "xirr",
    "xnpv",
]
