"""Portfolio-level aggregation and the portfolio XIRR."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .config import get_settings
from .cost_basis import group_by_symbol
from .dividends import total_by_symbol
from .models import ZERO, CashFlow, Dividend, EarningsBreakdown, Position, Transaction, TransactionType
from .prices import PriceSnapshot
from .valuation import daily_change, valuate
from .xirr import xirr

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PortfolioSummary:
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
    best_performer: Optional[EarningsBreakdown] = None
    worst_performer: Optional[EarningsBreakdown] = None
    xirr_percent: Optional[float] = None

    @property
    def is_positive(self) -> bool:
        return self.total_pnl >= 0


@dataclass(frozen=True)
class DailySummary:
    amount: Decimal
    percent: Decimal
    priced_symbols: List[str] = field(default_factory=list)
    unavailable_symbols: List[str] = field(default_factory=list)

    @property
    def is_positive(self) -> bool:
        return self.amount >= 0


def build_positions(
    transactions: Iterable[Transaction],
    prices: PriceSnapshot | None = None,
    categories: Mapping[str, str] | None = None,
) -> Dict[str, Position]:
    """Replay each symbol's log into a :class:`Position` priced from ``prices``."""

    prices = prices or PriceSnapshot()
    categories = categories or {}
    return {
        symbol: Position.from_transactions(
            symbol,
            symbol_transactions,
            current_price=prices.price(symbol),
            category=categories.get(symbol),
        )
        for symbol, symbol_transactions in group_by_symbol(transactions).items()
    }


def valuate_all(
    positions: Mapping[str, Position],
    dividends: Iterable[Dividend] = (),
    reference_closes: Mapping[str, Decimal | None] | None = None,
) -> Dict[str, EarningsBreakdown]:
    dividend_totals = total_by_symbol(dividends)
    reference_closes = reference_closes or {}
    return {
        symbol: valuate(
            position,
            dividend_totals.get(symbol, ZERO),
            reference_closes.get(symbol),
        )
        for symbol, position in positions.items()
    }


def build_cash_flows(
    transactions: Iterable[Transaction],
    terminal_value: Decimal,
    as_of: datetime,
    *,
    include_sells: bool = False,
) -> List[CashFlow]:
    """Cash flows for the portfolio XIRR.

    Every BUY is an outflow at its date and ``terminal_value`` is an inflow at
    ``as_of``, as if everything still held were sold today. By default SELL
    proceeds are left out, which understates the return of a portfolio with
    past sales. ``include_sells`` adds each SELL as an inflow at its date;
    ``terminal_value`` must then cover only the shares still held.
    """

    flows: List[CashFlow] = []
    for tx in transactions:
        if tx.type == TransactionType.BUY:
            flows.append(CashFlow(amount=-tx.amount, date=tx.date))
        elif include_sells:
            flows.append(CashFlow(amount=tx.amount, date=tx.date))
    flows.append(CashFlow(amount=terminal_value, date=as_of))
    return flows


def market_value(positions: Iterable[Position]) -> Decimal:
    return sum((valuate(p).market_value for p in positions), ZERO)


def portfolio_xirr(
    positions: Mapping[str, Position],
    as_of: datetime | None = None,
    *,
    include_sells: bool = False,
    guess: float | None = None,
) -> float | None:
    """Annualized portfolio return as a percentage, or ``None`` if unavailable."""

    transactions = [tx for position in positions.values() for tx in position.transactions]
    if not transactions:
        return None
    if as_of is None:
        as_of = datetime.now(tz=transactions[0].date.tzinfo)
    if guess is None:
        guess = get_settings().xirr_guess

    flows = build_cash_flows(
        transactions, market_value(positions.values()), as_of, include_sells=include_sells
    )
    rate = xirr(flows, guess=guess)
    if rate is None:
        logger.info("Portfolio XIRR unavailable for %d cash flows", len(flows))
        return None
    return rate * 100


def _rank_by_return(breakdowns: Sequence[EarningsBreakdown]) -> List[EarningsBreakdown]:
    ranked = sorted(breakdowns, key=lambda b: b.symbol)
    ranked.sort(key=lambda b: b.unrealized_pnl_percent, reverse=True)
    return ranked


def summarize_portfolio(
    positions: Mapping[str, Position],
    dividends: Iterable[Dividend] = (),
    as_of: datetime | None = None,
    *,
    include_sells: bool = False,
) -> PortfolioSummary:
    """Headline figures for the open positions plus lifetime realized income."""

    dividends = list(dividends)
    breakdowns = valuate_all(positions, dividends)
    open_breakdowns = [b for symbol, b in breakdowns.items() if positions[symbol].is_open]

    total_investment = sum((b.holding_cost for b in open_breakdowns), ZERO)
    current_value = sum((b.market_value for b in open_breakdowns), ZERO)
    total_pnl = current_value - total_investment
    ranked = _rank_by_return(open_breakdowns)

    return PortfolioSummary(
        position_count=len(open_breakdowns),
        total_investment=total_investment,
        current_value=current_value,
        total_pnl=total_pnl,
        total_pnl_percent=total_pnl / total_investment * HUNDRED if total_investment > 0 else ZERO,
        gainers=sum(1 for b in open_breakdowns if b.price > b.average_cost),
        losers=sum(1 for b in open_breakdowns if b.price < b.average_cost),
        category_count=len({b.category for b in open_breakdowns if b.category}),
        realized_gain=sum((b.realized_capital_gain for b in breakdowns.values()), ZERO),
        dividend_total=sum((d.amount for d in dividends), ZERO),
        best_performer=ranked[0] if ranked else None,
        worst_performer=ranked[-1] if ranked else None,
        xirr_percent=portfolio_xirr(positions, as_of, include_sells=include_sells),
    )


def daily_summary(
    positions: Mapping[str, Position],
    reference_closes: Mapping[str, Decimal | None],
) -> DailySummary:
    """Day change across positions that have both a price and a prior close."""

    amount = ZERO
    reference_value = ZERO
    priced: List[str] = []
    unavailable: List[str] = []
    for symbol, position in sorted(positions.items()):
        if not position.is_open:
            continue
        change = daily_change(position, reference_closes.get(symbol))
        if change is None:
            unavailable.append(symbol)
            continue
        priced.append(symbol)
        amount += change.amount
        reference_value += change.reference_close * position.shares
    return DailySummary(
        amount=amount,
        percent=amount / reference_value * HUNDRED if reference_value > 0 else ZERO,
        priced_symbols=priced,
        unavailable_symbols=unavailable,
    )


__all__ = [
    "PortfolioSummary",
    "DailySummary",
    "build_positions",
    "valuate_all",
    "build_cash_flows",
    "market_value",
    "portfolio_xirr",
    "summarize_portfolio",
    "daily_summary",
]
