"""Lifetime summaries for symbols whose holdings have been fully sold."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Mapping, Sequence

from .config import get_settings
from .cost_basis import compute_cost_basis, group_by_symbol, sort_transactions
from .models import ZERO, ClosedPositionSummary, Position, Transaction, TransactionType

HUNDRED = Decimal("100")


@dataclass
class _SymbolTotals:
    buys: List[Transaction]
    sells: List[Transaction]
    shares_bought: Decimal = ZERO
    shares_sold: Decimal = ZERO
    bought_amount: Decimal = ZERO
    sold_amount: Decimal = ZERO


@dataclass(frozen=True)
class ClosedTotals:
    total_bought: Decimal
    total_sold: Decimal
    total_pnl: Decimal
    total_shares: Decimal
    profitable_count: int
    loss_count: int
    pnl_percent: Decimal

    @property
    def is_positive(self) -> bool:
        return self.total_pnl >= 0


def _totals(transactions: Sequence[Transaction]) -> _SymbolTotals:
    totals = _SymbolTotals(buys=[], sells=[])
    for tx in transactions:
        if tx.type == TransactionType.BUY:
            totals.buys.append(tx)
            totals.shares_bought += tx.shares
            totals.bought_amount += tx.amount
        else:
            totals.sells.append(tx)
            totals.shares_sold += tx.shares
            totals.sold_amount += tx.amount
    return totals


def aggregate_closed(
    all_transactions: Iterable[Transaction],
    positions_by_symbol: Mapping[str, Position] | None = None,
    *,
    epsilon: Decimal | None = None,
) -> List[ClosedPositionSummary]:
    """Summarize every symbol with no remaining open exposure.

    A symbol qualifies once it has sold something and either holds zero shares
    now or its lifetime bought and sold quantities agree within ``epsilon``.
    Totals cover the whole lifetime log, across re-opens of the same ticker.
    Results are ordered best realized P&L first, then by symbol.
    """

    if epsilon is None:
        epsilon = get_settings().closed_position_epsilon
    positions = positions_by_symbol or {}

    summaries: List[ClosedPositionSummary] = []
    for symbol, transactions in group_by_symbol(all_transactions).items():
        transactions = sort_transactions(transactions)
        totals = _totals(transactions)
        if totals.shares_sold == 0:
            continue

        position = positions.get(symbol)
        current_shares = position.shares if position is not None else compute_cost_basis(transactions).shares
        balanced = abs(totals.shares_bought - totals.shares_sold) < epsilon
        if not (current_shares == 0 or balanced):
            continue

        realized = totals.sold_amount - totals.bought_amount
        summaries.append(
            ClosedPositionSummary(
                symbol=symbol,
                category=position.category if position is not None else None,
                total_shares_bought=totals.shares_bought,
                total_shares_sold=totals.shares_sold,
                avg_buy_price=totals.bought_amount / totals.shares_bought if totals.shares_bought else ZERO,
                avg_sell_price=totals.sold_amount / totals.shares_sold,
                total_bought_amount=totals.bought_amount,
                total_sold_amount=totals.sold_amount,
                realized_pnl=realized,
                pnl_percent=realized / totals.bought_amount * HUNDRED if totals.bought_amount > 0 else ZERO,
                buy_transactions=tuple(totals.buys),
                sell_transactions=tuple(totals.sells),
            )
        )

    summaries.sort(key=lambda s: s.symbol)
    summaries.sort(key=lambda s: s.realized_pnl, reverse=True)
    return summaries


def closed_totals(summaries: Sequence[ClosedPositionSummary]) -> ClosedTotals:
    total_bought = sum((p.total_bought_amount for p in summaries), ZERO)
    total_pnl = sum((p.realized_pnl for p in summaries), ZERO)
    return ClosedTotals(
        total_bought=total_bought,
        total_sold=sum((p.total_sold_amount for p in summaries), ZERO),
        total_pnl=total_pnl,
        total_shares=sum((p.total_shares_bought for p in summaries), ZERO),
        profitable_count=sum(1 for p in summaries if p.realized_pnl > 0),
        loss_count=sum(1 for p in summaries if p.realized_pnl < 0),
        pnl_percent=total_pnl / total_bought * HUNDRED if total_bought > 0 else ZERO,
    )


__all__ = ["ClosedTotals", "aggregate_closed", "closed_totals"]
