"""Moving weighted-average cost basis for a single symbol."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .models import ZERO, CostBasis, Transaction, TransactionType

logger = logging.getLogger(__name__)


def group_by_symbol(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    grouped: Dict[str, List[Transaction]] = {}
    for tx in transactions:
        grouped.setdefault(tx.symbol, []).append(tx)
    return grouped


def sort_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Order by date; same-date transactions keep their insertion order."""

    return sorted(transactions, key=lambda tx: tx.date)


def compute_cost_basis(transactions: Iterable[Transaction]) -> CostBasis:
    """Replay a transaction log and return shares, average cost and realized gain.

    Sells remove shares at the running average cost, so the average of the
    remaining shares never moves on a sale. A sell larger than the current
    holding is clamped to what is held; the order-entry layer is expected to
    have rejected it already.
    """

    total_shares = ZERO
    total_cost = ZERO
    realized_gain = ZERO
    bought_shares = ZERO
    bought_amount = ZERO
    sold_shares = ZERO
    sold_amount = ZERO

    for tx in sort_transactions(transactions):
        if tx.type == TransactionType.BUY:
            total_cost += tx.shares * tx.price
            total_shares += tx.shares
            bought_shares += tx.shares
            bought_amount += tx.amount
            continue

        sold_shares += tx.shares
        sold_amount += tx.amount
        if total_shares <= 0:
            logger.warning("Ignoring sell %s of %s %s with no shares held", tx.id, tx.shares, tx.symbol)
            continue
        current_avg = total_cost / total_shares
        sold = min(tx.shares, total_shares)
        if sold < tx.shares:
            logger.warning(
                "Clamping sell %s of %s %s to %s shares held", tx.id, tx.shares, tx.symbol, total_shares
            )
        total_cost -= sold * current_avg
        total_shares -= sold
        realized_gain += sold * (tx.price - current_avg)
        if total_shares == 0:
            # drop rounding residue left by the division above
            total_cost = ZERO

    average_cost = total_cost / total_shares if total_shares > 0 else ZERO
    return CostBasis(
        shares=total_shares,
        average_cost=average_cost,
        cost_basis_amount=total_cost,
        realized_gain=realized_gain,
        total_bought_shares=bought_shares,
        total_bought_amount=bought_amount,
        total_sold_shares=sold_shares,
        total_sold_amount=sold_amount,
    )


__all__ = ["compute_cost_basis", "group_by_symbol", "sort_transactions"]
