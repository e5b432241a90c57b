"""Dividend income totals."""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable

from .models import ZERO, Dividend, normalize_symbol


def total_by_symbol(dividends: Iterable[Dividend]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for dividend in dividends:
        totals[dividend.symbol] = totals.get(dividend.symbol, ZERO) + dividend.amount
    return totals


def total_for(dividends: Iterable[Dividend], symbol: str) -> Decimal:
    symbol = normalize_symbol(symbol)
    return sum((d.amount for d in dividends if d.symbol == symbol), ZERO)


def grand_total(dividends: Iterable[Dividend]) -> Decimal:
    return sum((d.amount for d in dividends), ZERO)


__all__ = ["total_by_symbol", "total_for", "grand_total"]
