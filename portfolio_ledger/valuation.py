"""Gain/loss breakdown for a single position."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .models import ZERO, DailyChange, EarningsBreakdown, Position, to_decimal

HUNDRED = Decimal("100")


def _percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    return numerator / denominator * HUNDRED if denominator > 0 else ZERO


def daily_change(
    position: Position, reference_close: Decimal | float | str | None
) -> Optional[DailyChange]:
    """Change since the prior close, or ``None`` when either price is unavailable."""

    if reference_close is None or position.current_price is None:
        return None
    reference = to_decimal(reference_close)
    if reference <= 0:
        return None
    move = position.current_price - reference
    return DailyChange(
        reference_close=reference,
        amount=move * position.shares,
        percent=move / reference * HUNDRED,
    )


def valuate(
    position: Position,
    dividend_total: Decimal | float | str = ZERO,
    reference_close: Decimal | float | str | None = None,
) -> EarningsBreakdown:
    """Value ``position`` at its current price, falling back to average cost.

    Overall percentages are measured against all capital ever deployed in the
    symbol (every BUY amount), so they stay meaningful after partial sells.
    The unrealized percentage is measured against the cost of shares held.
    """

    basis = position.basis
    dividends = to_decimal(dividend_total)
    price_is_estimated = position.current_price is None
    price = basis.average_cost if price_is_estimated else position.current_price

    market_value = basis.shares * price
    holding_cost = basis.shares * basis.average_cost
    unrealized = market_value - holding_cost
    realized = basis.realized_gain
    overall = unrealized + realized
    deployed = basis.total_bought_amount

    return EarningsBreakdown(
        symbol=position.symbol,
        category=position.category,
        shares=basis.shares,
        average_cost=basis.average_cost,
        price=price,
        price_is_estimated=price_is_estimated,
        market_value=market_value,
        holding_cost=holding_cost,
        unrealized_pnl=unrealized,
        unrealized_pnl_percent=_percent(unrealized, holding_cost),
        realized_capital_gain=realized,
        realized_dividend=dividends,
        capital_deployed=deployed,
        realized_percent=_percent(realized, deployed),
        overall_without_dividend=overall,
        overall_percent_without_dividend=_percent(overall, deployed),
        overall_with_dividend=overall + dividends,
        overall_percent_with_dividend=_percent(overall + dividends, deployed),
        total_sold_shares=basis.total_sold_shares,
        total_sold_value=basis.total_sold_amount,
        daily_change=daily_change(position, reference_close),
    )


__all__ = ["valuate", "daily_change"]
