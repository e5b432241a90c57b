"""Tabular views of ledger results for rendering layers."""

from __future__ import annotations

from dataclasses import asdict
from typing import Dict, Iterable, Mapping

import pandas as pd

from .config import get_settings
from .models import ClosedPositionSummary, EarningsBreakdown, Position, Quote

POSITION_COLUMNS = [
    "symbol",
    "category",
    "shares",
    "average_cost",
    "price",
    "price_is_estimated",
    "market_value",
    "holding_cost",
    "unrealized_pnl",
    "unrealized_pnl_percent",
    "realized_capital_gain",
    "realized_dividend",
    "overall_with_dividend",
    "overall_percent_with_dividend",
]

CLOSED_COLUMNS = [
    "symbol",
    "category",
    "total_shares_bought",
    "total_shares_sold",
    "avg_buy_price",
    "avg_sell_price",
    "total_bought_amount",
    "total_sold_amount",
    "realized_pnl",
    "pnl_percent",
]

MOVER_COLUMNS = ["symbol", "price", "reference_close", "change_percent", "change_amount"]


def _to_float(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    for column in columns:
        df[column] = pd.to_numeric(df[column], errors="coerce").astype(float)
    return df


def positions_frame(breakdowns: Iterable[EarningsBreakdown]) -> pd.DataFrame:
    rows = [{column: getattr(b, column) for column in POSITION_COLUMNS} for b in breakdowns]
    df = pd.DataFrame(rows, columns=POSITION_COLUMNS)
    numeric = [c for c in POSITION_COLUMNS if c not in {"symbol", "category", "price_is_estimated"}]
    return _to_float(df, numeric).set_index("symbol")


def closed_positions_frame(summaries: Iterable[ClosedPositionSummary]) -> pd.DataFrame:
    rows = []
    for summary in summaries:
        row = asdict(summary)
        rows.append({column: row[column] for column in CLOSED_COLUMNS})
    df = pd.DataFrame(rows, columns=CLOSED_COLUMNS)
    return _to_float(df, CLOSED_COLUMNS[2:]).set_index("symbol")


def _quotes_frame(positions: Mapping[str, Position], quotes: Mapping[str, Quote]) -> pd.DataFrame:
    rows = []
    for symbol, position in positions.items():
        quote = quotes.get(symbol)
        if not position.is_open or quote is None or not quote.has_price:
            continue
        rows.append(
            {
                "symbol": symbol,
                "shares": position.shares,
                "price": quote.price,
                "reference_close": quote.reference_close,
                "high_52w": quote.high_52w,
                "day_low": quote.day_low,
                "day_high": quote.day_high,
            }
        )
    columns = ["symbol", "shares", "price", "reference_close", "high_52w", "day_low", "day_high"]
    df = pd.DataFrame(rows, columns=columns)
    return _to_float(df, columns[1:])


def daily_movers(
    positions: Mapping[str, Position],
    quotes: Mapping[str, Quote],
    limit: int | None = None,
) -> Dict[str, pd.DataFrame]:
    """Top gainers/losers, 52-week droppers and most volatile open positions.

    Daily moves only include quotes with a prior close; droppers need a 52-week
    high and volatility needs an intraday low and high.
    """

    if limit is None:
        limit = get_settings().daily_movers_limit
    df = _quotes_frame(positions, quotes)

    moves = df.dropna(subset=["reference_close"]).copy()
    moves["change_amount"] = (moves["price"] - moves["reference_close"]) * moves["shares"]
    moves["change_percent"] = (moves["price"] - moves["reference_close"]) / moves["reference_close"] * 100
    moves = moves.sort_values("symbol")[MOVER_COLUMNS]

    gainers = moves[moves["change_percent"] > 0]
    losers = moves[moves["change_percent"] < 0]

    droppers = df.dropna(subset=["high_52w"]).copy()
    droppers = droppers[droppers["price"] < droppers["high_52w"]]
    droppers["drop_from_52w"] = (droppers["high_52w"] - droppers["price"]) / droppers["high_52w"] * 100

    volatile = df.dropna(subset=["day_low", "day_high"]).copy()
    volatile["volatility"] = (volatile["day_high"] - volatile["day_low"]) / volatile["day_low"] * 100

    return {
        "gainers_by_percent": gainers.nlargest(limit, "change_percent", keep="first"),
        "gainers_by_amount": gainers.nlargest(limit, "change_amount", keep="first"),
        "losers_by_percent": losers.nsmallest(limit, "change_percent", keep="first"),
        "losers_by_amount": losers.nsmallest(limit, "change_amount", keep="first"),
        "week_52_droppers": droppers.sort_values("symbol")
        .nlargest(limit, "drop_from_52w", keep="first")[["symbol", "price", "high_52w", "drop_from_52w"]],
        "most_volatile": volatile.sort_values("symbol")
        .nlargest(limit, "volatility", keep="first")[["symbol", "day_low", "day_high", "volatility"]],
    }


__all__ = ["positions_frame", "closed_positions_frame", "daily_movers"]
