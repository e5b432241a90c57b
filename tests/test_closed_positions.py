from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from portfolio_ledger import Position, Transaction, aggregate_closed, closed_totals

DAY0 = datetime(2024, 1, 1)


def _tx(symbol, kind, shares, price, day):
    return Transaction(symbol=symbol, type=kind, shares=shares, price=price, date=DAY0 + timedelta(days=day))


def test_fully_sold_symbol_is_summarized():
    log = [
        _tx("HBL", "BUY", 100, 100, 0),
        _tx("HBL", "BUY", 50, 110, 30),
        _tx("HBL", "SELL", 150, 120, 60),
    ]
    [summary] = aggregate_closed(log)
    assert summary.symbol == "HBL"
    assert summary.total_shares_bought == Decimal("150")
    assert summary.total_shares_sold == Decimal("150")
    assert summary.avg_buy_price.quantize(Decimal("0.01")) == Decimal("103.33")
    assert summary.avg_sell_price == Decimal("120")
    assert summary.realized_pnl == Decimal("2500")
    assert summary.pnl_percent == pytest.approx(Decimal("16.13"), abs=Decimal("0.01"))
    assert len(summary.buy_transactions) == 2
    assert len(summary.sell_transactions) == 1


def test_open_symbols_are_excluded():
    log = [
        _tx("HBL", "BUY", 10, 100, 0),
        _tx("HBL", "SELL", 10, 110, 1),
        _tx("UBL", "BUY", 10, 100, 0),
        _tx("UBL", "SELL", 4, 110, 1),
        _tx("MCB", "BUY", 10, 100, 0),
    ]
    summaries = aggregate_closed(log)
    assert [s.symbol for s in summaries] == ["HBL"]


def test_reopened_symbol_is_excluded_until_closed_again():
    log = [
        _tx("LUCK", "BUY", 10, 500, 0),
        _tx("LUCK", "SELL", 10, 550, 5),
        _tx("LUCK", "BUY", 5, 520, 10),
    ]
    assert aggregate_closed(log) == []

    log.append(_tx("LUCK", "SELL", 5, 600, 20))
    [summary] = aggregate_closed(log)
    assert summary.total_shares_bought == Decimal("15")
    assert summary.total_bought_amount == Decimal("7600")
    assert summary.total_sold_amount == Decimal("8500")
    assert summary.realized_pnl == Decimal("900")


def test_fractional_remainder_within_epsilon_counts_as_closed():
    log = [_tx("SYS", "BUY", "10", 100, 0), _tx("SYS", "SELL", "9.99995", 101, 1)]
    assert [s.symbol for s in aggregate_closed(log)] == ["SYS"]
    assert aggregate_closed(log, epsilon=Decimal("0.00001")) == []


def test_zero_current_shares_qualifies_even_when_log_is_unbalanced():
    log = [_tx("KEL", "BUY", 10, 5, 0), _tx("KEL", "SELL", 15, 6, 1)]
    [summary] = aggregate_closed(log)
    assert summary.total_shares_sold == Decimal("15")


def test_current_shares_come_from_supplied_positions():
    log = [_tx("FFC", "BUY", 10, 100, 0), _tx("FFC", "SELL", 10, 90, 1)]
    positions = {"FFC": Position.from_transactions("FFC", log, category="Fertilizer")}
    [summary] = aggregate_closed(log, positions)
    assert summary.category == "Fertilizer"
    assert summary.realized_pnl == Decimal("-100")
    assert summary.pnl_percent == Decimal("-10")


def test_each_closed_symbol_appears_once_sorted_by_pnl_then_symbol():
    log = [
        _tx("BBB", "BUY", 1, 10, 0),
        _tx("BBB", "SELL", 1, 15, 1),
        _tx("AAA", "BUY", 1, 20, 0),
        _tx("AAA", "SELL", 1, 25, 1),
        _tx("CCC", "BUY", 2, 10, 0),
        _tx("CCC", "SELL", 1, 30, 1),
        _tx("CCC", "SELL", 1, 30, 2),
        _tx("DDD", "BUY", 1, 10, 0),
        _tx("DDD", "SELL", 1, 8, 1),
    ]
    summaries = aggregate_closed(log)
    assert [s.symbol for s in summaries] == ["CCC", "AAA", "BBB", "DDD"]


def test_closed_totals():
    log = [
        _tx("AAA", "BUY", 10, 10, 0),
        _tx("AAA", "SELL", 10, 12, 1),
        _tx("BBB", "BUY", 10, 10, 0),
        _tx("BBB", "SELL", 10, 9, 1),
    ]
    totals = closed_totals(aggregate_closed(log))
    assert totals.total_bought == Decimal("200")
    assert totals.total_sold == Decimal("210")
    assert totals.total_pnl == Decimal("10")
    assert totals.total_shares == Decimal("20")
    assert (totals.profitable_count, totals.loss_count) == (1, 1)
    assert totals.pnl_percent == Decimal("5")
    assert totals.is_positive
