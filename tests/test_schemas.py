from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pydantic
import pytest

from portfolio_ledger import Transaction, TransactionType, aggregate_closed
from portfolio_ledger.schemas import (
    ClosedPositionSchema,
    DividendCreateRequest,
    EarningsBreakdownSchema,
    TransactionCreateRequest,
)
from portfolio_ledger.valuation import valuate
from portfolio_ledger.models import Position


def test_transaction_request_normalizes_and_converts():
    request = TransactionCreateRequest(
        symbol=" luck ", type="buy", shares="10", price="512.25", date="2024-02-01T10:00:00"
    )
    tx = request.to_transaction()
    assert tx.symbol == "LUCK"
    assert tx.type == TransactionType.BUY
    assert tx.amount == Decimal("5122.50")
    assert tx.date == datetime(2024, 2, 1, 10, 0)


@pytest.mark.parametrize(
    "payload",
    [
        {"symbol": "LUCK", "type": "BUY", "shares": "0", "price": "10", "date": "2024-02-01"},
        {"symbol": "LUCK", "type": "BUY", "shares": "5", "price": "-1", "date": "2024-02-01"},
        {"symbol": "LUCK", "type": "HOLD", "shares": "5", "price": "10", "date": "2024-02-01"},
        {"symbol": "   ", "type": "SELL", "shares": "5", "price": "10", "date": "2024-02-01"},
    ],
)
def test_malformed_requests_are_rejected(payload):
    with pytest.raises(pydantic.ValidationError):
        TransactionCreateRequest(**payload)


def test_dividend_request():
    dividend = DividendCreateRequest(symbol="ppl", amount="250", date="2024-04-10T00:00:00").to_dividend()
    assert dividend.symbol == "PPL"
    assert dividend.amount == Decimal("250")


def test_closed_position_schema_reads_summary():
    log = [
        Transaction(symbol="HBL", type="BUY", shares=10, price=100, date=datetime(2024, 1, 1)),
        Transaction(symbol="HBL", type="SELL", shares=10, price=110, date=datetime(2024, 2, 1)),
    ]
    [summary] = aggregate_closed(log)
    schema = ClosedPositionSchema.model_validate(summary)
    assert schema.realized_pnl == Decimal("100")
    assert [t.type for t in schema.sell_transactions] == [TransactionType.SELL]
    assert schema.buy_transactions[0].amount == Decimal("1000")


def test_earnings_schema_marks_missing_daily_change_as_null():
    position = Position.from_transactions(
        "HBL",
        [Transaction(symbol="HBL", type="BUY", shares=10, price=100, date=datetime(2024, 1, 1))],
        current_price=105,
    )
    schema = EarningsBreakdownSchema.model_validate(valuate(position))
    dumped = schema.model_dump(mode="json")
    assert dumped["daily_change"] is None
    assert dumped["price_is_estimated"] is False
