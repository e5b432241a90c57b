from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from portfolio_ledger import CachingPriceSource, PriceCache, PriceSnapshot, Quote
from portfolio_ledger.prices import InMemoryPriceSource


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def test_quote_treats_non_positive_values_as_missing():
    quote = Quote("hbl", price=0, reference_close="101.5", day_low=-1)
    assert quote.symbol == "HBL"
    assert quote.price is None
    assert not quote.has_price
    assert quote.reference_close == Decimal("101.5")
    assert quote.day_low is None


def test_cache_entries_expire_after_ttl():
    clock = FakeClock()
    cache = PriceCache(ttl=timedelta(minutes=15), clock=clock)
    cache.put(Quote("HBL", price=100))
    clock.advance(minutes=14)
    assert cache.get("hbl").price == Decimal("100")
    clock.advance(minutes=1)
    assert cache.get("HBL") is None
    assert cache.purge_expired() == 1
    assert len(cache) == 0


def test_default_ttl_comes_from_settings(monkeypatch):
    monkeypatch.setenv("PORTFOLIO_LEDGER_PRICE_CACHE_TTL_SECONDS", "60")
    assert PriceCache().ttl == timedelta(seconds=60)


def test_snapshot_is_read_only_and_excludes_expired():
    clock = FakeClock()
    cache = PriceCache(ttl=timedelta(minutes=15), clock=clock)
    cache.put(Quote("HBL", price=100, reference_close=98))
    clock.advance(minutes=10)
    cache.put(Quote("PSO", price=200))
    clock.advance(minutes=6)

    snapshot = cache.snapshot()
    assert list(snapshot) == ["PSO"]
    assert snapshot.price("pso") == Decimal("200")
    assert snapshot.price("HBL") is None
    with pytest.raises(TypeError):
        snapshot["HBL"] = Quote("HBL", price=1)  # type: ignore[index]

    cache.put(Quote("HBL", price=105))
    assert "HBL" not in snapshot


def test_snapshot_reference_closes():
    snapshot = PriceSnapshot.from_quotes([Quote("HBL", price=100, reference_close=98), Quote("PSO", price=5)])
    assert snapshot.reference_closes() == {"HBL": Decimal("98"), "PSO": None}


def test_caching_source_fetches_once_within_ttl():
    clock = FakeClock()
    delegate = InMemoryPriceSource({"HBL": {"price": "100.5", "reference_close": "99"}})
    source = CachingPriceSource(delegate, PriceCache(ttl=timedelta(minutes=15), clock=clock))

    assert source.fetch_quote("HBL").price == Decimal("100.5")
    assert source.fetch_quote("hbl").reference_close == Decimal("99")
    assert delegate.calls == ["HBL"]

    clock.advance(minutes=16)
    source.fetch_quote("HBL")
    assert delegate.calls == ["HBL", "HBL"]


def test_missing_quotes_are_not_cached():
    delegate = InMemoryPriceSource({})
    source = CachingPriceSource(delegate, PriceCache(ttl=timedelta(minutes=15), clock=FakeClock()))
    assert source.fetch_quote("NRL").price is None
    source.fetch_quote("NRL")
    assert delegate.calls == ["NRL", "NRL"]


def test_refresh_reports_updated_and_failed_symbols():
    delegate = InMemoryPriceSource({"HBL": {"price": 100}, "PSO": {"price": 200}})
    cache = PriceCache(ttl=timedelta(minutes=15), clock=FakeClock())
    source = CachingPriceSource(delegate, cache)
    source.fetch_quote("HBL")

    report = source.refresh(["HBL", "PSO", "NRL", "hbl"])
    assert report.updated == ["HBL", "PSO"]
    assert report.failed == ["NRL"]
    assert delegate.calls == ["HBL", "PSO", "NRL"]

    source.refresh(["HBL"], force=True)
    assert delegate.calls[-1] == "HBL"
    assert len(delegate.calls) == 4


def test_refresh_fills_the_cache_it_was_given():
    cache = PriceCache(ttl=timedelta(minutes=1), clock=FakeClock())
    source = CachingPriceSource(InMemoryPriceSource({"HBL": {"price": 100}}), cache)
    assert source.cache is cache

    source.refresh(["HBL"])
    assert cache.snapshot().price("HBL") == Decimal("100")
