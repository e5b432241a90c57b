"""Price sources, the TTL quote cache and read-only price snapshots.

Valuation code never reads a cache directly. Callers take a
:class:`PriceSnapshot` from :meth:`PriceCache.snapshot` (or build one from
quotes) and pass it in, so every computation sees a fixed set of prices.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, MutableMapping, Protocol

from .config import get_settings
from .models import Quote, normalize_symbol

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceSource(Protocol):
    """Pluggable market data provider."""

    def fetch_quote(self, symbol: str) -> Quote:
        ...


class InMemoryPriceSource:
    """Simple price source for tests and examples."""

    def __init__(self, quotes: Mapping[str, Mapping[str, Decimal | str | float | None]]):
        self._quotes: dict[str, Quote] = {}
        for symbol, values in quotes.items():
            quote = Quote(symbol=symbol, **values)
            self._quotes[quote.symbol] = quote
        self.calls: list[str] = []

    def fetch_quote(self, symbol: str) -> Quote:
        symbol = normalize_symbol(symbol)
        self.calls.append(symbol)
        return self._quotes.get(symbol, Quote(symbol=symbol))


class PriceSnapshot(Mapping[str, Quote]):
    """Immutable symbol -> quote view handed to valuation calls."""

    def __init__(self, quotes: Mapping[str, Quote] | None = None):
        self._quotes = MappingProxyType(dict(quotes or {}))

    @classmethod
    def from_quotes(cls, quotes: Iterable[Quote]) -> "PriceSnapshot":
        return cls({quote.symbol: quote for quote in quotes})

    @classmethod
    def from_prices(cls, prices: Mapping[str, Decimal | float | str | None]) -> "PriceSnapshot":
        return cls.from_quotes(Quote(symbol=symbol, price=price) for symbol, price in prices.items())

    def __getitem__(self, symbol: str) -> Quote:
        return self._quotes[normalize_symbol(symbol)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._quotes)

    def __len__(self) -> int:
        return len(self._quotes)

    def price(self, symbol: str) -> Decimal | None:
        quote = self.get(symbol)
        return quote.price if quote is not None else None

    def reference_close(self, symbol: str) -> Decimal | None:
        quote = self.get(symbol)
        return quote.reference_close if quote is not None else None

    def reference_closes(self) -> Dict[str, Decimal | None]:
        return {symbol: quote.reference_close for symbol, quote in self._quotes.items()}


@dataclass(frozen=True)
class _CacheEntry:
    quote: Quote
    expires_at: datetime


class PriceCache:
    """Quotes keyed by symbol, each valid until its expiry time."""

    def __init__(self, ttl: timedelta | None = None, clock: Clock | None = None):
        if ttl is None:
            ttl = timedelta(seconds=get_settings().price_cache_ttl_seconds)
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock or _utcnow
        self._entries: MutableMapping[str, _CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, symbol: str) -> Quote | None:
        entry = self._entries.get(normalize_symbol(symbol))
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry.quote

    def put(self, quote: Quote) -> None:
        self._entries[quote.symbol] = _CacheEntry(quote=quote, expires_at=self._clock() + self.ttl)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [symbol for symbol, entry in self._entries.items() if entry.expires_at <= now]
        for symbol in expired:
            del self._entries[symbol]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> PriceSnapshot:
        now = self._clock()
        return PriceSnapshot(
            {symbol: entry.quote for symbol, entry in self._entries.items() if entry.expires_at > now}
        )


@dataclass
class RefreshReport:
    updated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class CachingPriceSource:
    """Fetch-through wrapper that keeps successful quotes in a :class:`PriceCache`."""

    def __init__(self, delegate: PriceSource, cache: PriceCache | None = None):
        self.delegate = delegate
        self.cache = cache if cache is not None else PriceCache()

    def fetch_quote(self, symbol: str) -> Quote:
        cached = self.cache.get(symbol)
        if cached is not None:
            logger.debug("Using cached quote for %s", cached.symbol)
            return cached
        quote = self.delegate.fetch_quote(symbol)
        if quote.has_price:
            self.cache.put(quote)
        return quote

    def refresh(self, symbols: Iterable[str], *, force: bool = False) -> RefreshReport:
        """Fetch quotes for ``symbols``; ``force`` skips cached entries."""

        if force:
            self.cache.clear()
        report = RefreshReport()
        for symbol in dict.fromkeys(normalize_symbol(s) for s in symbols):
            quote = self.fetch_quote(symbol)
            (report.updated if quote.has_price else report.failed).append(symbol)
        if report.failed:
            logger.warning("Could not fetch prices for %s", ", ".join(report.failed))
        logger.info("Updated prices for %d symbol(s)", len(report.updated))
        return report


__all__ = [
    "PriceSource",
    "InMemoryPriceSource",
    "PriceSnapshot",
    "PriceCache",
    "CachingPriceSource",
    "RefreshReport",
]
