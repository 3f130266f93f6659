"""Time-bounded in-memory cache for provider results."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable

from mapsearch.domain.models import SearchResult
from mapsearch.logging import logger

Clock = Callable[[], float]


def normalize_query(query: str) -> str:
    return query.strip().casefold()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    query: str
    results: tuple[SearchResult, ...]
    created_at: float


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    expirations: int = 0
    evictions: int = 0
    size: int = 0


class ResultCache:
    """Maps normalized query text to the results of the last successful search.

    Entries older than ``ttl_seconds`` are dropped when read. Once the cache
    holds more than ``max_entries`` the entries with the oldest creation time
    are evicted first.
    """

    def __init__(
        self,
        *,
        max_entries: int = 50,
        ttl_seconds: float = 300.0,
        clock: Clock = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._stats = CacheStats()

    @classmethod
    def from_settings(cls, settings, *, clock: Clock = time.monotonic) -> "ResultCache":
        return cls(
            max_entries=settings.max_entries,
            ttl_seconds=settings.ttl_seconds,
            clock=clock,
        )

    def get(self, query: str) -> tuple[SearchResult, ...] | None:
        key = normalize_query(query)
        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            return None
        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            self._stats.expirations += 1
            self._stats.misses += 1
            logger.debug("result_cache_expired", query=key)
            return None
        self._stats.hits += 1
        return entry.results

    def put(self, query: str, results: Iterable[SearchResult]) -> None:
        key = normalize_query(query)
        self._entries[key] = CacheEntry(query=key, results=tuple(results), created_at=self._clock())
        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            self._evict_oldest(overflow)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        self._stats.expirations += len(expired)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._stats.hits,
            misses=self._stats.misses,
            expirations=self._stats.expirations,
            evictions=self._stats.evictions,
            size=len(self._entries),
        )

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    def _evict_oldest(self, count: int) -> None:
        # dict order is insertion order, but an overwrite keeps the old slot
        oldest = sorted(self._entries.values(), key=lambda entry: entry.created_at)[:count]
        for entry in oldest:
            del self._entries[entry.query]
        self._stats.evictions += len(oldest)
        logger.debug(
            "result_cache_evicted",
            evicted=[entry.query for entry in oldest],
            size=len(self._entries),
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: object) -> bool:
        return isinstance(query, str) and normalize_query(query) in self._entries


__all__ = ["CacheEntry", "CacheStats", "ResultCache", "normalize_query"]
