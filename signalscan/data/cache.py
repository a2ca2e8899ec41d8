"""In-memory ticker snapshot cache for signalscan."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Hashable

from loguru import logger

from signalscan.models.market import Ticker24h


@dataclass(frozen=True)
class _Entry:
    tickers: tuple[Ticker24h, ...]
    fetched_at: float


class TickerSnapshotCache:
    """Time-boxed cache of 24h ticker snapshots.

    Entries are keyed by the query parameters the caller passes (quote
    asset, source, ...). A refresh builds a new entry and swaps it in; an
    entry is never modified in place, so a reader holding the old tuple
    keeps a consistent view.

    Args:
        ttl_seconds: How long a snapshot stays fresh.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _Entry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: Hashable) -> tuple[Ticker24h, ...] | None:
        """Return the cached snapshot for *key* if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl:
            return None
        return entry.tickers

    def put(self, key: Hashable, tickers: list[Ticker24h] | tuple[Ticker24h, ...]) -> tuple[Ticker24h, ...]:
        """Store a fresh snapshot under *key* and return it."""
        entry = _Entry(tickers=tuple(tickers), fetched_at=self._clock())
        self._entries[key] = entry
        return entry.tickers

    async def get_or_fetch(
        self,
        key: Hashable,
        fetch: Callable[[], Awaitable[list[Ticker24h]]],
    ) -> tuple[Ticker24h, ...]:
        """Return the fresh snapshot for *key*, calling *fetch* on a miss.

        Errors from *fetch* propagate and leave any stale entry untouched.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Ticker cache hit for {}", key)
            return cached
        logger.debug("Ticker cache miss for {} - fetching", key)
        return self.put(key, await fetch())

    def invalidate(self, key: Hashable) -> None:
        """Drop the entry for *key* (no-op if absent)."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
