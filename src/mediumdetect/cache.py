# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Per-hostname detection cache with TTL freshness and LRU bound.

Pure Python module — no network dependencies.

Keyed by hostname, not URL: paths and query strings do not change the
decision, so every URL on one host shares an entry.  Both positive and
negative outcomes are stored (miss-caching) so a non-Medium host is not
re-probed inside the TTL window.

NOTE: designed for a single event loop.  No lock; concurrent writes to
the same hostname are last-write-wins, and duplicate probes for an
uncached host are tolerated.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 10 * 60.0
CACHE_MAX_ENTRIES = 1024


# ---------------------------------------------------------------------------
# Cache entry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Last classification outcome for one hostname."""

    timestamp: float  # cache clock seconds at resolution time
    is_medium: bool
    score: int
    reasons: tuple[str, ...] = ()

    def is_fresh(self, now: float, ttl: float) -> bool:
        return (now - self.timestamp) < ttl


# ---------------------------------------------------------------------------
# Cache stats (observability)
# ---------------------------------------------------------------------------


@dataclass
class CacheStats:
    """Counters for cache behaviour."""

    hits: int = 0
    misses: int = 0
    ttl_expirations: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


def normalize_hostname(hostname: str) -> str:
    return hostname.strip().lower().rstrip(".")


# ---------------------------------------------------------------------------
# DetectionCache
# ---------------------------------------------------------------------------


class DetectionCache:
    """TTL-bounded, LRU-capped mapping hostname -> CacheEntry."""

    def __init__(
        self,
        max_entries: int = CACHE_MAX_ENTRIES,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self._max_entries = max_entries
        self._ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._stats = CacheStats()

    def now(self) -> float:
        """Current time on the cache clock (use for CacheEntry.timestamp)."""
        return self._clock()

    @property
    def ttl(self) -> float:
        return self._ttl

    # -- Lookup --

    def get(self, hostname: str) -> CacheEntry | None:
        """Return the fresh entry for *hostname*, or None if absent or stale."""
        key = normalize_hostname(hostname)
        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            return None
        if not entry.is_fresh(self._clock(), self._ttl):
            self._entries.pop(key, None)
            self._stats.ttl_expirations += 1
            self._stats.misses += 1
            logger.debug("Cache TTL expired: %s", key)
            return None
        self._entries.move_to_end(key)
        self._stats.hits += 1
        return entry

    # -- Store --

    def set(self, hostname: str, entry: CacheEntry) -> None:
        """Store (or overwrite) the outcome for *hostname*."""
        key = normalize_hostname(hostname)
        self._entries[key] = entry
        self._entries.move_to_end(key)

        while len(self._entries) > self._max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            self._stats.evictions += 1
            logger.debug("Cache eviction: %s", evicted_key)

        logger.debug(
            "Cache store: host=%s is_medium=%s score=%d size=%d",
            key,
            entry.is_medium,
            entry.score,
            len(self._entries),
        )

    # -- Invalidation --

    def invalidate(self, hostname: str | None = None) -> None:
        """Drop one hostname, or everything when *hostname* is None."""
        if hostname is None:
            self._entries.clear()
        else:
            self._entries.pop(normalize_hostname(hostname), None)

    # -- Introspection --

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, hostname: object) -> bool:
        return isinstance(hostname, str) and normalize_hostname(hostname) in self._entries
