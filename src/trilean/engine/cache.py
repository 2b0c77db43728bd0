"""
Decision Cache

Memoization store for DecisionReports keyed by a content hash of
(blueprint, context). Entries expire after a TTL.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Protocol

from ..models.decision import DecisionReport

logger = logging.getLogger(__name__)


class DecisionCache(Protocol):
    """Storage interface the DecisionEngine memoizes through."""

    def get(self, key: str) -> Optional[DecisionReport]: ...

    def put(self, key: str, report: DecisionReport, ttl: float) -> None: ...


@dataclass(frozen=True)
class CacheEntry:
    report: DecisionReport
    expires_at: float


class InMemoryDecisionCache:
    """
    Thread-safe in-process cache with per-entry expiry.

    An entry is served only while ``expires_at > now``, so a TTL of 0
    never produces a hit. Expired entries are evicted on lookup and swept
    on insert once the earliest known expiry has passed.

    Usage:
        cache = InMemoryDecisionCache()
        cache.put("key", report, ttl=60)
        cache.get("key")   # report, until 60 seconds have elapsed
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        # lower bound on the expiry of any stored entry
        self._earliest_expiry = math.inf

    def get(self, key: str) -> Optional[DecisionReport]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.report

    def put(self, key: str, report: DecisionReport, ttl: float) -> None:
        with self._lock:
            now = self._clock()
            if now >= self._earliest_expiry:
                self._sweep(now)
            expires_at = now + ttl
            self._entries[key] = CacheEntry(report, expires_at)
            self._earliest_expiry = min(self._earliest_expiry, expires_at)

    def _sweep(self, now: float) -> None:
        """Drop every expired entry. Caller holds the lock."""
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._earliest_expiry = min((entry.expires_at for entry in self._entries.values()), default=math.inf)
        if expired:
            logger.debug("Swept %d expired decision cache entries", len(expired))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._earliest_expiry = math.inf

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
