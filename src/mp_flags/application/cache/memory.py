"""Application cache – L1 in-process tier."""
from __future__ import annotations

import dataclasses
import threading

from mp_flags.flags.models import FeatureFlag
from mp_flags.kernel.time import Clock


@dataclasses.dataclass(frozen=True)
class CacheEntry:
    """A cached lookup; ``flag`` is ``None`` for a negative (not found) entry."""

    flag: FeatureFlag | None
    fetched_at: float
    ttl: float

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def is_fresh(self, now: float) -> bool:
        return self.age(now) < self.ttl


class MemoryTier:
    """Process-wide map of ``key → CacheEntry`` guarded by a lock.

    Expired entries are kept until ``stale_ceiling`` so the cache layer can
    serve them when the repository is down; past the ceiling they are dropped
    on access.
    """

    def __init__(self, clock: Clock, stale_ceiling: float) -> None:
        self._clock = clock
        self._stale_ceiling = stale_ceiling
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock.monotonic()

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for *key*, fresh or stale, or ``None``."""
        now = self.now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.age(now) > self._stale_ceiling:
                del self._entries[key]
                return None
            return entry

    def fresh(self, key: str) -> CacheEntry | None:
        entry = self.get(key)
        if entry is None or not entry.is_fresh(self.now()):
            return None
        return entry

    def put(self, key: str, flag: FeatureFlag | None, ttl: float) -> CacheEntry:
        entry = CacheEntry(flag=flag, fetched_at=self.now(), ttl=ttl)
        with self._lock:
            self._entries[key] = entry
        return entry

    def evict(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def flags(self) -> list[FeatureFlag]:
        """Every cached (non-negative) flag still within the stale ceiling."""
        now = self.now()
        with self._lock:
            return [
                e.flag
                for e in self._entries.values()
                if e.flag is not None and e.age(now) <= self._stale_ceiling
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


__all__ = ["CacheEntry", "MemoryTier"]
