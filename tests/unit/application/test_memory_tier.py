"""Unit tests for the in-process cache tier and the shared in-memory tier."""

from __future__ import annotations

import asyncio

from mp_flags.application.cache import InMemorySharedCache, SharedFlagCache
from mp_flags.application.cache.memory import CacheEntry, MemoryTier
from mp_flags.flags.models import FeatureFlag
from mp_flags.testing.fakes import FakeClock

SALT = "0123456789abcdef0123456789abcdef"
FLAG = FeatureFlag(key="k", salt=SALT)


class TestCacheEntry:
    def test_freshness(self) -> None:
        entry = CacheEntry(flag=FLAG, fetched_at=100.0, ttl=10.0)
        assert entry.is_fresh(109.9)
        assert not entry.is_fresh(110.0)
        assert entry.age(105.0) == 5.0


class TestMemoryTier:
    def test_put_and_fresh(self) -> None:
        tier = MemoryTier(FakeClock(), stale_ceiling=300)
        tier.put("k", FLAG, ttl=10)
        entry = tier.fresh("k")
        assert entry is not None and entry.flag == FLAG
        assert "k" in tier
        assert len(tier) == 1

    def test_expired_entry_still_readable_as_stale(self) -> None:
        clock = FakeClock()
        tier = MemoryTier(clock, stale_ceiling=300)
        tier.put("k", FLAG, ttl=10)
        clock.advance(seconds=20)
        assert tier.fresh("k") is None
        assert tier.get("k") is not None

    def test_entry_dropped_past_ceiling(self) -> None:
        clock = FakeClock()
        tier = MemoryTier(clock, stale_ceiling=60)
        tier.put("k", FLAG, ttl=10)
        clock.advance(seconds=61)
        assert tier.get("k") is None
        assert "k" not in tier

    def test_negative_entry(self) -> None:
        tier = MemoryTier(FakeClock(), stale_ceiling=300)
        tier.put("missing", None, ttl=10)
        entry = tier.fresh("missing")
        assert entry is not None and entry.flag is None
        assert tier.flags() == []

    def test_evict_and_clear(self) -> None:
        tier = MemoryTier(FakeClock(), stale_ceiling=300)
        tier.put("a", FLAG, ttl=10)
        tier.put("b", FLAG, ttl=10)
        assert tier.evict("a") is True
        assert tier.evict("a") is False
        assert tier.clear() == 1
        assert len(tier) == 0


class TestInMemorySharedCache:
    def test_satisfies_port(self) -> None:
        assert isinstance(InMemorySharedCache(), SharedFlagCache)

    def test_ttl(self) -> None:
        clock = FakeClock()
        cache = InMemorySharedCache(clock)

        async def _run() -> None:
            await cache.set("k", b"v", 60)
            assert await cache.get("k") == b"v"
            clock.advance(seconds=60)
            assert await cache.get("k") is None

        asyncio.run(_run())

    def test_delete_prefix(self) -> None:
        cache = InMemorySharedCache(FakeClock())

        async def _run() -> int:
            await cache.set("ff:flag:a", b"1", 60)
            await cache.set("ff:flag:b", b"2", 60)
            await cache.set("other", b"3", 60)
            await cache.delete("missing")
            return await cache.delete_prefix("ff:flag:")

        assert asyncio.run(_run()) == 2
        assert cache.keys() == ["other"]
