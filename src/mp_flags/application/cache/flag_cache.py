"""Application cache – FlagCache, the two-tier read-through cache.

Read path::

    L1 fresh hit ─────────────────────────────► return
    L1 miss → L2 hit → populate L1 ───────────► return
    both miss → repository fetch → populate L1 + L2 → return

Repository failures fall back to the stale L1 copy while it is younger than
the staleness ceiling.  Not-found results are cached in L1 only, for the
negative TTL.  Invalidation evicts locally first and publishes second, so a
broken bus never leaves this instance serving the old definition.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from enum import StrEnum

from mp_flags.application.cache.memory import MemoryTier
from mp_flags.application.cache.shared import SharedFlagCache
from mp_flags.application.invalidation import ALL_KEYS, InvalidationBus, NoopInvalidationBus
from mp_flags.application.repository import FlagRepository
from mp_flags.config.settings import FlagEngineSettings
from mp_flags.flags import serialization
from mp_flags.flags.models import FeatureFlag
from mp_flags.kernel.errors import (
    BusDeliveryError,
    RepositoryUnavailableError,
    SerializationError,
)
from mp_flags.kernel.errors import TimeoutError as AppTimeoutError
from mp_flags.kernel.time import Clock, SystemClock
from mp_flags.observability.logging import get_logger
from mp_flags.observability.metrics import Metrics, NoopMetrics
from mp_flags.resilience import SingleFlight, TenacityRetryPolicy, TimeoutPolicy

logger = get_logger(__name__)


class CacheSource(StrEnum):
    L1 = "l1"
    L2 = "l2"
    REPOSITORY = "repository"
    STALE = "stale"


@dataclasses.dataclass(frozen=True)
class FlagLookup:
    key: str
    flag: FeatureFlag | None
    source: CacheSource

    @property
    def from_cache(self) -> bool:
        return self.source is not CacheSource.REPOSITORY


class FlagCache:
    """Read-only, invalidation-driven cache in front of a :class:`FlagRepository`."""

    def __init__(
        self,
        repository: FlagRepository,
        *,
        shared: SharedFlagCache | None = None,
        bus: InvalidationBus | None = None,
        clock: Clock | None = None,
        settings: FlagEngineSettings | None = None,
        metrics: Metrics | None = None,
        retry: TenacityRetryPolicy | None = None,
    ) -> None:
        self._repository = repository
        self._settings = settings or FlagEngineSettings()
        self._clock: Clock = clock or SystemClock()
        self._l1 = MemoryTier(self._clock, self._settings.stale_ceiling_seconds)
        self._l2 = shared
        self._bus: InvalidationBus = bus or NoopInvalidationBus()
        self._flight: SingleFlight[FlagLookup] = SingleFlight()
        self._timeout = TimeoutPolicy(self._settings.fetch_timeout_seconds, "repository_fetch")
        self._retry = retry or TenacityRetryPolicy(max_attempts=self._settings.fetch_attempts)
        self._key_generations: dict[str, int] = {}
        self._global_generation = 0
        self._subscribed = False
        metrics = metrics or NoopMetrics()
        self._lookups = metrics.counter("flag_cache_lookups_total", "Flag cache lookups by serving tier")
        self._fetch_duration = metrics.histogram("flag_repository_fetch_duration", "Repository fetch latency")

    @property
    def settings(self) -> FlagEngineSettings:
        return self._settings

    @property
    def memory(self) -> MemoryTier:
        return self._l1

    @property
    def repository(self) -> FlagRepository:
        return self._repository

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def get_flag(self, key: str, timeout: float | None = None) -> FeatureFlag | None:
        """Return the flag for *key*, or ``None`` when it does not exist.

        Raises
        ------
        RepositoryUnavailableError
            When the repository fails and no stale copy is available.
        """
        return (await self.lookup(key, timeout=timeout)).flag

    async def lookup(self, key: str, timeout: float | None = None) -> FlagLookup:
        entry = self._l1.fresh(key)
        if entry is not None:
            self._lookups.add(labels={"tier": CacheSource.L1})
            logger.debug("flag_cache.hit", key=key, tier=CacheSource.L1)
            return FlagLookup(key, entry.flag, CacheSource.L1)

        if timeout is None:
            result = await self._flight.do(key, lambda: self._load(key))
        else:
            # the shared load keeps running for other waiters after we give up
            policy = TimeoutPolicy(timeout, "flag_lookup")
            try:
                result = await policy.execute(lambda: self._flight.do(key, lambda: self._load(key)), flag_key=key)
            except AppTimeoutError as exc:
                result = self._fallback(key, exc)
        self._lookups.add(labels={"tier": result.source})
        return result

    async def _load(self, key: str, *, bypass_shared: bool = False) -> FlagLookup:
        generation = self._generation(key)

        if self._l2 is not None and not bypass_shared:
            cached = await self._read_shared(key)
            if cached is not None:
                if generation == self._generation(key):
                    self._l1.put(key, cached, self._settings.l1_ttl_seconds)
                logger.debug("flag_cache.hit", key=key, tier=CacheSource.L2)
                return FlagLookup(key, cached, CacheSource.L2)

        try:
            flag = await self._fetch(key)
        except Exception as exc:
            return self._fallback(key, exc)

        if generation == self._generation(key):
            if flag is None:
                self._l1.put(key, None, self._settings.negative_ttl_seconds)
            else:
                self._l1.put(key, flag, self._settings.l1_ttl_seconds)
                await self._write_shared(key, flag)
        else:
            logger.debug("flag_cache.discard_superseded_fetch", key=key)
        return FlagLookup(key, flag, CacheSource.REPOSITORY)

    async def _fetch(self, key: str) -> FeatureFlag | None:
        started = self._clock.monotonic()
        try:
            return await self._retry.execute_async(
                lambda: self._timeout.execute(lambda: self._repository.fetch(key), flag_key=key)
            )
        finally:
            self._fetch_duration.record((self._clock.monotonic() - started) * 1000.0)

    def _fallback(self, key: str, exc: BaseException) -> FlagLookup:
        stale = self._l1.get(key)
        if stale is not None:
            logger.warning(
                "flag_cache.serving_stale",
                key=key,
                age_seconds=round(stale.age(self._l1.now()), 3),
                error=repr(exc),
            )
            return FlagLookup(key, stale.flag, CacheSource.STALE)
        logger.error("flag_cache.fetch_failed", key=key, error=repr(exc))
        raise RepositoryUnavailableError(key, cause=exc) from exc

    async def _read_shared(self, key: str) -> FeatureFlag | None:
        assert self._l2 is not None
        try:
            payload = await self._l2.get(self._shared_key(key))
            if payload is None:
                return None
            return serialization.loads(payload)
        except SerializationError as exc:
            logger.warning("flag_cache.shared_corrupt", key=key, error=exc.message)
            await self._delete_shared(key)
            return None
        except Exception as exc:
            logger.warning("flag_cache.shared_read_failed", key=key, error=repr(exc))
            return None

    async def _write_shared(self, key: str, flag: FeatureFlag) -> None:
        if self._l2 is None:
            return
        try:
            await self._l2.set(self._shared_key(key), serialization.dumps(flag), self._settings.l2_ttl_seconds)
        except Exception as exc:
            logger.warning("flag_cache.shared_write_failed", key=key, error=repr(exc))

    async def _delete_shared(self, key: str) -> None:
        if self._l2 is None:
            return
        try:
            await self._l2.delete(self._shared_key(key))
        except Exception as exc:
            logger.warning("flag_cache.shared_delete_failed", key=key, error=repr(exc))

    def _shared_key(self, key: str) -> str:
        return f"{self._settings.l2_key_prefix}{key}"

    def _generation(self, key: str) -> tuple[int, int]:
        return self._global_generation, self._key_generations.get(key, 0)

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    async def prime(self, flags: Iterable[FeatureFlag]) -> int:
        """Store a bulk fetch in both tiers; returns the number of flags stored."""
        count = 0
        for flag in flags:
            self._l1.put(flag.key, flag, self._settings.l1_ttl_seconds)
            await self._write_shared(flag.key, flag)
            count += 1
        return count

    def cached_flags(self) -> list[FeatureFlag]:
        return self._l1.flags()

    async def fetch_all(self) -> list[FeatureFlag]:
        """Bulk-fetch from the repository through the timeout and retry policies."""
        return list(
            await self._retry.execute_async(lambda: self._timeout.execute(self._repository.fetch_all))
        )

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def _evict_local(self, key: str) -> None:
        self._key_generations[key] = self._key_generations.get(key, 0) + 1
        self._l1.evict(key)
        self._flight.forget(key)

    def _evict_all_local(self) -> None:
        self._global_generation += 1
        self._l1.clear()
        self._flight.clear()

    async def invalidate(self, key: str) -> bool:
        """Evict *key* everywhere we can reach and tell peers.

        Returns ``False`` when the bus publish failed; local eviction has
        happened regardless.
        """
        self._evict_local(key)
        await self._delete_shared(key)
        return await self._publish(key)

    async def invalidate_all(self) -> bool:
        self._evict_all_local()
        if self._l2 is not None:
            try:
                await self._l2.delete_prefix(self._settings.l2_key_prefix)
            except Exception as exc:
                logger.warning("flag_cache.shared_clear_failed", error=repr(exc))
        return await self._publish(ALL_KEYS)

    async def refresh(self, key: str) -> FlagLookup:
        """Invalidate *key* then re-fetch it from the repository before returning."""
        await self.invalidate(key)
        return await self._load(key, bypass_shared=True)

    async def handle_invalidation(self, key: str) -> None:
        """Bus handler: idempotent eviction triggered by a peer (or ourselves)."""
        if key == ALL_KEYS:
            self._evict_all_local()
            logger.debug("flag_cache.peer_invalidated_all")
            return
        self._evict_local(key)
        await self._delete_shared(key)
        logger.debug("flag_cache.peer_invalidated", key=key)

    async def _publish(self, key: str) -> bool:
        topic = self._settings.invalidation_topic
        try:
            await self._bus.publish(topic, key)
        except Exception as exc:
            error = BusDeliveryError(topic, key, cause=exc)
            logger.error("flag_cache.bus_publish_failed", **error.to_dict())
            return False
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._subscribed:
            return
        await self._bus.subscribe(self._settings.invalidation_topic, self.handle_invalidation)
        self._subscribed = True

    async def close(self) -> None:
        if not self._subscribed:
            return
        await self._bus.unsubscribe(self._settings.invalidation_topic, self.handle_invalidation)
        self._subscribed = False


__all__ = ["CacheSource", "FlagCache", "FlagLookup"]
