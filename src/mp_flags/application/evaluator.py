"""Application – FeatureFlagEvaluator facade.

Composes :class:`FlagCache` and :class:`EvaluationPipeline` into the public
operations callers use on every request.  Evaluation never raises: a missing
flag, an unreachable repository or a malformed definition all downgrade to
the declared default.

Usage::

    evaluator = FeatureFlagEvaluator.create(repository, bus=bus)
    async with evaluator:
        if await evaluator.is_enabled("checkout.new_flow", EvaluationContext(tenant_id="t1")):
            ...
"""
from __future__ import annotations

from typing import Any

from mp_flags.application.cache import FlagCache, SharedFlagCache
from mp_flags.application.invalidation import InvalidationBus
from mp_flags.application.provider import FeatureFlagProvider
from mp_flags.application.repository import FlagRepository, MutableFlagRepository
from mp_flags.config.settings import FlagEngineSettings
from mp_flags.flags.context import EvaluationContext, EvaluationReason, EvaluationResult
from mp_flags.flags.models import FeatureFlag, FlagValue
from mp_flags.flags.pipeline import EvaluationPipeline
from mp_flags.kernel.errors import RepositoryUnavailableError
from mp_flags.kernel.time import Clock, SystemClock
from mp_flags.observability.logging import get_logger
from mp_flags.observability.metrics import Metrics, NoopMetrics

logger = get_logger(__name__)


class FeatureFlagEvaluator(FeatureFlagProvider):
    def __init__(
        self,
        cache: FlagCache,
        *,
        pipeline: EvaluationPipeline | None = None,
        clock: Clock | None = None,
        metrics: Metrics | None = None,
        fetch_timeout: float | None = None,
    ) -> None:
        self._cache = cache
        self._pipeline = pipeline or EvaluationPipeline(clock or SystemClock())
        self._fetch_timeout = fetch_timeout
        self._evaluations = (metrics or NoopMetrics()).counter(
            "flag_evaluations_total", "Flag evaluations by reason"
        )

    @classmethod
    def create(
        cls,
        repository: FlagRepository,
        *,
        shared: SharedFlagCache | None = None,
        bus: InvalidationBus | None = None,
        clock: Clock | None = None,
        settings: FlagEngineSettings | None = None,
        metrics: Metrics | None = None,
        fetch_timeout: float | None = None,
    ) -> FeatureFlagEvaluator:
        """Wire a cache and pipeline sharing one clock and metrics backend."""
        clock = clock or SystemClock()
        cache = FlagCache(
            repository,
            shared=shared,
            bus=bus,
            clock=clock,
            settings=settings,
            metrics=metrics,
        )
        return cls(cache, clock=clock, metrics=metrics, fetch_timeout=fetch_timeout)

    @property
    def cache(self) -> FlagCache:
        return self._cache

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def evaluate(
        self,
        key: str,
        context: EvaluationContext,
        default: FlagValue = False,
        *,
        timeout: float | None = None,
    ) -> EvaluationResult:
        """Evaluate *key* for *context* with full detail.

        *default* is served when the flag does not exist or cannot be
        loaded; *timeout* bounds how long this call waits on the repository
        (defaults to the evaluator-wide ``fetch_timeout``).
        """
        try:
            lookup = await self._cache.lookup(key, timeout=timeout if timeout is not None else self._fetch_timeout)
        except RepositoryUnavailableError:
            return self._record(EvaluationResult(key, default, EvaluationReason.REPOSITORY_ERROR))
        except Exception:
            logger.exception("flag_evaluator.lookup_failed", key=key)
            return self._record(EvaluationResult(key, default, EvaluationReason.REPOSITORY_ERROR))

        if lookup.flag is None:
            return self._record(
                EvaluationResult(key, default, EvaluationReason.FLAG_NOT_FOUND, from_cache=lookup.from_cache)
            )
        result = self._pipeline.run(lookup.flag, context).cached(lookup.from_cache)
        return self._record(result)

    async def is_enabled(self, key: str, context: EvaluationContext, default: bool = False) -> bool:
        result = await self.evaluate(key, context, default)
        if isinstance(result.value, bool):
            return result.value
        return default

    async def get_variant(self, key: str, context: EvaluationContext, default: str = "control") -> str:
        """Return the selected variant key, or *default* when none applies."""
        result = await self.evaluate(key, context, default)
        if isinstance(result.value, str) and result.value:
            return result.value
        return default

    async def evaluate_all(self, context: EvaluationContext) -> dict[str, EvaluationResult]:
        """Evaluate every non-archived flag, e.g. to bootstrap a client-side cache.

        Falls back to the flags currently held in memory when the bulk fetch
        fails.
        """
        flags: list[FeatureFlag]
        from_cache = False
        try:
            flags = await self._cache.fetch_all()
            await self._cache.prime(flags)
        except Exception as exc:
            logger.error("flag_evaluator.fetch_all_failed", error=repr(exc))
            flags = self._cache.cached_flags()
            from_cache = True

        results: dict[str, EvaluationResult] = {}
        for flag in flags:
            if flag.archived:
                continue
            results[flag.key] = self._record(self._pipeline.run(flag, context).cached(from_cache))
        return results

    def _record(self, result: EvaluationResult) -> EvaluationResult:
        self._evaluations.add(labels={"reason": str(result.reason)})
        return result

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def invalidate_flag(self, key: str) -> bool:
        """Call after any mutation of *key*; ``False`` means peers were not notified."""
        return await self._cache.invalidate(key)

    async def invalidate_all_flags(self) -> bool:
        return await self._cache.invalidate_all()

    async def kill_flag(self, key: str) -> FeatureFlag | None:
        """Disable *key* in the repository and reload it before returning.

        Peers converge through the invalidation bus; this instance never
        serves the previous definition once the call returns.

        Raises
        ------
        TypeError
            When the repository cannot apply a kill switch.
        """
        repository = self._cache.repository
        if not isinstance(repository, MutableFlagRepository):
            raise TypeError(f"{type(repository).__name__} does not support disabling flags")
        disabled = await repository.disable(key)
        try:
            await self._cache.refresh(key)
        except RepositoryUnavailableError:
            # evicted already; the next evaluation re-fetches or serves the default
            logger.warning("flag_evaluator.kill_refresh_failed", key=key)
        logger.warning("flag_evaluator.kill_switch", key=key, found=disabled is not None)
        return disabled

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the invalidation bus."""
        await self._cache.start()

    async def close(self) -> None:
        await self._cache.close()

    async def __aenter__(self) -> FeatureFlagEvaluator:
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()


__all__ = ["FeatureFlagEvaluator"]
