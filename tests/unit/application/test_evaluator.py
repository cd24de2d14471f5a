"""Unit tests for the FeatureFlagEvaluator facade."""

from __future__ import annotations

import asyncio

import pytest

from mp_flags.application import (
    FeatureFlagEvaluator,
    FeatureFlagProvider,
    FlagRepository,
    InMemoryInvalidationBus,
    InMemorySharedCache,
)
from mp_flags.config.settings import FlagEngineSettings
from mp_flags.flags.context import EvaluationContext, EvaluationReason
from mp_flags.flags.models import FeatureFlag, FlagType, Override, OverrideScope, Variant
from mp_flags.testing.fakes import FakeClock, FakeMetricsRegistry, FlakyFlagRepository

SALT = "0123456789abcdef0123456789abcdef"
CTX = EvaluationContext(tenant_id="t1", user_id="u1")


def _repo() -> FlakyFlagRepository:
    return FlakyFlagRepository(
        [
            FeatureFlag(key="on", salt=SALT, default_value=True),
            FeatureFlag(key="off", salt=SALT, enabled=False),
            FeatureFlag(
                key="experiment",
                salt=SALT,
                type=FlagType.VARIANT,
                default_value="control",
                variants=(Variant("blue", 100),),
            ),
            FeatureFlag(key="rollout", salt=SALT, type=FlagType.PERCENTAGE, percentage=100),
            FeatureFlag(key="old", salt=SALT, archived=True),
        ]
    )


def _evaluator(repo: FlagRepository | None = None, **kwargs: object) -> FeatureFlagEvaluator:
    return FeatureFlagEvaluator.create(repo or _repo(), clock=FakeClock(), **kwargs)  # type: ignore[arg-type]


class TestEvaluate:
    def test_is_a_provider(self) -> None:
        assert isinstance(_evaluator(), FeatureFlagProvider)

    def test_detail(self) -> None:
        result = asyncio.run(_evaluator().evaluate("rollout", CTX))
        assert result.flag_key == "rollout"
        assert result.value is True
        assert result.reason == EvaluationReason.PERCENTAGE_ROLLOUT
        assert result.from_cache is False

    def test_second_call_from_cache(self) -> None:
        evaluator = _evaluator()

        async def _run() -> bool:
            await evaluator.evaluate("rollout", CTX)
            return (await evaluator.evaluate("rollout", CTX)).from_cache

        assert asyncio.run(_run()) is True

    def test_missing_flag_serves_caller_default(self) -> None:
        result = asyncio.run(_evaluator().evaluate("nope", CTX, default=True))
        assert result.value is True
        assert result.reason == EvaluationReason.FLAG_NOT_FOUND

    def test_repository_timeout_serves_default(self) -> None:
        repo = _repo()
        repo.delay = 1.0
        evaluator = _evaluator(repo, settings=FlagEngineSettings(fetch_timeout_seconds=0.02))
        result = asyncio.run(evaluator.evaluate("on", CTX, default=False))
        assert result.value is False
        assert result.reason == EvaluationReason.REPOSITORY_ERROR

    def test_caller_timeout_serves_default(self) -> None:
        repo = _repo()
        repo.delay = 1.0
        result = asyncio.run(_evaluator(repo).evaluate("on", CTX, timeout=0.01))
        assert result.reason == EvaluationReason.REPOSITORY_ERROR

    def test_cancelled_caller_does_not_break_coalesced_caller(self) -> None:
        repo = _repo()
        repo.delay = 0.1
        evaluator = _evaluator(repo)

        async def _run() -> None:
            leader = asyncio.create_task(evaluator.evaluate("on", CTX))
            await asyncio.sleep(0.01)
            follower = asyncio.create_task(evaluator.evaluate("on", CTX))
            await asyncio.sleep(0.01)
            leader.cancel()
            result = await follower
            assert result.value is True
            assert result.reason == EvaluationReason.DEFAULT
            assert leader.cancelled()

        asyncio.run(_run())
        assert repo.fetch_calls == 1

    def test_unexpected_error_serves_default(self) -> None:
        class Exploding(FlagRepository):
            async def fetch(self, key: str) -> FeatureFlag | None:
                raise KeyError(key)

            async def fetch_all(self) -> list[FeatureFlag]:
                raise KeyError("all")

        result = asyncio.run(_evaluator(Exploding()).evaluate("on", CTX, default=True))
        assert result.value is True
        assert result.reason == EvaluationReason.REPOSITORY_ERROR

    def test_reasons_are_counted(self) -> None:
        metrics = FakeMetricsRegistry()
        evaluator = _evaluator(metrics=metrics)

        async def _run() -> None:
            await evaluator.evaluate("on", CTX)
            await evaluator.evaluate("off", CTX)
            await evaluator.evaluate("nope", CTX)

        asyncio.run(_run())
        evaluations = metrics.counter("flag_evaluations_total")
        assert evaluations.total == 3
        assert evaluations.total_for(reason="disabled") == 1
        assert evaluations.total_for(reason="flag_not_found") == 1


class TestConvenience:
    def test_is_enabled(self) -> None:
        evaluator = _evaluator()

        async def _run() -> tuple[bool, bool, bool]:
            return (
                await evaluator.is_enabled("on", CTX),
                await evaluator.is_enabled("off", CTX),
                await evaluator.is_enabled("nope", CTX, default=True),
            )

        assert asyncio.run(_run()) == (True, False, True)

    def test_is_enabled_on_variant_flag_serves_default(self) -> None:
        assert asyncio.run(_evaluator().is_enabled("experiment", CTX)) is False

    def test_get_variant(self) -> None:
        evaluator = _evaluator()

        async def _run() -> tuple[str, str]:
            return (
                await evaluator.get_variant("experiment", CTX),
                await evaluator.get_variant("nope", CTX, default="fallback"),
            )

        assert asyncio.run(_run()) == ("blue", "fallback")

    def test_get_variant_on_boolean_flag_serves_default(self) -> None:
        assert asyncio.run(_evaluator().get_variant("on", CTX)) == "control"

    def test_get_variant_without_identity(self) -> None:
        ctx = EvaluationContext(tenant_id="")
        assert asyncio.run(_evaluator().get_variant("experiment", ctx)) == "control"


class TestEvaluateAll:
    def test_skips_archived_and_primes_cache(self) -> None:
        repo = _repo()
        evaluator = _evaluator(repo)

        async def _run() -> None:
            results = await evaluator.evaluate_all(CTX)
            assert set(results) == {"on", "off", "experiment", "rollout"}
            assert results["off"].reason == EvaluationReason.DISABLED
            assert all(not r.from_cache for r in results.values())
            assert (await evaluator.evaluate("on", CTX)).from_cache is True

        asyncio.run(_run())
        assert repo.fetch_calls == 0
        assert repo.fetch_all_calls == 1

    def test_falls_back_to_cached_flags(self) -> None:
        repo = _repo()
        evaluator = _evaluator(repo)

        async def _run() -> dict[str, object]:
            await evaluator.evaluate("on", CTX)
            repo.fail_with(ConnectionError("db down"))
            return dict(await evaluator.evaluate_all(CTX))

        results = asyncio.run(_run())
        assert list(results) == ["on"]
        assert results["on"].from_cache is True  # type: ignore[attr-defined]


class TestAdministration:
    def test_kill_flag(self) -> None:
        repo = _repo()
        evaluator = _evaluator(repo)

        async def _run() -> None:
            assert await evaluator.is_enabled("rollout", CTX) is True
            killed = await evaluator.kill_flag("rollout")
            assert killed is not None and killed.enabled is False
            result = await evaluator.evaluate("rollout", CTX)
            assert result.reason == EvaluationReason.DISABLED

        asyncio.run(_run())

    def test_kill_flag_beats_override(self) -> None:
        repo = _repo()
        evaluator = _evaluator(repo)

        async def _run() -> bool:
            await repo.add_override(Override("rollout", OverrideScope.USER, "u1", True))
            await evaluator.kill_flag("rollout")
            return await evaluator.is_enabled("rollout", CTX)

        assert asyncio.run(_run()) is False

    def test_kill_flag_requires_mutable_repository(self) -> None:
        class ReadOnly(FlagRepository):
            async def fetch(self, key: str) -> FeatureFlag | None:
                return None

            async def fetch_all(self) -> list[FeatureFlag]:
                return []

        with pytest.raises(TypeError):
            asyncio.run(_evaluator(ReadOnly()).kill_flag("on"))

    def test_invalidate_flag_propagates_to_peer(self) -> None:
        repo = _repo()
        bus = InMemoryInvalidationBus()
        shared = InMemorySharedCache(FakeClock())
        a = _evaluator(repo, bus=bus, shared=shared)
        b = _evaluator(repo, bus=bus, shared=shared)

        async def _run() -> None:
            async with a, b:
                assert await b.is_enabled("on", CTX) is True
                await repo.update("on", default_value=False)
                assert await a.invalidate_flag("on") is True
                assert await b.is_enabled("on", CTX) is False

        asyncio.run(_run())
        assert bus.subscribers("feature-flags.invalidate") == 0

    def test_invalidate_all_flags(self) -> None:
        repo = _repo()
        evaluator = _evaluator(repo)

        async def _run() -> None:
            await evaluator.evaluate("on", CTX)
            assert await evaluator.invalidate_all_flags() is True
            assert (await evaluator.evaluate("on", CTX)).from_cache is False

        asyncio.run(_run())
        assert repo.fetch_calls == 2
