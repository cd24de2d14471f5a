"""Unit tests for the in-memory flag repository."""

from __future__ import annotations

import asyncio

import pytest

from mp_flags.application.repository import InMemoryFlagRepository, MutableFlagRepository
from mp_flags.flags.models import FeatureFlag, FlagType, Override, OverrideScope
from mp_flags.flags.validation import SALT_PATTERN
from mp_flags.kernel.errors import ConfigurationError
from mp_flags.testing.fakes import FakeClock

SALT = "0123456789abcdef0123456789abcdef"


class TestCreate:
    def test_generates_salt_and_timestamps(self) -> None:
        clock = FakeClock()
        repo = InMemoryFlagRepository(clock=clock)
        flag = asyncio.run(repo.create("k", type=FlagType.PERCENTAGE, percentage=10))
        assert SALT_PATTERN.match(flag.salt)
        assert flag.created_at == clock.now()
        assert asyncio.run(repo.fetch("k")) == flag

    def test_duplicate_key(self) -> None:
        repo = InMemoryFlagRepository([FeatureFlag(key="k", salt=SALT)])
        with pytest.raises(ConfigurationError, match="exists"):
            asyncio.run(repo.create("k"))

    def test_invalid_definition_rejected(self) -> None:
        repo = InMemoryFlagRepository()
        with pytest.raises(ConfigurationError):
            asyncio.run(repo.create("k", type=FlagType.PERCENTAGE))

    def test_invalid_seed_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            InMemoryFlagRepository([FeatureFlag(key="k", salt="short")])


class TestUpdate:
    def test_salt_cannot_change(self) -> None:
        repo = InMemoryFlagRepository([FeatureFlag(key="k", salt=SALT)])
        with pytest.raises(ConfigurationError):
            asyncio.run(repo.save(FeatureFlag(key="k", salt="f" * 32)))
        assert asyncio.run(repo.fetch("k")).salt == SALT  # type: ignore[union-attr]

    def test_update_keeps_salt(self) -> None:
        repo = InMemoryFlagRepository([FeatureFlag(key="k", salt=SALT)])
        flag = asyncio.run(repo.update("k", description="new"))
        assert flag is not None
        assert flag.salt == SALT
        assert flag.description == "new"

    def test_update_missing(self) -> None:
        assert asyncio.run(InMemoryFlagRepository().update("missing", enabled=False)) is None

    def test_disable_and_archive(self) -> None:
        repo = InMemoryFlagRepository([FeatureFlag(key="k", salt=SALT)])
        assert asyncio.run(repo.disable("k")).enabled is False  # type: ignore[union-attr]
        assert asyncio.run(repo.archive("k")).archived is True  # type: ignore[union-attr]

    def test_delete(self) -> None:
        repo = InMemoryFlagRepository([FeatureFlag(key="k", salt=SALT)])
        assert asyncio.run(repo.delete("k")) is True
        assert asyncio.run(repo.delete("k")) is False
        assert asyncio.run(repo.fetch_all()) == []

    def test_is_mutable(self) -> None:
        assert isinstance(InMemoryFlagRepository(), MutableFlagRepository)


class TestOverrides:
    def test_add_and_remove(self) -> None:
        repo = InMemoryFlagRepository([FeatureFlag(key="k", salt=SALT)])

        async def _run() -> None:
            await repo.add_override(Override("k", OverrideScope.USER, "u1", True))
            await repo.add_override(Override("k", OverrideScope.TENANT, "t1", False))
            flag = await repo.remove_overrides("k", OverrideScope.USER, "u1")
            assert flag is not None
            assert [(o.scope, o.scope_id) for o in flag.overrides] == [(OverrideScope.TENANT, "t1")]

        asyncio.run(_run())

    def test_override_for_missing_flag(self) -> None:
        repo = InMemoryFlagRepository()
        assert asyncio.run(repo.add_override(Override("k", OverrideScope.USER, "u1", True))) is None
