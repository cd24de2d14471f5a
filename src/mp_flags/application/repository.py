"""Application – FlagRepository port and in-memory implementation."""
from __future__ import annotations

import abc
import asyncio
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from mp_flags.flags.hashing import generate_salt
from mp_flags.flags.models import FeatureFlag, Override, OverrideScope
from mp_flags.flags.validation import validate_flag
from mp_flags.kernel.errors import ConfigurationError
from mp_flags.kernel.time import Clock, SystemClock


class FlagRepository(abc.ABC):
    """Port: backing store for flag definitions.

    Treated as a black box with unspecified latency and possible transient
    failure.  ``fetch`` returns ``None`` when the key does not exist.
    """

    @abc.abstractmethod
    async def fetch(self, key: str) -> FeatureFlag | None: ...

    @abc.abstractmethod
    async def fetch_all(self) -> Sequence[FeatureFlag]: ...


@runtime_checkable
class MutableFlagRepository(Protocol):
    """Optional port for repositories that can apply a kill switch."""

    async def disable(self, key: str) -> FeatureFlag | None: ...


class InMemoryFlagRepository(FlagRepository):
    """Dict-backed repository for tests and single-process deployments.

    Writes are validated and the stored ``salt`` of an existing flag can
    never be replaced.
    """

    def __init__(self, flags: Sequence[FeatureFlag] = (), clock: Clock | None = None) -> None:
        self._clock: Clock = clock or SystemClock()
        self._flags: dict[str, FeatureFlag] = {}
        self._lock = asyncio.Lock()
        for flag in flags:
            self._store(flag)

    def _store(self, flag: FeatureFlag) -> FeatureFlag:
        validate_flag(flag)
        current = self._flags.get(flag.key)
        if current is not None and current.salt != flag.salt:
            raise ConfigurationError(
                f"Salt of flag {flag.key!r} cannot change",
                flag_key=flag.key,
                errors=[{"field": "salt", "message": "immutable"}],
            )
        self._flags[flag.key] = flag
        return flag

    async def fetch(self, key: str) -> FeatureFlag | None:
        return self._flags.get(key)

    async def fetch_all(self) -> Sequence[FeatureFlag]:
        return list(self._flags.values())

    async def create(self, key: str, **fields: Any) -> FeatureFlag:
        """Create a flag with a freshly generated salt."""
        async with self._lock:
            if key in self._flags:
                raise ConfigurationError(f"Flag {key!r} already exists", flag_key=key)
            now = self._clock.now()
            flag = FeatureFlag(key=key, salt=generate_salt(), created_at=now, updated_at=now, **fields)
            return self._store(flag)

    async def save(self, flag: FeatureFlag) -> FeatureFlag:
        async with self._lock:
            return self._store(flag)

    async def update(self, key: str, **changes: Any) -> FeatureFlag | None:
        async with self._lock:
            current = self._flags.get(key)
            if current is None:
                return None
            return self._store(current.with_changes(updated_at=self._clock.now(), **changes))

    async def disable(self, key: str) -> FeatureFlag | None:
        """Kill switch: mark the flag disabled."""
        return await self.update(key, enabled=False)

    async def archive(self, key: str) -> FeatureFlag | None:
        return await self.update(key, archived=True)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._flags.pop(key, None) is not None

    async def add_override(self, override: Override) -> FeatureFlag | None:
        async with self._lock:
            current = self._flags.get(override.flag_key)
            if current is None:
                return None
            return self._store(current.with_changes(overrides=current.overrides + (override,)))

    async def remove_overrides(self, key: str, scope: OverrideScope, scope_id: str) -> FeatureFlag | None:
        async with self._lock:
            current = self._flags.get(key)
            if current is None:
                return None
            kept = tuple(o for o in current.overrides if not (o.scope == scope and o.scope_id == scope_id))
            return self._store(current.with_changes(overrides=kept))


__all__ = ["FlagRepository", "InMemoryFlagRepository", "MutableFlagRepository"]
