"""Application cache – L2 shared tier port and in-memory implementation."""
from __future__ import annotations

import dataclasses
from typing import Protocol, runtime_checkable

from mp_flags.kernel.time import Clock, SystemClock


@runtime_checkable
class SharedFlagCache(Protocol):
    """Port: byte store shared by every instance (Redis in production)."""

    async def get(self, key: str) -> bytes | None: ...
    async def set(self, key: str, value: bytes, ttl: float) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def delete_prefix(self, prefix: str) -> int: ...


@dataclasses.dataclass(frozen=True)
class _Stored:
    value: bytes
    expires_at: float


class InMemorySharedCache:
    """TTL-enforcing dict; share one instance between caches to model peers."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or SystemClock()
        self._data: dict[str, _Stored] = {}

    async def get(self, key: str) -> bytes | None:
        stored = self._data.get(key)
        if stored is None:
            return None
        if self._clock.monotonic() >= stored.expires_at:
            del self._data[key]
            return None
        return stored.value

    async def set(self, key: str, value: bytes, ttl: float) -> None:
        self._data[key] = _Stored(value=value, expires_at=self._clock.monotonic() + ttl)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [k for k in self._data if k.startswith(prefix)]
        for key in keys:
            del self._data[key]
        return len(keys)

    def keys(self) -> list[str]:
        return list(self._data)


__all__ = ["InMemorySharedCache", "SharedFlagCache"]
