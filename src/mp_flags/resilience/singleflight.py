"""Resilience – SingleFlight.

Coalesces concurrent calls for the same key into one in-flight operation.
The operation runs in a task owned by the flight, so cancelling any caller,
the first one included, only detaches that caller; the others still receive
the result or the exception. Nothing is remembered once the call settles, so
a failure never poisons later calls.
"""
from __future__ import annotations

import asyncio
import functools
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[T]] = {}

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def do(self, key: str, func: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(func())
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._settle, key))
        return await asyncio.shield(task)

    def _settle(self, key: str, task: asyncio.Future[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # retrieve the outcome so a failure nobody waits for any more does not warn
        if not task.cancelled():
            task.exception()

    def forget(self, key: str) -> None:
        """Detach *key* so the next call starts a fresh operation."""
        self._inflight.pop(key, None)

    def clear(self) -> None:
        self._inflight.clear()


__all__ = ["SingleFlight"]
