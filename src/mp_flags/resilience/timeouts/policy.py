"""Resilience – TimeoutPolicy."""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Awaitable, Callable, TypeVar

from mp_flags.kernel.errors import TimeoutError as AppTimeoutError

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class TimeoutPolicy:
    """Bound one awaited call (a repository fetch, a caller's lookup) by ``timeout_seconds``.

    ``operation`` names the bounded call in the raised error so log events
    tell a slow repository apart from an impatient caller.
    """

    timeout_seconds: float
    operation: str = "operation"

    async def execute(self, func: Callable[[], Awaitable[T]], *, flag_key: str | None = None) -> T:
        try:
            return await asyncio.wait_for(func(), timeout=self.timeout_seconds)
        except TimeoutError as exc:
            raise AppTimeoutError(
                f"{self.operation} exceeded {self.timeout_seconds}s",
                flag_key=flag_key,
                detail={"operation": self.operation, "timeout_seconds": self.timeout_seconds},
            ) from exc


__all__ = ["TimeoutPolicy"]
