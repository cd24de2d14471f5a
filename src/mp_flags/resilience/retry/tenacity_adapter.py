"""Resilience – TenacityRetryPolicy.

Wraps repository fetches: a transient repository error is retried a bounded
number of times before the cache layer falls back to stale data or the
flag default.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

import tenacity

T = TypeVar("T")


class TenacityRetryPolicy:
    """Async retry policy backed by ``tenacity``.

    Parameters
    ----------
    max_attempts:
        Maximum number of call attempts (including the first call).
    wait:
        A ``tenacity`` wait strategy.  Defaults to a short exponential
        backoff capped at one second so flag lookups stay cheap.
    retry:
        A ``tenacity`` retry predicate.  Defaults to retrying on any
        ``Exception``.
    """

    def __init__(
        self,
        max_attempts: int = 1,
        wait: Any = None,
        retry: Any = None,
    ) -> None:
        self._max_attempts = max_attempts
        self._wait = wait or tenacity.wait_exponential(multiplier=0.05, max=1.0)
        self._retry = retry or tenacity.retry_if_exception_type(Exception)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def _build_async_retrying(self) -> tenacity.AsyncRetrying:
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=self._retry,
            reraise=True,
        )

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute *func* with retries; the last exception is re-raised."""
        async for attempt in self._build_async_retrying():
            with attempt:
                result = await func()
        return result  # type: ignore[possibly-undefined]


__all__ = ["TenacityRetryPolicy"]
