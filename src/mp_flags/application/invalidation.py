"""Application – InvalidationBus port and in-process implementations.

Delivery is at-least-once; handlers must be idempotent.  The key ``"*"``
means "every flag".
"""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Coroutine, Protocol, runtime_checkable

from mp_flags.observability.logging import get_logger

#: Type alias for an async invalidation handler receiving the flag key.
InvalidationHandler = Callable[[str], Coroutine[Any, Any, None]]

ALL_KEYS = "*"

logger = get_logger(__name__)


@runtime_checkable
class InvalidationBus(Protocol):
    """Port: cross-instance pub/sub for "this flag changed" events."""

    async def publish(self, topic: str, key: str) -> None: ...

    async def subscribe(self, topic: str, handler: InvalidationHandler) -> None: ...

    async def unsubscribe(self, topic: str, handler: InvalidationHandler) -> None: ...


class NoopInvalidationBus:
    """Single-process deployments: nothing to fan out to."""

    async def publish(self, topic: str, key: str) -> None:
        pass

    async def subscribe(self, topic: str, handler: InvalidationHandler) -> None:
        pass

    async def unsubscribe(self, topic: str, handler: InvalidationHandler) -> None:
        pass


class InMemoryInvalidationBus:
    """Fan-out to every handler subscribed in this process.

    Several caches sharing one bus behave like peer instances.  A failing
    handler is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[InvalidationHandler]] = defaultdict(list)
        self._published: list[tuple[str, str]] = []

    async def publish(self, topic: str, key: str) -> None:
        self._published.append((topic, key))
        for handler in list(self._handlers.get(topic, ())):
            try:
                await handler(key)
            except Exception:
                logger.exception("invalidation_bus.handler_failed", topic=topic, key=key)

    async def subscribe(self, topic: str, handler: InvalidationHandler) -> None:
        if handler not in self._handlers[topic]:
            self._handlers[topic].append(handler)

    async def unsubscribe(self, topic: str, handler: InvalidationHandler) -> None:
        handlers = self._handlers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)

    @property
    def published(self) -> list[tuple[str, str]]:
        return list(self._published)

    def subscribers(self, topic: str) -> int:
        return len(self._handlers.get(topic, ()))


__all__ = [
    "ALL_KEYS",
    "InMemoryInvalidationBus",
    "InvalidationBus",
    "InvalidationHandler",
    "NoopInvalidationBus",
]
