"""NATS adapter – NatsInvalidationBus."""
from __future__ import annotations

from typing import Any

from mp_flags.application.invalidation import InvalidationHandler
from mp_flags.observability.logging import get_logger

logger = get_logger(__name__)


def _require_nats() -> Any:
    try:
        import nats  # type: ignore[import-untyped]
        return nats
    except ImportError as exc:
        raise ImportError("Install 'mp-flags[nats]' to use the NATS adapter") from exc


class NatsInvalidationBus:
    """Fan-out of flag keys over plain NATS subjects (no JetStream persistence).

    Invalidations are only useful to instances that are running, so core
    NATS at-most-once delivery plus TTL expiry is sufficient.
    """

    def __init__(self, servers: str | list[str] = "nats://localhost:4222") -> None:
        _require_nats()
        self._servers = servers
        self._nc: Any = None
        self._subscriptions: dict[tuple[str, InvalidationHandler], Any] = {}

    async def connect(self) -> None:
        nats = _require_nats()
        self._nc = await nats.connect(self._servers)

    async def close(self) -> None:
        if self._nc:
            await self._nc.drain()
            self._nc = None
        self._subscriptions.clear()

    async def __aenter__(self) -> "NatsInvalidationBus":
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def publish(self, topic: str, key: str) -> None:
        if self._nc is None:
            await self.connect()
        await self._nc.publish(topic, key.encode())

    async def subscribe(self, topic: str, handler: InvalidationHandler) -> None:
        if self._nc is None:
            await self.connect()
        if (topic, handler) in self._subscriptions:
            return

        async def _on_message(msg: Any) -> None:
            key = msg.data.decode()
            try:
                await handler(key)
            except Exception:
                logger.exception("nats_invalidation_bus.handler_failed", topic=topic, key=key)

        self._subscriptions[(topic, handler)] = await self._nc.subscribe(topic, cb=_on_message)

    async def unsubscribe(self, topic: str, handler: InvalidationHandler) -> None:
        subscription = self._subscriptions.pop((topic, handler), None)
        if subscription is not None:
            await subscription.unsubscribe()


__all__ = ["NatsInvalidationBus"]
