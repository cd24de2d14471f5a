"""Redis adapter – RedisInvalidationBus over Redis pub/sub."""
from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

import tenacity

from mp_flags.adapters.redis import _client
from mp_flags.application.invalidation import InvalidationHandler
from mp_flags.observability.logging import get_logger

logger = get_logger(__name__)


class RedisInvalidationBus:
    """Publishes flag keys on a Redis channel and dispatches received keys.

    One background listener task reads the pub/sub connection and calls
    every handler registered for the message's channel. A message that
    cannot be dispatched is logged and skipped; when the connection itself
    fails the listener logs, waits per *reconnect_wait* (a ``tenacity`` wait
    strategy) and subscribes again.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        client: Any = None,
        reconnect_wait: Any = None,
        **kwargs: Any,
    ) -> None:
        if client is None:
            if url is None:
                raise ValueError("RedisInvalidationBus needs a url or a client")
            client = _client.make_client(url, **kwargs)
        self._client = client
        self._pubsub: Any = None
        self._listener: asyncio.Task[None] | None = None
        self._handlers: dict[str, list[InvalidationHandler]] = defaultdict(list)
        self._reconnect_wait = reconnect_wait or tenacity.wait_exponential(multiplier=0.5, max=30.0)

    async def publish(self, topic: str, key: str) -> None:
        await self._client.publish(topic, key)

    async def subscribe(self, topic: str, handler: InvalidationHandler) -> None:
        if self._pubsub is None:
            self._pubsub = self._client.pubsub()
        if not self._handlers[topic]:
            await self._pubsub.subscribe(topic)
        if handler not in self._handlers[topic]:
            self._handlers[topic].append(handler)
        if self._listener is None:
            self._listener = asyncio.create_task(self._listen())

    async def unsubscribe(self, topic: str, handler: InvalidationHandler) -> None:
        handlers = self._handlers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers and self._pubsub is not None:
            self._handlers.pop(topic, None)
            await self._pubsub.unsubscribe(topic)

    async def _listen(self) -> None:
        # no stop condition: the listener retries until close() cancels it
        retrying = tenacity.AsyncRetrying(
            wait=self._reconnect_wait,
            retry=tenacity.retry_if_exception_type(Exception),
            before_sleep=self._on_listener_failure,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self._consume(resubscribe=attempt.retry_state.attempt_number > 1)

    async def _consume(self, *, resubscribe: bool) -> None:
        if resubscribe and self._handlers:
            await self._pubsub.subscribe(*self._handlers)
        async for message in self._pubsub.listen():
            try:
                if message.get("type") != "message":
                    continue
                await self.dispatch(message["channel"], message["data"])
            except Exception:
                logger.exception("redis_invalidation_bus.message_failed", message=repr(message))

    def _on_listener_failure(self, retry_state: tenacity.RetryCallState) -> None:
        outcome = retry_state.outcome
        logger.warning(
            "redis_invalidation_bus.listener_failed",
            attempt=retry_state.attempt_number,
            error=repr(outcome.exception()) if outcome is not None else None,
            topics=sorted(self._handlers),
        )

    async def dispatch(self, channel: str | bytes, data: str | bytes) -> None:
        topic = channel.decode() if isinstance(channel, bytes) else channel
        key = data.decode() if isinstance(data, bytes) else data
        for handler in list(self._handlers.get(topic, ())):
            try:
                await handler(key)
            except Exception:
                logger.exception("redis_invalidation_bus.handler_failed", topic=topic, key=key)

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        await self._client.aclose()


__all__ = ["RedisInvalidationBus"]
