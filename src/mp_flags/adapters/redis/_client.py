"""Redis adapter – lazy client construction."""
from __future__ import annotations

from typing import Any


def _require_redis() -> Any:
    try:
        import redis.asyncio as aioredis
        return aioredis
    except ImportError as exc:
        raise ImportError("Install 'mp-flags[redis]' to use the Redis adapter") from exc


def make_client(url: str, **kwargs: Any) -> Any:
    return _require_redis().from_url(url, **kwargs)


__all__ = ["make_client"]
