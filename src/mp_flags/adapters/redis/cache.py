"""Redis adapter – RedisSharedFlagCache (L2 tier)."""
from __future__ import annotations

from typing import Any

from mp_flags.adapters.redis import _client


class RedisSharedFlagCache:
    """Shared flag tier stored in Redis with per-key millisecond expiry."""

    def __init__(self, url: str | None = None, *, client: Any = None, **kwargs: Any) -> None:
        if client is None:
            if url is None:
                raise ValueError("RedisSharedFlagCache needs a url or a client")
            client = _client.make_client(url, **kwargs)
        self._client = client

    @property
    def client(self) -> Any:
        return self._client

    async def get(self, key: str) -> bytes | None:
        return await self._client.get(key)

    async def set(self, key: str, value: bytes, ttl: float) -> None:
        await self._client.set(key, value, px=max(1, int(ttl * 1000)))

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [key async for key in self._client.scan_iter(match=f"{prefix}*")]
        if not keys:
            return 0
        return int(await self._client.delete(*keys))

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["RedisSharedFlagCache"]
