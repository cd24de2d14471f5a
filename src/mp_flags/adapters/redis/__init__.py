"""Redis adapter – shared flag cache tier and pub/sub invalidation bus."""
from mp_flags.adapters.redis.bus import RedisInvalidationBus
from mp_flags.adapters.redis.cache import RedisSharedFlagCache

__all__ = ["RedisInvalidationBus", "RedisSharedFlagCache"]
