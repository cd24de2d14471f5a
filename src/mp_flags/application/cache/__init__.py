"""Application cache – L1 memory tier, L2 shared tier and the FlagCache."""
from mp_flags.application.cache.flag_cache import CacheSource, FlagCache, FlagLookup
from mp_flags.application.cache.memory import CacheEntry, MemoryTier
from mp_flags.application.cache.shared import InMemorySharedCache, SharedFlagCache

__all__ = [
    "CacheEntry",
    "CacheSource",
    "FlagCache",
    "FlagLookup",
    "InMemorySharedCache",
    "MemoryTier",
    "SharedFlagCache",
]
