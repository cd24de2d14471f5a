"""Application – cache layer, invalidation bus, repository port and the evaluator facade."""
from mp_flags.application.cache import FlagCache, InMemorySharedCache, SharedFlagCache
from mp_flags.application.evaluator import FeatureFlagEvaluator
from mp_flags.application.invalidation import (
    InMemoryInvalidationBus,
    InvalidationBus,
    NoopInvalidationBus,
)
from mp_flags.application.provider import FeatureFlagProvider
from mp_flags.application.repository import (
    FlagRepository,
    InMemoryFlagRepository,
    MutableFlagRepository,
)

__all__ = [
    "FeatureFlagEvaluator",
    "FeatureFlagProvider",
    "FlagCache",
    "FlagRepository",
    "InMemoryFlagRepository",
    "InMemoryInvalidationBus",
    "InMemorySharedCache",
    "InvalidationBus",
    "MutableFlagRepository",
    "NoopInvalidationBus",
    "SharedFlagCache",
]
