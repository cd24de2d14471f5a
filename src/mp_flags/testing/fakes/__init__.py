"""Testing fakes – in-memory doubles for the engine's ports."""
from mp_flags.kernel.time import FrozenClock
from mp_flags.testing.fakes.clock import FakeClock
from mp_flags.testing.fakes.feature_flags import FakeFeatureFlagProvider
from mp_flags.testing.fakes.metrics import FakeMetricsRegistry
from mp_flags.testing.fakes.repository import FlakyFlagRepository

__all__ = [
    "FakeClock",
    "FakeFeatureFlagProvider",
    "FakeMetricsRegistry",
    "FlakyFlagRepository",
    "FrozenClock",
]
