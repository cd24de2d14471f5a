"""Testing support – fakes and property-based generators for flag consumers."""

from mp_flags.testing.fakes import (
    FakeClock,
    FakeFeatureFlagProvider,
    FakeMetricsRegistry,
    FlakyFlagRepository,
)

__all__ = [
    "FakeClock",
    "FakeFeatureFlagProvider",
    "FakeMetricsRegistry",
    "FlakyFlagRepository",
]
