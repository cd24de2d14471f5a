"""Config settings – FlagEngineSettings."""
from __future__ import annotations

import dataclasses

from mp_flags.config.settings.base import Settings
from mp_flags.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class FlagEngineSettings(Settings):
    """Tunables for the cache layer and invalidation bus.

    Read from ``FLAGS_*`` environment variables by
    :class:`~mp_flags.config.settings.loaders.EnvSettingsLoader`, e.g.
    ``FLAGS_L1_TTL_SECONDS=5``.
    """

    _prefix = "FLAGS"

    l1_ttl_seconds: float = 10.0
    l2_ttl_seconds: float = 60.0
    negative_ttl_seconds: float = 10.0
    stale_ceiling_seconds: float = 300.0
    fetch_timeout_seconds: float = 2.0
    fetch_attempts: int = 1
    invalidation_topic: str = "feature-flags.invalidate"
    l2_key_prefix: str = "ff:flag:"

    def _validate(self) -> None:
        self._require_positive(
            "l1_ttl_seconds", "l2_ttl_seconds", "negative_ttl_seconds", "fetch_timeout_seconds"
        )
        if self.stale_ceiling_seconds < self.l1_ttl_seconds:
            raise InvalidSettingValueError(
                "stale_ceiling_seconds",
                self.stale_ceiling_seconds,
                "must not be shorter than l1_ttl_seconds",
            )
        if self.fetch_attempts < 1:
            raise InvalidSettingValueError("fetch_attempts", self.fetch_attempts, "must be at least 1")
        if not self.invalidation_topic:
            raise InvalidSettingValueError("invalidation_topic", self.invalidation_topic, "must not be empty")


__all__ = ["FlagEngineSettings"]
