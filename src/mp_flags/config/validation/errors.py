"""Config validation errors."""
from __future__ import annotations

from typing import Any

from mp_flags.kernel.errors import ApplicationError


class ConfigError(ApplicationError):
    """Engine settings could not be assembled from their sources."""

    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """A field without default was found in no loader and no override."""

    default_code = "missing_required_setting"

    def __init__(self, setting_name: str, **kwargs: Any) -> None:
        super().__init__(
            f"Required setting '{setting_name}' is missing",
            detail={"setting": setting_name},
            **kwargs,
        )
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """A value failed coercion from its source or a range check."""

    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str, **kwargs: Any) -> None:
        super().__init__(
            f"Setting '{setting_name}' has invalid value {value!r}: {reason}",
            detail={"setting": setting_name, "value": value, "reason": reason},
            **kwargs,
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
