"""Config – engine settings and their loaders."""
from mp_flags.config.settings import (
    EnvSettingsLoader,
    FlagEngineSettings,
    Settings,
    SettingsFactory,
)
from mp_flags.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "EnvSettingsLoader",
    "FlagEngineSettings",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsFactory",
]
