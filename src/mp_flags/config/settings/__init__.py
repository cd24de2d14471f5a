"""Config settings – base class, engine settings, loaders and factory."""
from mp_flags.config.settings.base import Settings
from mp_flags.config.settings.engine import FlagEngineSettings
from mp_flags.config.settings.factory import SettingsFactory
from mp_flags.config.settings.loaders import EnvSettingsLoader, SettingsLoader

__all__ = [
    "EnvSettingsLoader",
    "FlagEngineSettings",
    "Settings",
    "SettingsFactory",
    "SettingsLoader",
]
