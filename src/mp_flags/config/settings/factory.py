"""Config settings – SettingsFactory."""
from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import Any, TypeVar

from mp_flags.config.settings.base import Settings
from mp_flags.config.settings.loaders import SettingsLoader
from mp_flags.config.validation.errors import ConfigError, MissingRequiredSettingError

T = TypeVar("T", bound=Settings)


class SettingsFactory:
    """Merge values from several loaders, apply overrides, build the settings.

    Later loaders win on field conflicts; *overrides* win over every loader.
    """

    @staticmethod
    def create(
        settings_cls: type[T],
        loaders: Sequence[SettingsLoader] | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> T:
        """
        Raises
        ------
        MissingRequiredSettingError
            When a field without default is absent from every source.
        InvalidSettingValueError
            When a loader cannot coerce a value, or cross-field validation fails.
        ConfigError
            When an override names an unknown field.
        """
        merged: dict[str, Any] = {}
        for loader in loaders or []:
            merged.update(loader.values(settings_cls))
        if overrides:
            merged.update(overrides)

        known = {f.name: f for f in dataclasses.fields(settings_cls)}
        unknown = sorted(set(merged) - set(known))
        if unknown:
            raise ConfigError(
                f"Unknown settings for {settings_cls.__name__}: {', '.join(unknown)}",
                detail={"unknown": unknown},
            )
        for name, field in known.items():
            if name in merged:
                continue
            if field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
                raise MissingRequiredSettingError(name)

        return settings_cls(**merged)


__all__ = ["SettingsFactory"]
