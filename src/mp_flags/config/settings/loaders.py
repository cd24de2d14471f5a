"""Config settings – SettingsLoader port and EnvSettingsLoader."""
from __future__ import annotations

import abc
import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from mp_flags.config.settings.base import Settings
from mp_flags.config.validation import InvalidSettingValueError

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


class SettingsLoader(abc.ABC):
    """Port: read raw setting values from an external source.

    Loaders return only the fields they found; the factory merges them and
    lets dataclass defaults fill the rest.
    """

    @abc.abstractmethod
    def values(self, settings_class: type[Settings]) -> dict[str, Any]: ...


class EnvSettingsLoader(SettingsLoader):
    """Load settings from environment variables named ``{PREFIX}_{FIELD}``."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def values(self, settings_class: type[Settings]) -> dict[str, Any]:
        found: dict[str, Any] = {}
        for field in dataclasses.fields(settings_class):
            env_key = settings_class.env_key(field.name)
            raw = self._environ.get(env_key)
            if raw is None:
                continue
            found[field.name] = self._coerce(env_key, raw, field.type)
        return found

    def _coerce(self, name: str, value: str, type_hint: Any) -> Any:
        hint = getattr(type_hint, "__name__", type_hint)
        try:
            if hint == "bool":
                lowered = value.strip().lower()
                if lowered not in _TRUE | _FALSE:
                    raise ValueError("expected a boolean")
                return lowered in _TRUE
            if hint == "int":
                return int(value)
            if hint == "float":
                return float(value)
        except ValueError as exc:
            raise InvalidSettingValueError(name, value, str(exc)) from exc
        return value


__all__ = ["EnvSettingsLoader", "SettingsLoader"]
