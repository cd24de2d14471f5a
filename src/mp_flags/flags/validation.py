"""Flags – definition validation.

The repository validates on write; the pipeline re-validates on read so a
malformed definition degrades to the default value instead of rolling out.
"""
from __future__ import annotations

import re
from typing import Any

from mp_flags.flags.models import FeatureFlag, FlagType, OverrideScope
from mp_flags.kernel.errors import ConfigurationError

SALT_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def collect_errors(flag: FeatureFlag) -> list[dict[str, Any]]:
    """Return field-level problems with *flag* (empty when valid)."""
    errors: list[dict[str, Any]] = []

    def fail(field: str, message: str) -> None:
        errors.append({"field": field, "message": message})

    if not flag.key:
        fail("key", "required")
    if not SALT_PATTERN.match(flag.salt or ""):
        fail("salt", "must be 32 lowercase hex characters")
    try:
        FlagType(flag.type)
    except ValueError:
        fail("type", f"unknown flag type {flag.type!r}")

    if flag.percentage is not None and not 0 <= flag.percentage <= 100:
        fail("percentage", "must be between 0 and 100")
    if flag.type == FlagType.PERCENTAGE and flag.percentage is None:
        fail("percentage", "required for percentage flags")

    if flag.type == FlagType.VARIANT:
        if not flag.variants:
            fail("variants", "variant flags need at least one variant")
        elif sum(max(v.weight, 0) for v in flag.variants) <= 0:
            fail("variants", "weights must sum to a positive value")
    keys = [v.key for v in flag.variants]
    if any(w.weight < 0 for w in flag.variants):
        fail("variants", "weights must not be negative")
    if len(set(keys)) != len(keys):
        fail("variants", "variant keys must be unique")
    if any(not k for k in keys):
        fail("variants", "variant keys must not be empty")

    schedule = flag.schedule
    if (
        schedule is not None
        and schedule.starts_at is not None
        and schedule.ends_at is not None
        and schedule.ends_at <= schedule.starts_at
    ):
        fail("schedule", "ends_at must be after starts_at")

    for index, override in enumerate(flag.overrides):
        if override.flag_key != flag.key:
            fail(f"overrides[{index}].flag_key", "does not match the flag key")
        if override.scope not in (OverrideScope.USER, OverrideScope.TENANT):
            fail(f"overrides[{index}].scope", f"unknown scope {override.scope!r}")
        if not override.scope_id:
            fail(f"overrides[{index}].scope_id", "required")

    return errors


def validate_flag(flag: FeatureFlag) -> FeatureFlag:
    """Raise :class:`ConfigurationError` unless *flag* is well formed."""
    errors = collect_errors(flag)
    if errors:
        raise ConfigurationError(
            f"Flag {flag.key!r} is malformed",
            flag_key=flag.key,
            errors=errors,
        )
    return flag


__all__ = ["SALT_PATTERN", "collect_errors", "validate_flag"]
