"""Flags – persisted / transported representation.

Field names follow the conceptual schema (``key``, ``type``, ``enabled``,
``archived``, ``default_value``, ``salt``, ``percentage``, ``variants``,
``schedule``, allow/deny lists, ``overrides``, ``rules``).  Timestamps are
ISO-8601 strings.  Used for the shared cache tier and by repositories that
store flags as JSON.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from mp_flags.flags.conditions import parse_condition
from mp_flags.flags.models import (
    FeatureFlag,
    FlagType,
    Override,
    OverrideScope,
    RuleGroup,
    Schedule,
    Variant,
)
from mp_flags.kernel.errors import ConfigurationError, SerializationError


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def flag_to_dict(flag: FeatureFlag) -> dict[str, Any]:
    return {
        "key": flag.key,
        "type": str(flag.type),
        "enabled": flag.enabled,
        "archived": flag.archived,
        "default_value": flag.default_value,
        "enabled_value": flag.enabled_value,
        "salt": flag.salt,
        "percentage": flag.percentage,
        "variants": [{"key": v.key, "weight": v.weight} for v in flag.variants],
        "schedule": (
            {"starts_at": _dt(flag.schedule.starts_at), "ends_at": _dt(flag.schedule.ends_at)}
            if flag.schedule is not None
            else None
        ),
        "overrides": [
            {
                "flag_key": o.flag_key,
                "scope": str(o.scope),
                "scope_id": o.scope_id,
                "value": o.value,
                "expires_at": _dt(o.expires_at),
                "reason": o.reason,
                "created_at": _dt(o.created_at),
            }
            for o in flag.overrides
        ],
        "disabled_tenants": sorted(flag.disabled_tenants),
        "enabled_tenants": sorted(flag.enabled_tenants),
        "enabled_users": sorted(flag.enabled_users),
        "rules": [
            {
                "name": r.name,
                "value": r.value,
                "conditions": [c.to_dict() for c in r.conditions],
            }
            for r in flag.rules
        ],
        "name": flag.name,
        "description": flag.description,
        "category": flag.category,
        "metadata": dict(flag.metadata),
        "created_at": _dt(flag.created_at),
        "updated_at": _dt(flag.updated_at),
    }


def _flag_bool(data: Mapping[str, Any], field: str, default: bool, key: str) -> bool:
    value = data.get(field, default)
    if not isinstance(value, bool):
        # a stored "false" must never read as truthy
        raise ConfigurationError(
            f"Field {field!r} of flag {key!r} must be a boolean",
            flag_key=key,
            errors=[{"field": field, "message": f"expected a boolean, got {value!r}"}],
        )
    return value


def flag_from_dict(data: Mapping[str, Any]) -> FeatureFlag:
    """Build a :class:`FeatureFlag` from its dict form.

    ``user_overrides`` (``{user_id: value}``) and ``tenant_overrides``
    (``{tenant_id: value}``) shorthand maps are accepted alongside the full
    ``overrides`` list.

    Raises
    ------
    ConfigurationError
        On unknown enum values, non-boolean ``enabled``/``archived`` values
        or malformed conditions.
    """
    key = str(data.get("key", ""))
    try:
        flag_type = FlagType(data.get("type", FlagType.BOOLEAN))
    except ValueError as exc:
        raise ConfigurationError(f"Unknown flag type {data.get('type')!r}", flag_key=key) from exc

    overrides: list[Override] = []
    for raw in data.get("overrides") or []:
        try:
            scope = OverrideScope(raw["scope"])
        except (KeyError, ValueError) as exc:
            raise ConfigurationError(f"Invalid override scope {raw.get('scope')!r}", flag_key=key) from exc
        overrides.append(
            Override(
                flag_key=raw.get("flag_key", key),
                scope=scope,
                scope_id=str(raw.get("scope_id", "")),
                value=raw.get("value", True),
                expires_at=_parse_dt(raw.get("expires_at")),
                reason=raw.get("reason"),
                created_at=_parse_dt(raw.get("created_at")),
            )
        )
    for scope, field in ((OverrideScope.USER, "user_overrides"), (OverrideScope.TENANT, "tenant_overrides")):
        for scope_id, value in (data.get(field) or {}).items():
            overrides.append(Override(flag_key=key, scope=scope, scope_id=str(scope_id), value=value))

    raw_schedule = data.get("schedule")
    schedule = (
        Schedule(
            starts_at=_parse_dt(raw_schedule.get("starts_at")),
            ends_at=_parse_dt(raw_schedule.get("ends_at")),
        )
        if raw_schedule
        else None
    )

    percentage = data.get("percentage")
    return FeatureFlag(
        key=key,
        salt=str(data.get("salt", "")),
        type=flag_type,
        enabled=_flag_bool(data, "enabled", True, key),
        archived=_flag_bool(data, "archived", False, key),
        default_value=data.get("default_value", False),
        enabled_value=data.get("enabled_value", True),
        percentage=int(percentage) if percentage is not None else None,
        variants=tuple(Variant(key=str(v["key"]), weight=int(v["weight"])) for v in data.get("variants") or []),
        schedule=schedule,
        overrides=tuple(overrides),
        disabled_tenants=frozenset(data.get("disabled_tenants") or ()),
        enabled_tenants=frozenset(data.get("enabled_tenants") or ()),
        enabled_users=frozenset(data.get("enabled_users") or ()),
        rules=tuple(
            RuleGroup(
                value=r.get("value", True),
                conditions=tuple(parse_condition(c) for c in r.get("conditions") or []),
                name=r.get("name", ""),
            )
            for r in data.get("rules") or []
        ),
        name=data.get("name") or "",
        description=data.get("description") or "",
        category=data.get("category"),
        metadata=dict(data.get("metadata") or {}),
        created_at=_parse_dt(data.get("created_at")),
        updated_at=_parse_dt(data.get("updated_at")),
    )


def dumps(flag: FeatureFlag) -> bytes:
    return json.dumps(flag_to_dict(flag), separators=(",", ":"), default=str).encode()


def loads(payload: bytes | str) -> FeatureFlag:
    """Decode a JSON payload produced by :func:`dumps`."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise SerializationError("Cached flag payload is not valid JSON", payload_type="FeatureFlag", cause=exc) from exc
    if not isinstance(data, dict):
        raise SerializationError("Cached flag payload is not an object", payload_type="FeatureFlag")
    try:
        return flag_from_dict(data)
    except (ConfigurationError, KeyError, TypeError, ValueError) as exc:
        raise SerializationError(f"Cannot decode cached flag: {exc}", payload_type="FeatureFlag", cause=exc) from exc


__all__ = ["dumps", "flag_from_dict", "flag_to_dict", "loads"]
