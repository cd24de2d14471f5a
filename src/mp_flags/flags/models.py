"""Flags – FeatureFlag definition and its value objects."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any

from mp_flags.flags.conditions import Condition

type FlagValue = bool | str


class FlagType(StrEnum):
    """Kind of flag; selects which hashing branch (if any) runs."""

    BOOLEAN = "boolean"
    PERCENTAGE = "percentage"
    TENANT_LIST = "tenant_list"
    USER_LIST = "user_list"
    SCHEDULE = "schedule"
    VARIANT = "variant"


class FlagStatus(StrEnum):
    ACTIVE = "active"
    DISABLED = "disabled"
    ARCHIVED = "archived"


class OverrideScope(StrEnum):
    USER = "user"
    TENANT = "tenant"


@dataclasses.dataclass(frozen=True)
class Variant:
    """One named option of an A/B/n test."""

    key: str
    weight: int


@dataclasses.dataclass(frozen=True)
class Schedule:
    """Active window ``[starts_at, ends_at)``; either bound may be open."""

    starts_at: datetime | None = None
    ends_at: datetime | None = None

    def contains(self, when: datetime) -> bool:
        if self.starts_at is not None and when < self.starts_at:
            return False
        if self.ends_at is not None and when >= self.ends_at:
            return False
        return True


@dataclasses.dataclass(frozen=True)
class Override:
    """An explicit forced value for one user or tenant."""

    flag_key: str
    scope: OverrideScope
    scope_id: str
    value: FlagValue
    expires_at: datetime | None = None
    reason: str | None = None
    created_at: datetime | None = None

    def is_active(self, now: datetime) -> bool:
        return self.expires_at is None or now < self.expires_at


@dataclasses.dataclass(frozen=True)
class RuleGroup:
    """Conjunction of conditions; yields ``value`` when every condition matches."""

    value: FlagValue
    conditions: tuple[Condition, ...] = ()
    name: str = ""

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        return all(condition.matches(attributes) for condition in self.conditions)


@dataclasses.dataclass(frozen=True)
class FeatureFlag:
    """Versioned definition of a flag.

    ``salt`` is generated once at creation and must never change: changing it
    re-buckets every identity.  ``enabled_value`` is the outcome served by the
    allow-lists and by a positive percentage decision.
    """

    key: str
    salt: str
    type: FlagType = FlagType.BOOLEAN
    enabled: bool = True
    archived: bool = False
    default_value: FlagValue = False
    enabled_value: FlagValue = True
    percentage: int | None = None
    variants: tuple[Variant, ...] = ()
    schedule: Schedule | None = None
    overrides: tuple[Override, ...] = ()
    disabled_tenants: frozenset[str] = frozenset()
    enabled_tenants: frozenset[str] = frozenset()
    enabled_users: frozenset[str] = frozenset()
    rules: tuple[RuleGroup, ...] = ()
    name: str = ""
    description: str = ""
    category: str | None = None
    metadata: Mapping[str, Any] = dataclasses.field(default_factory=dict, compare=False, hash=False)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def status(self) -> FlagStatus:
        if self.archived:
            return FlagStatus.ARCHIVED
        if not self.enabled:
            return FlagStatus.DISABLED
        return FlagStatus.ACTIVE

    def active_overrides(self, scope: OverrideScope, now: datetime) -> dict[str, Override]:
        """Map scope id → winning active override (latest ``created_at`` wins)."""
        winners: dict[str, Override] = {}
        for override in self.overrides:
            if override.scope != scope or not override.is_active(now):
                continue
            current = winners.get(override.scope_id)
            if current is None or _created(override) >= _created(current):
                winners[override.scope_id] = override
        return winners

    def user_overrides(self, now: datetime) -> dict[str, FlagValue]:
        return {k: o.value for k, o in self.active_overrides(OverrideScope.USER, now).items()}

    def tenant_overrides(self, now: datetime) -> dict[str, FlagValue]:
        return {k: o.value for k, o in self.active_overrides(OverrideScope.TENANT, now).items()}

    def with_changes(self, **changes: Any) -> FeatureFlag:
        """Return a copy with *changes* applied; ``salt`` cannot be changed."""
        if "salt" in changes and changes["salt"] != self.salt:
            raise ValueError(f"salt of flag {self.key!r} is immutable")
        return dataclasses.replace(self, **changes)


def _created(override: Override) -> float:
    return override.created_at.timestamp() if override.created_at is not None else float("-inf")


__all__ = [
    "FeatureFlag",
    "FlagStatus",
    "FlagType",
    "FlagValue",
    "Override",
    "OverrideScope",
    "RuleGroup",
    "Schedule",
    "Variant",
]
