"""Flags – evaluation context and result value objects."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from mp_flags.flags.models import FlagValue


class EvaluationReason(StrEnum):
    """Why a result has the value it has, one member per pipeline step."""

    DISABLED = "disabled"
    OUTSIDE_SCHEDULE = "outside_schedule"
    USER_OVERRIDE = "user_override"
    TENANT_OVERRIDE = "tenant_override"
    TENANT_DISABLED = "tenant_disabled"
    TENANT_ENABLED = "tenant_enabled"
    USER_ENABLED = "user_enabled"
    RULE_MATCH = "rule_match"
    PERCENTAGE_ROLLOUT = "percentage_rollout"
    VARIANT_SELECTION = "variant_selection"
    DEFAULT = "default"
    NO_IDENTITY = "no_identity"
    CONFIGURATION_ERROR = "configuration_error"
    REPOSITORY_ERROR = "repository_error"
    FLAG_NOT_FOUND = "flag_not_found"


@dataclasses.dataclass(frozen=True)
class EvaluationContext:
    """Caller-supplied, read-only evaluation input.  Never persisted."""

    tenant_id: str
    user_id: str | None = None
    user_attributes: Mapping[str, Any] = dataclasses.field(default_factory=dict, hash=False)
    environment_id: str | None = None
    session_id: str | None = None

    def hash_identity(self) -> str:
        """Identity fed to the hash engine: user, then tenant, then session.

        Returns ``""`` when none is available.
        """
        return self.user_id or self.tenant_id or self.session_id or ""


@dataclasses.dataclass(frozen=True)
class EvaluationResult:
    flag_key: str
    value: FlagValue
    reason: EvaluationReason
    from_cache: bool = False

    def cached(self, from_cache: bool) -> EvaluationResult:
        return dataclasses.replace(self, from_cache=from_cache)

    def to_dict(self) -> dict[str, Any]:
        return {
            "flag_key": self.flag_key,
            "value": self.value,
            "reason": str(self.reason),
            "from_cache": self.from_cache,
        }


__all__ = ["EvaluationContext", "EvaluationReason", "EvaluationResult"]
