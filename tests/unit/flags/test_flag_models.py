"""Unit tests for FeatureFlag and its value objects."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime, timedelta

import pytest

from mp_flags.flags.conditions import Equals
from mp_flags.flags.models import (
    FeatureFlag,
    FlagStatus,
    Override,
    OverrideScope,
    RuleGroup,
    Schedule,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
SALT = "0123456789abcdef0123456789abcdef"


class TestSchedule:
    def test_open_bounds(self) -> None:
        assert Schedule().contains(NOW)

    def test_half_open_window(self) -> None:
        window = Schedule(starts_at=NOW, ends_at=NOW + timedelta(hours=1))
        assert window.contains(NOW)
        assert window.contains(NOW + timedelta(minutes=59))
        assert not window.contains(NOW + timedelta(hours=1))
        assert not window.contains(NOW - timedelta(seconds=1))


class TestOverride:
    def test_without_expiry_is_active(self) -> None:
        assert Override("k", OverrideScope.USER, "u1", True).is_active(NOW)

    def test_expiry_is_exclusive(self) -> None:
        override = Override("k", OverrideScope.USER, "u1", True, expires_at=NOW)
        assert not override.is_active(NOW)
        assert override.is_active(NOW - timedelta(seconds=1))


class TestRuleGroup:
    def test_empty_group_matches(self) -> None:
        assert RuleGroup(value=True).matches({})

    def test_all_conditions_required(self) -> None:
        group = RuleGroup(value=True, conditions=(Equals("a", 1), Equals("b", 2)))
        assert group.matches({"a": 1, "b": 2})
        assert not group.matches({"a": 1, "b": 3})


class TestFeatureFlag:
    def test_frozen(self) -> None:
        flag = FeatureFlag(key="k", salt=SALT)
        with pytest.raises(dataclasses.FrozenInstanceError):
            flag.enabled = False  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("enabled", "archived", "status"),
        [
            (True, False, FlagStatus.ACTIVE),
            (False, False, FlagStatus.DISABLED),
            (True, True, FlagStatus.ARCHIVED),
            (False, True, FlagStatus.ARCHIVED),
        ],
    )
    def test_status(self, enabled: bool, archived: bool, status: FlagStatus) -> None:
        assert FeatureFlag(key="k", salt=SALT, enabled=enabled, archived=archived).status is status

    def test_salt_is_immutable(self) -> None:
        flag = FeatureFlag(key="k", salt=SALT)
        with pytest.raises(ValueError, match="salt"):
            flag.with_changes(salt="f" * 32)

    def test_with_changes_keeps_salt(self) -> None:
        flag = FeatureFlag(key="k", salt=SALT).with_changes(enabled=False, salt=SALT)
        assert flag.salt == SALT
        assert not flag.enabled

    def test_overrides_by_scope(self) -> None:
        flag = FeatureFlag(
            key="k",
            salt=SALT,
            overrides=(
                Override("k", OverrideScope.USER, "u1", True),
                Override("k", OverrideScope.TENANT, "t1", "beta"),
                Override("k", OverrideScope.USER, "u2", True, expires_at=NOW - timedelta(days=1)),
            ),
        )
        assert flag.user_overrides(NOW) == {"u1": True}
        assert flag.tenant_overrides(NOW) == {"t1": "beta"}

    def test_undated_override_loses_to_dated(self) -> None:
        flag = FeatureFlag(
            key="k",
            salt=SALT,
            overrides=(
                Override("k", OverrideScope.USER, "u1", False, created_at=NOW),
                Override("k", OverrideScope.USER, "u1", True),
            ),
        )
        assert flag.user_overrides(NOW) == {"u1": False}

    def test_metadata_not_compared(self) -> None:
        a = FeatureFlag(key="k", salt=SALT, metadata={"owner": "growth"})
        b = FeatureFlag(key="k", salt=SALT)
        assert a == b
