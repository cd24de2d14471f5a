"""Unit tests for rule conditions."""

from __future__ import annotations

from typing import Any

import pytest

from mp_flags.flags.conditions import (
    OPERATORS,
    Contains,
    EndsWith,
    Equals,
    Exists,
    GreaterThan,
    In,
    LessThanOrEqual,
    NotEquals,
    NotIn,
    StartsWith,
    parse_condition,
)
from mp_flags.kernel.errors import ConfigurationError

ATTRS: dict[str, Any] = {
    "plan": "pro",
    "seats": 25,
    "country": "BR",
    "email": "ana@example.com",
    "roles": ["admin", "billing"],
}


class TestOperators:
    @pytest.mark.parametrize(
        ("condition", "expected"),
        [
            (Equals("plan", "pro"), True),
            (Equals("plan", "free"), False),
            (NotEquals("plan", "free"), True),
            (In("country", ("BR", "PT")), True),
            (NotIn("country", ("BR", "PT")), False),
            (GreaterThan("seats", 10), True),
            (LessThanOrEqual("seats", 25), True),
            (Contains("roles", "admin"), True),
            (Contains("email", "@example"), True),
            (StartsWith("email", "ana@"), True),
            (EndsWith("email", ".org"), False),
            (Exists("plan"), True),
            (Exists("missing"), False),
        ],
    )
    def test_matches(self, condition: Any, expected: bool) -> None:
        assert condition.matches(ATTRS) is expected

    def test_missing_attribute_never_matches(self) -> None:
        assert NotEquals("missing", "x").matches(ATTRS) is False
        assert NotIn("missing", ("x",)).matches(ATTRS) is False

    def test_incompatible_types_do_not_match(self) -> None:
        assert GreaterThan("plan", 5).matches(ATTRS) is False

    def test_starts_with_requires_string(self) -> None:
        assert StartsWith("seats", "2").matches(ATTRS) is False

    def test_registry_covers_every_operator(self) -> None:
        assert set(OPERATORS) == {
            "eq", "ne", "in", "not_in", "gt", "gte", "lt", "lte",
            "contains", "starts_with", "ends_with", "exists",
        }


class TestParseCondition:
    def test_parses_dict(self) -> None:
        condition = parse_condition({"attribute": "plan", "operator": "eq", "value": "pro"})
        assert condition == Equals("plan", "pro")

    def test_list_values_become_tuples(self) -> None:
        condition = parse_condition({"attribute": "country", "operator": "in", "value": ["BR", "PT"]})
        assert condition == In("country", ("BR", "PT"))

    def test_passes_conditions_through(self) -> None:
        condition = Equals("plan", "pro")
        assert parse_condition(condition) is condition

    def test_unknown_operator(self) -> None:
        with pytest.raises(ConfigurationError, match="operator"):
            parse_condition({"attribute": "plan", "operator": "regex", "value": ".*"})

    def test_missing_attribute(self) -> None:
        with pytest.raises(ConfigurationError) as info:
            parse_condition({"operator": "eq", "value": 1})
        assert info.value.errors[0]["field"] == "attribute"

    def test_in_requires_list(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_condition({"attribute": "country", "operator": "in", "value": "BR"})

    def test_to_dict(self) -> None:
        assert GreaterThan("seats", 10).to_dict() == {"attribute": "seats", "operator": "gt", "value": 10}
