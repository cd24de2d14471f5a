"""Flags – rule condition AST.

Conditions are parsed from their persisted ``{"attribute", "operator",
"value"}`` form into small frozen dataclasses.  Unknown operators are
rejected at parse time with :class:`ConfigurationError`, so evaluation never
has to deal with them.
"""
from __future__ import annotations

import abc
import dataclasses
from collections.abc import Mapping
from typing import Any, ClassVar

from mp_flags.kernel.errors import ConfigurationError

_MISSING: Any = object()


@dataclasses.dataclass(frozen=True)
class Condition(abc.ABC):
    """A single attribute predicate."""

    operator: ClassVar[str] = ""

    attribute: str
    value: Any = None

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        actual = attributes.get(self.attribute, _MISSING)
        if actual is _MISSING:
            return False
        try:
            return self._test(actual)
        except TypeError:
            # comparing incompatible types never matches
            return False

    @abc.abstractmethod
    def _test(self, actual: Any) -> bool: ...

    def to_dict(self) -> dict[str, Any]:
        return {"attribute": self.attribute, "operator": self.operator, "value": self.value}


class Equals(Condition):
    operator = "eq"

    def _test(self, actual: Any) -> bool:
        return bool(actual == self.value)


class NotEquals(Condition):
    operator = "ne"

    def _test(self, actual: Any) -> bool:
        return bool(actual != self.value)


class In(Condition):
    operator = "in"

    def _test(self, actual: Any) -> bool:
        return actual in self.value


class NotIn(Condition):
    operator = "not_in"

    def _test(self, actual: Any) -> bool:
        return actual not in self.value


class GreaterThan(Condition):
    operator = "gt"

    def _test(self, actual: Any) -> bool:
        return bool(actual > self.value)


class GreaterThanOrEqual(Condition):
    operator = "gte"

    def _test(self, actual: Any) -> bool:
        return bool(actual >= self.value)


class LessThan(Condition):
    operator = "lt"

    def _test(self, actual: Any) -> bool:
        return bool(actual < self.value)


class LessThanOrEqual(Condition):
    operator = "lte"

    def _test(self, actual: Any) -> bool:
        return bool(actual <= self.value)


class Contains(Condition):
    operator = "contains"

    def _test(self, actual: Any) -> bool:
        return self.value in actual


class StartsWith(Condition):
    operator = "starts_with"

    def _test(self, actual: Any) -> bool:
        return isinstance(actual, str) and actual.startswith(self.value)


class EndsWith(Condition):
    operator = "ends_with"

    def _test(self, actual: Any) -> bool:
        return isinstance(actual, str) and actual.endswith(self.value)


class Exists(Condition):
    """Matches when the attribute is present (``value`` is ignored)."""

    operator = "exists"

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        return self.attribute in attributes

    def _test(self, actual: Any) -> bool:
        return True


OPERATORS: dict[str, type[Condition]] = {
    cls.operator: cls
    for cls in (
        Equals,
        NotEquals,
        In,
        NotIn,
        GreaterThan,
        GreaterThanOrEqual,
        LessThan,
        LessThanOrEqual,
        Contains,
        StartsWith,
        EndsWith,
        Exists,
    )
}

_COLLECTION_OPERATORS = frozenset({"in", "not_in"})


def parse_condition(raw: Mapping[str, Any] | Condition) -> Condition:
    """Build a :class:`Condition` from its dict form.

    Raises
    ------
    ConfigurationError
        On a missing attribute, an unknown operator, or a non-collection
        value for ``in`` / ``not_in``.
    """
    if isinstance(raw, Condition):
        return raw
    attribute = raw.get("attribute")
    operator = raw.get("operator")
    value = raw.get("value")
    if not attribute or not isinstance(attribute, str):
        raise ConfigurationError(
            "Condition is missing its attribute",
            errors=[{"field": "attribute", "message": "required"}],
        )
    cls = OPERATORS.get(str(operator))
    if cls is None:
        raise ConfigurationError(
            f"Unknown condition operator {operator!r}",
            errors=[{"field": "operator", "message": f"unknown operator {operator!r}"}],
        )
    if operator in _COLLECTION_OPERATORS:
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
            raise ConfigurationError(
                f"Operator {operator!r} requires a list value",
                errors=[{"field": "value", "message": "expected a list"}],
            )
        value = tuple(value)
    return cls(attribute=attribute, value=value)


__all__ = [
    "OPERATORS",
    "Condition",
    "Contains",
    "EndsWith",
    "Equals",
    "Exists",
    "GreaterThan",
    "GreaterThanOrEqual",
    "In",
    "LessThan",
    "LessThanOrEqual",
    "NotEquals",
    "NotIn",
    "StartsWith",
    "parse_condition",
]
