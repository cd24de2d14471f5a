"""Domain errors: invalid flag definitions."""

from __future__ import annotations

from typing import Any

from mp_flags.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a domain rule / invariant is violated."""

    default_code = "domain_error"


class ConfigurationError(DomainError):
    """A flag definition is malformed.

    ``errors`` is a list of field-level failures, each a dict with ``field``
    and ``message`` keys. The offending field paths are appended to the
    message so a single log line names them.
    """

    default_code = "configuration_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        self.errors: list[dict[str, Any]] = errors or []
        if self.errors:
            message = f"{message} ({', '.join(self.fields)})"
        super().__init__(message, **kwargs)

    @property
    def fields(self) -> list[str]:
        return [str(e.get("field", "?")) for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


__all__ = ["ConfigurationError", "DomainError"]
