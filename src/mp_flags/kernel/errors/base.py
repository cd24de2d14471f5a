"""Root error class for the mp-flags error hierarchy."""

from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Root of every error raised by the engine.

    Args:
        message: Human-readable description.
        code: Machine-readable slug (defaults to ``default_code``).
        flag_key: Flag the failure concerns, when there is one.
        detail: Extra context merged into log events.
        cause: Underlying exception; also set as ``__cause__``.
    """

    default_code: str = "base_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        flag_key: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.flag_key = flag_key
        self.detail: dict[str, Any] = dict(detail or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        if self.flag_key is None:
            return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"
        return f"{type(self).__name__}(code={self.code!r}, flag_key={self.flag_key!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Flatten into keyword arguments suitable for ``logger.error(event, **err.to_dict())``."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message, "detail": self.detail}
        if self.flag_key is not None:
            payload["flag_key"] = self.flag_key
        if self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload


__all__ = ["BaseError"]
