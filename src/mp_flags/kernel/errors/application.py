"""Application-layer errors: raised while evaluating a flag."""

from __future__ import annotations

from typing import Any

from mp_flags.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class HashInputEmptyError(ApplicationError):
    """A rollout or variant flag was evaluated for a context with no user, tenant or session id.

    The pipeline turns this into a ``NO_IDENTITY`` result carrying the flag's
    default value, so it only escapes from direct :mod:`~mp_flags.flags.hashing` calls.
    """

    default_code = "hash_input_empty"

    def __init__(self, *, flag_key: str | None = None, salt: str | None = None, **kwargs: Any) -> None:
        subject = f"flag '{flag_key}'" if flag_key else "hash bucket"
        super().__init__(f"No identifier to bucket for {subject}", flag_key=flag_key, **kwargs)
        self.salt = salt


class TimeoutError(ApplicationError):  # noqa: A001
    """A repository fetch or a caller's lookup ran past its deadline."""

    default_code = "timeout"


__all__ = ["ApplicationError", "HashInputEmptyError", "TimeoutError"]
