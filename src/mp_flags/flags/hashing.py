"""Flags – deterministic bucketing.

Every function here is pure: no I/O, no global state.  Buckets are derived
from SHA-256 so they are identical across processes, platforms and Python
versions (unlike the built-in ``hash``).
"""
from __future__ import annotations

import hashlib
import secrets
from collections.abc import Sequence

from mp_flags.flags.models import Variant
from mp_flags.kernel.errors import ConfigurationError, HashInputEmptyError

BUCKETS = 100
SALT_BYTES = 16


def rollout_bucket(identifier: str, salt: str) -> int:
    """Map ``(identifier, salt)`` to an integer in ``[0, 100)``.

    Raises
    ------
    HashInputEmptyError
        When *identifier* is empty.
    """
    if not identifier:
        raise HashInputEmptyError(salt=salt)
    digest = hashlib.sha256(f"{salt}:{identifier}".encode()).hexdigest()
    return int(digest[:8], 16) % BUCKETS


def is_in_rollout(identifier: str, salt: str, percentage: int) -> bool:
    if percentage <= 0:
        return False
    if percentage >= BUCKETS:
        return True
    return rollout_bucket(identifier, salt) < percentage


def select_variant(identifier: str, salt: str, variants: Sequence[Variant]) -> str:
    """Pick a variant key by weighted bucketing.

    Weights are normalised into a cumulative distribution over ``[0, 100)``
    and the variant whose range contains the bucket is returned.  The
    comparison ``bucket * total < cumulative * 100`` stays in integers so the
    last range always closes exactly at 100.

    Raises
    ------
    ConfigurationError
        When *variants* is empty, a weight is negative, or every weight is 0.
    """
    if not variants:
        raise ConfigurationError("Cannot select a variant from an empty list")
    if any(v.weight < 0 for v in variants):
        raise ConfigurationError("Variant weights must not be negative")
    total = sum(v.weight for v in variants)
    if total <= 0:
        raise ConfigurationError("Variant weights must sum to a positive value")

    bucket = rollout_bucket(identifier, salt)
    cumulative = 0
    for variant in variants:
        cumulative += variant.weight
        if bucket * total < cumulative * BUCKETS:
            return variant.key
    # unreachable: the final cumulative equals total
    raise AssertionError("variant ranges do not cover the bucket space")


def variant_salt(salt: str) -> str:
    """Salt for variant selection when the same flag is also percentage-gated."""
    return f"{salt}:variant"


def generate_salt() -> str:
    """Return a 32-character lowercase hex salt from a CSPRNG."""
    return secrets.token_hex(SALT_BYTES)


__all__ = [
    "BUCKETS",
    "generate_salt",
    "is_in_rollout",
    "rollout_bucket",
    "select_variant",
    "variant_salt",
]
