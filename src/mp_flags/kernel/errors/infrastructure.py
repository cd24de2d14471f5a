"""Infrastructure errors: repository, shared cache and bus failures."""

from __future__ import annotations

from typing import Any

from mp_flags.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class RepositoryUnavailableError(InfrastructureError):
    """The flag repository timed out or failed and no usable cache entry exists."""

    default_code = "repository_unavailable"

    def __init__(
        self,
        flag_key: str | None,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        target = f"flag '{flag_key}'" if flag_key else "flags"
        super().__init__(
            message or f"Repository unavailable while fetching {target}", flag_key=flag_key, **kwargs
        )


class BusDeliveryError(InfrastructureError):
    """Publishing an invalidation event failed."""

    default_code = "bus_delivery_failure"

    def __init__(
        self,
        topic: str,
        key: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Could not publish invalidation of '{key}' on '{topic}'", **kwargs)
        self.topic = topic
        self.key = key


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a flag payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


__all__ = [
    "BusDeliveryError",
    "InfrastructureError",
    "RepositoryUnavailableError",
    "SerializationError",
]
