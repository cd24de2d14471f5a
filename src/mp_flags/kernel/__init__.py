"""Kernel – framework-agnostic building blocks (errors, time)."""

from mp_flags.kernel.errors import (
    ApplicationError,
    BaseError,
    BusDeliveryError,
    ConfigurationError,
    DomainError,
    HashInputEmptyError,
    InfrastructureError,
    RepositoryUnavailableError,
    SerializationError,
    TimeoutError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "BusDeliveryError",
    "ConfigurationError",
    "DomainError",
    "HashInputEmptyError",
    "InfrastructureError",
    "RepositoryUnavailableError",
    "SerializationError",
    "TimeoutError",
]
