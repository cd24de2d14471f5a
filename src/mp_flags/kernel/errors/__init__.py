"""Kernel error hierarchy: public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError                 (domain.py)
    │   └── ConfigurationError
    ├── ApplicationError            (application.py)
    │   ├── HashInputEmptyError
    │   └── TimeoutError
    └── InfrastructureError         (infrastructure.py)
        ├── RepositoryUnavailableError
        ├── BusDeliveryError
        └── SerializationError
"""

from mp_flags.kernel.errors.application import (
    ApplicationError,
    HashInputEmptyError,
    TimeoutError,
)
from mp_flags.kernel.errors.base import BaseError
from mp_flags.kernel.errors.domain import ConfigurationError, DomainError
from mp_flags.kernel.errors.infrastructure import (
    BusDeliveryError,
    InfrastructureError,
    RepositoryUnavailableError,
    SerializationError,
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
