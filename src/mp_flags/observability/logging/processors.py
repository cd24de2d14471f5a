"""Observability – get_logger helper and flag-context processor."""
from __future__ import annotations

from typing import Any

import structlog


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def drop_user_attributes(
    logger: Any,           # noqa: ARG001
    method_name: str,      # noqa: ARG001
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog processor that strips raw ``user_attributes`` from events.

    Evaluation contexts carry arbitrary caller attributes (emails, plans,
    countries); only their keys are kept in log output.
    """
    attributes = event_dict.get("user_attributes")
    if isinstance(attributes, dict):
        event_dict["user_attributes"] = sorted(attributes)
    return event_dict


__all__ = ["drop_user_attributes", "get_logger"]
