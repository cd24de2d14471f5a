"""Resilience – timeout policy."""
from mp_flags.resilience.timeouts.policy import TimeoutPolicy

__all__ = ["TimeoutPolicy"]
