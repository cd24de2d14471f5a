"""Resilience – tenacity-backed retry policy."""
from mp_flags.resilience.retry.tenacity_adapter import TenacityRetryPolicy

__all__ = ["TenacityRetryPolicy"]
