"""Resilience – timeouts, retries and request coalescing for repository fetches."""
from mp_flags.resilience.retry import TenacityRetryPolicy
from mp_flags.resilience.singleflight import SingleFlight
from mp_flags.resilience.timeouts import TimeoutPolicy

__all__ = ["SingleFlight", "TenacityRetryPolicy", "TimeoutPolicy"]
