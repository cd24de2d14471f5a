"""Observability – structured logging and metrics ports."""
from mp_flags.observability.logging import JsonLoggerFactory, get_logger
from mp_flags.observability.metrics import Counter, Metrics, NoopMetrics

__all__ = ["Counter", "JsonLoggerFactory", "Metrics", "NoopMetrics", "get_logger"]
