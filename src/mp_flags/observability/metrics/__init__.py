"""Observability – metrics ports and no-op implementation."""
from mp_flags.observability.metrics.noop import NoopMetrics
from mp_flags.observability.metrics.ports import Counter, Histogram, Metrics

__all__ = ["Counter", "Histogram", "Metrics", "NoopMetrics"]
