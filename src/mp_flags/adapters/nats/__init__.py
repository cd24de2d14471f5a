"""NATS adapter – invalidation bus over core NATS subjects."""
from mp_flags.adapters.nats.bus import NatsInvalidationBus

__all__ = ["NatsInvalidationBus"]
