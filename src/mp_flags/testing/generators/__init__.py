"""Testing generators – Hypothesis strategies for flags and contexts."""
from mp_flags.testing.generators.strategies import (
    context_strategy,
    identifier_strategy,
    salt_strategy,
    variants_strategy,
)

__all__ = ["context_strategy", "identifier_strategy", "salt_strategy", "variants_strategy"]
