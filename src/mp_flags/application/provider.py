"""Application – FeatureFlagProvider port."""
from __future__ import annotations

import abc

from mp_flags.flags.context import EvaluationContext, EvaluationResult
from mp_flags.flags.models import FlagValue


class FeatureFlagProvider(abc.ABC):
    """Port: evaluate feature flags for a given context."""

    @abc.abstractmethod
    async def is_enabled(self, key: str, context: EvaluationContext, default: bool = False) -> bool: ...

    @abc.abstractmethod
    async def get_variant(self, key: str, context: EvaluationContext, default: str = "control") -> str: ...

    @abc.abstractmethod
    async def evaluate(
        self, key: str, context: EvaluationContext, default: FlagValue = False
    ) -> EvaluationResult: ...


__all__ = ["FeatureFlagProvider"]
