"""
mp_flags – deterministic feature-flag evaluation engine.

Import path convention::

    from mp_flags.application.evaluator import FeatureFlagEvaluator
    from mp_flags.flags import EvaluationContext, FeatureFlag
    from mp_flags.kernel.errors import ConfigurationError
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
