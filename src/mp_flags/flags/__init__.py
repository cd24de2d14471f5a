"""Flags – domain model, hashing and the evaluation pipeline."""
from mp_flags.flags.conditions import OPERATORS, Condition, parse_condition
from mp_flags.flags.context import EvaluationContext, EvaluationReason, EvaluationResult
from mp_flags.flags.hashing import (
    generate_salt,
    is_in_rollout,
    rollout_bucket,
    select_variant,
)
from mp_flags.flags.models import (
    FeatureFlag,
    FlagStatus,
    FlagType,
    FlagValue,
    Override,
    OverrideScope,
    RuleGroup,
    Schedule,
    Variant,
)
from mp_flags.flags.pipeline import EvaluationPipeline
from mp_flags.flags.serialization import flag_from_dict, flag_to_dict
from mp_flags.flags.validation import validate_flag

__all__ = [
    "OPERATORS",
    "Condition",
    "EvaluationContext",
    "EvaluationPipeline",
    "EvaluationReason",
    "EvaluationResult",
    "FeatureFlag",
    "FlagStatus",
    "FlagType",
    "FlagValue",
    "Override",
    "OverrideScope",
    "RuleGroup",
    "Schedule",
    "Variant",
    "flag_from_dict",
    "flag_to_dict",
    "generate_salt",
    "is_in_rollout",
    "parse_condition",
    "rollout_bucket",
    "select_variant",
    "validate_flag",
]
