"""Flags – EvaluationPipeline.

A strict, ordered decision chain.  Each step either returns a final result
or falls through to the next one:

 1. archived / not enabled          → default     ``disabled``
 2. outside schedule window         → default     ``outside_schedule``
 3. active user override            → its value   ``user_override``
 4. active tenant override          → its value   ``tenant_override``
 5. tenant on the deny-list         → default     ``tenant_disabled``
 6. tenant on the allow-list        → enabled     ``tenant_enabled``
 7. user on the allow-list          → enabled     ``user_enabled``
 8. first fully matching rule group → its value   ``rule_match``
 9. percentage flags                → hashed      ``percentage_rollout``
10. variant flags                   → hashed      ``variant_selection``
11. otherwise                       → default     ``default``

The order is a product contract; do not reorder.
"""
from __future__ import annotations

from mp_flags.flags import hashing
from mp_flags.flags.context import EvaluationContext, EvaluationReason, EvaluationResult
from mp_flags.flags.models import FeatureFlag, FlagType, FlagValue
from mp_flags.flags.validation import collect_errors
from mp_flags.kernel.errors import ConfigurationError, HashInputEmptyError
from mp_flags.kernel.time import Clock, SystemClock
from mp_flags.observability.logging import get_logger

logger = get_logger(__name__)


class EvaluationPipeline:
    """Pure function of ``(flag snapshot, context, clock.now())``."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or SystemClock()

    def run(self, flag: FeatureFlag, context: EvaluationContext) -> EvaluationResult:
        # a kill switch wins even over a malformed definition
        if flag.archived or not flag.enabled:
            return self._result(flag, flag.default_value, EvaluationReason.DISABLED)
        errors = collect_errors(flag)
        if errors:
            logger.error("flag_pipeline.invalid_definition", flag_key=flag.key, errors=errors)
            return self._result(flag, flag.default_value, EvaluationReason.CONFIGURATION_ERROR)
        try:
            return self._run(flag, context)
        except HashInputEmptyError:
            return self._result(flag, flag.default_value, EvaluationReason.NO_IDENTITY)
        except ConfigurationError as exc:
            logger.error("flag_pipeline.configuration_error", flag_key=flag.key, error=exc.message)
            return self._result(flag, flag.default_value, EvaluationReason.CONFIGURATION_ERROR)

    def _run(self, flag: FeatureFlag, context: EvaluationContext) -> EvaluationResult:
        now = self._clock.now()
        if flag.schedule is not None and not flag.schedule.contains(now):
            return self._result(flag, flag.default_value, EvaluationReason.OUTSIDE_SCHEDULE)

        if context.user_id:
            user_overrides = flag.user_overrides(now)
            if context.user_id in user_overrides:
                return self._result(flag, user_overrides[context.user_id], EvaluationReason.USER_OVERRIDE)

        tenant_overrides = flag.tenant_overrides(now)
        if context.tenant_id in tenant_overrides:
            return self._result(flag, tenant_overrides[context.tenant_id], EvaluationReason.TENANT_OVERRIDE)

        if context.tenant_id in flag.disabled_tenants:
            return self._result(flag, flag.default_value, EvaluationReason.TENANT_DISABLED)
        if context.tenant_id in flag.enabled_tenants:
            return self._result(flag, flag.enabled_value, EvaluationReason.TENANT_ENABLED)
        if context.user_id and context.user_id in flag.enabled_users:
            return self._result(flag, flag.enabled_value, EvaluationReason.USER_ENABLED)

        for group in flag.rules:
            if group.matches(context.user_attributes):
                return self._result(flag, group.value, EvaluationReason.RULE_MATCH)

        if flag.type == FlagType.PERCENTAGE:
            return self._percentage(flag, context)
        if flag.type == FlagType.VARIANT:
            return self._variant(flag, context)

        return self._result(flag, flag.default_value, EvaluationReason.DEFAULT)

    def _percentage(self, flag: FeatureFlag, context: EvaluationContext) -> EvaluationResult:
        percentage = flag.percentage or 0
        identity = context.hash_identity()
        if 0 < percentage < hashing.BUCKETS and not identity:
            raise HashInputEmptyError(flag_key=flag.key, salt=flag.salt)
        if hashing.is_in_rollout(identity, flag.salt, percentage):
            return self._result(flag, flag.enabled_value, EvaluationReason.PERCENTAGE_ROLLOUT)
        return self._result(flag, flag.default_value, EvaluationReason.PERCENTAGE_ROLLOUT)

    def _variant(self, flag: FeatureFlag, context: EvaluationContext) -> EvaluationResult:
        identity = context.hash_identity()
        if not identity:
            raise HashInputEmptyError(flag_key=flag.key, salt=flag.salt)
        salt = flag.salt
        if flag.percentage is not None and flag.percentage < hashing.BUCKETS:
            if not hashing.is_in_rollout(identity, flag.salt, flag.percentage):
                return self._result(flag, flag.default_value, EvaluationReason.PERCENTAGE_ROLLOUT)
            salt = hashing.variant_salt(flag.salt)
        key = hashing.select_variant(identity, salt, flag.variants)
        return self._result(flag, key, EvaluationReason.VARIANT_SELECTION)

    @staticmethod
    def _result(flag: FeatureFlag, value: FlagValue, reason: EvaluationReason) -> EvaluationResult:
        return EvaluationResult(flag_key=flag.key, value=value, reason=reason)


__all__ = ["EvaluationPipeline"]
