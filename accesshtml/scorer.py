"""Compliance scorer: turns evaluator and ARIA findings into a conformance verdict."""

from __future__ import annotations

import logging

from accesshtml.errors import ConfigValidationError
from accesshtml.models import (
    RULE_LEVELS,
    AriaValidationResult,
    ComplianceReport,
    ConformanceLevel,
    EvaluationResult,
    Impact,
    Severity,
)

logger = logging.getLogger(__name__)

# Weight of one valid ARIA usage counted as a passed check.
_ARIA_PASS_WEIGHT = Impact.MINOR.weight


def resolve_level(value: ConformanceLevel | str) -> ConformanceLevel:
    """Parse a target level, rejecting anything other than A, AA or AAA."""
    try:
        level = ConformanceLevel.parse(value)
    except ValueError as exc:
        raise ConfigValidationError(str(exc), field="target_level") from exc
    if level == ConformanceLevel.NONE:
        raise ConfigValidationError("Target level must be A, AA or AAA", field="target_level")
    return level


class ComplianceScorer:
    """Computes the conformance level and a 0-100 score.

    Level L is met when no error-severity issue exists at any level up to
    and including L.  One unresolved level-A error therefore means no level
    is met at all.

    The score is ``100 * (1 - weighted_errors / weighted_total_checks)``
    where each error weighs its impact (critical 4, serious 3, moderate 2,
    minor 1) and the total adds the weight of every passed check.
    """

    def score(
        self,
        evaluation: EvaluationResult,
        aria: AriaValidationResult | None,
        target_level: ConformanceLevel | str = ConformanceLevel.AA,
    ) -> ComplianceReport:
        target = resolve_level(target_level)

        issues = list(evaluation.issues)
        if aria is not None:
            issues.extend(aria.issues)
        errors = [i for i in issues if i.severity == Severity.ERROR]

        errors_by_level = {lvl.value: 0 for lvl in RULE_LEVELS}
        for issue in errors:
            errors_by_level[issue.level.value] = errors_by_level.get(issue.level.value, 0) + 1

        level = ConformanceLevel.NONE
        for candidate in RULE_LEVELS:
            if any(i.level <= candidate for i in errors):
                break
            level = candidate

        weighted_errors = sum(i.impact.weight for i in errors)
        weighted_passes = sum(c.impact.weight for c in evaluation.checks if c.passed)
        if aria is not None:
            weighted_passes += _ARIA_PASS_WEIGHT * len(aria.valid_usages)
        weighted_total = weighted_errors + weighted_passes

        if weighted_total == 0:
            value = 100.0
        else:
            value = 100.0 * (1 - weighted_errors / weighted_total)
        value = round(min(100.0, max(0.0, value)), 1)

        report = ComplianceReport(
            level=level,
            score=value,
            meets_target=level >= target,
            target_level=target,
            errors_by_level=errors_by_level,
        )
        logger.debug("Compliance: level=%s score=%.1f target=%s", level.value, value, target.value)
        return report
