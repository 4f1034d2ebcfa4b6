"""Accessibility evaluator: runs the rule catalog against a document."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from accesshtml.catalog import Rule, RuleCatalog
from accesshtml.dom import DocumentModel
from accesshtml.errors import RuleExecutionError
from accesshtml.models import CheckOutcome, EvaluationResult, Impact, Issue, Severity

logger = logging.getLogger(__name__)

_IMPACT_ORDER = [Impact.MINOR, Impact.MODERATE, Impact.SERIOUS, Impact.CRITICAL]


class AccessibilityEvaluator:
    """Evaluates a parsed document against every executable rule in a catalog.

    Rules only get read access to the document and run independently, so
    they may be spread over a thread pool with ``max_workers > 1``.  A rule
    that raises is reported as a single synthetic error issue; the other
    rules still run.

    Usage::

        evaluator = AccessibilityEvaluator(RuleCatalog())
        result = evaluator.evaluate(parse(html))
    """

    def __init__(
        self,
        catalog: RuleCatalog,
        *,
        min_impact: Impact = Impact.MINOR,
        max_workers: int = 1,
    ) -> None:
        self.catalog = catalog
        self.min_impact = min_impact
        self.max_workers = max_workers

    def evaluate(self, doc: DocumentModel) -> EvaluationResult:
        rules = [r for r in self.catalog.all() if r.executable]

        if self.max_workers > 1 and len(rules) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outputs = list(pool.map(lambda r: _run_single_rule(r, doc), rules))
        else:
            outputs = [_run_single_rule(r, doc) for r in rules]

        result = EvaluationResult()
        threshold = _IMPACT_ORDER.index(self.min_impact)
        for rule, (issues, crashed) in zip(rules, outputs):
            # A rule that raised is always reported, whatever the threshold.
            if crashed:
                kept = issues
            else:
                kept = [i for i in issues if _IMPACT_ORDER.index(i.impact) >= threshold]
            result.issues.extend(kept)
            result.checks.append(
                CheckOutcome(
                    rule_id=rule.id,
                    level=rule.level,
                    impact=rule.impact,
                    passed=not kept,
                )
            )

        logger.info(
            "Evaluated %d rule(s): %d issue(s), %d passed",
            len(rules), len(result.issues), result.passed,
        )
        return result


def _run_single_rule(rule: Rule, doc: DocumentModel) -> tuple[list[Issue], bool]:
    """Run one rule; returns its issues and whether it raised."""
    try:
        return rule.check(doc), False
    except Exception as exc:
        error = RuleExecutionError(rule.id, exc)
        logger.error("%s", error, exc_info=True)
        return [
            Issue(
                rule_id=rule.id,
                severity=Severity.ERROR,
                impact=Impact.SERIOUS,
                message=str(error),
                standard=rule.standard,
                level=rule.level,
                remediation="The rule could not be evaluated; check the rule implementation.",
            )
        ], True
