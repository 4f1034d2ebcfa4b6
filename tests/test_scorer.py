"""Tests for the compliance scorer."""

from __future__ import annotations

import pytest

from accesshtml.aria import AriaValidator
from accesshtml.catalog import RuleCatalog
from accesshtml.dom import parse
from accesshtml.errors import ConfigValidationError
from accesshtml.evaluator import AccessibilityEvaluator
from accesshtml.models import (
    AriaValidationResult,
    CheckOutcome,
    ConformanceLevel,
    EvaluationResult,
    Impact,
    Issue,
    Severity,
    Standard,
)
from accesshtml.scorer import ComplianceScorer
from tests.fixtures.pages import ACCESSIBLE_PAGE


def _error(level: ConformanceLevel, impact: Impact = Impact.SERIOUS) -> Issue:
    return Issue(rule_id=f"r-{level.value}", severity=Severity.ERROR, impact=impact, message="m", level=level)


def _passes(n: int, impact: Impact = Impact.MODERATE) -> list[CheckOutcome]:
    return [CheckOutcome(f"p{i}", ConformanceLevel.A, impact, True) for i in range(n)]


class TestLevel:
    def test_level_a_error_blocks_everything(self) -> None:
        report = ComplianceScorer().score(
            EvaluationResult(issues=[_error(ConformanceLevel.A)]), None, "AA"
        )
        assert report.level == ConformanceLevel.NONE
        assert report.meets_target is False

    def test_aa_error_caps_at_a(self) -> None:
        report = ComplianceScorer().score(
            EvaluationResult(issues=[_error(ConformanceLevel.AA)]), None, "A"
        )
        assert report.level == ConformanceLevel.A
        assert report.meets_target is True

    def test_aaa_error_caps_at_aa(self) -> None:
        report = ComplianceScorer().score(EvaluationResult(issues=[_error(ConformanceLevel.AAA)]), None)
        assert report.level == ConformanceLevel.AA
        assert report.meets_target is True
        assert report.target_level == ConformanceLevel.AA

    def test_warnings_do_not_block(self) -> None:
        warning = Issue(rule_id="w", severity=Severity.WARNING, impact=Impact.MODERATE, message="m")
        report = ComplianceScorer().score(EvaluationResult(issues=[warning]), None, "AAA")
        assert report.level == ConformanceLevel.AAA

    def test_aria_errors_count(self) -> None:
        aria = AriaValidationResult(issues=[
            Issue(rule_id="aria-required-attr", severity=Severity.ERROR, impact=Impact.CRITICAL,
                  message="m", standard=Standard.ARIA, level=ConformanceLevel.A),
        ])
        report = ComplianceScorer().score(EvaluationResult(), aria, "A")
        assert report.level == ConformanceLevel.NONE
        assert report.errors_by_level == {"A": 1, "AA": 0, "AAA": 0}

    def test_none_target_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="A, AA or AAA"):
            ComplianceScorer().score(EvaluationResult(), None, ConformanceLevel.NONE)

    def test_unknown_target_rejected(self) -> None:
        with pytest.raises(ConfigValidationError) as info:
            ComplianceScorer().score(EvaluationResult(), None, "B")
        assert info.value.field == "target_level"


class TestScore:
    def test_clean_result_scores_100(self) -> None:
        report = ComplianceScorer().score(EvaluationResult(checks=_passes(5)), None)
        assert report.score == 100.0
        assert report.level == ConformanceLevel.AAA

    def test_nothing_checked_scores_100(self) -> None:
        assert ComplianceScorer().score(EvaluationResult(), None).score == 100.0

    def test_weighted_formula(self) -> None:
        # one serious error (3) against four moderate passes (4 * 2)
        result = EvaluationResult(issues=[_error(ConformanceLevel.A)], checks=_passes(4))
        report = ComplianceScorer().score(result, None)
        assert report.score == round(100 * (1 - 3 / 11), 1)

    def test_only_errors_scores_zero(self) -> None:
        result = EvaluationResult(issues=[_error(ConformanceLevel.A), _error(ConformanceLevel.AA)])
        assert ComplianceScorer().score(result, None).score == 0.0

    def test_score_never_increases_with_more_issues(self) -> None:
        scorer = ComplianceScorer()
        issues: list[Issue] = []
        previous = 100.0
        for impact in (Impact.MINOR, Impact.CRITICAL, Impact.MODERATE, Impact.SERIOUS, Impact.MINOR):
            issues.append(_error(ConformanceLevel.A, impact))
            score = scorer.score(EvaluationResult(issues=list(issues), checks=_passes(6)), None).score
            assert 0.0 <= score <= previous
            previous = score

    def test_valid_aria_usage_counts_as_pass(self) -> None:
        result = EvaluationResult(issues=[_error(ConformanceLevel.A)])
        without = ComplianceScorer().score(result, AriaValidationResult()).score
        with_usage = ComplianceScorer().score(
            result, AriaValidationResult(valid_usages=["aria-label on <nav>"])
        ).score
        assert with_usage > without


class TestEndToEnd:
    def _score(self, html: str, target: str = "AA"):
        doc = parse(html)
        evaluation = AccessibilityEvaluator(RuleCatalog()).evaluate(doc)
        aria = AriaValidator().validate(doc)
        return ComplianceScorer().score(evaluation, aria, target)

    def test_accessible_page_meets_aaa(self) -> None:
        report = self._score(ACCESSIBLE_PAGE, "AAA")
        assert report.level == ConformanceLevel.AAA
        assert report.meets_target
        assert report.score == 100.0

    def test_missing_alt_fails_aa(self) -> None:
        report = self._score('<img src="logo.png">')
        assert report.level == ConformanceLevel.NONE
        assert not report.meets_target
        assert report.score < 100.0
