"""Shared data models used across the AccessHTML pipeline."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


class Severity(str, enum.Enum):
    """Severity level for accessibility issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Impact(str, enum.Enum):
    """Effect of an issue on an assistive-technology user."""

    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        return _IMPACT_WEIGHTS[self]


_IMPACT_WEIGHTS = {
    Impact.MINOR: 1,
    Impact.MODERATE: 2,
    Impact.SERIOUS: 3,
    Impact.CRITICAL: 4,
}


class Standard(str, enum.Enum):
    """Standard a rule belongs to."""

    WCAG = "WCAG"
    ARIA = "ARIA"


class ConformanceLevel(str, enum.Enum):
    """WCAG conformance level with an explicit total order.

    ``NONE < A < AA < AAA``.  Comparisons never fall back to string
    ordering, so ``ConformanceLevel.NONE < ConformanceLevel.A`` holds even
    though ``"none" > "A"`` as plain strings.
    """

    NONE = "none"
    A = "A"
    AA = "AA"
    AAA = "AAA"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]

    @classmethod
    def parse(cls, value: str | ConformanceLevel) -> ConformanceLevel:
        """Return the level named by *value* (case-insensitive).

        Raises ``ValueError`` for anything that is not a known level.
        """
        if isinstance(value, ConformanceLevel):
            return value
        normalized = str(value).strip()
        for level in cls:
            if level.value.lower() == normalized.lower():
                return level
        raise ValueError(f"Unknown conformance level: {value!r}")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_RANKS = {
    ConformanceLevel.NONE: 0,
    ConformanceLevel.A: 1,
    ConformanceLevel.AA: 2,
    ConformanceLevel.AAA: 3,
}

# Levels a rule or target can actually carry, lowest first.
RULE_LEVELS = (ConformanceLevel.A, ConformanceLevel.AA, ConformanceLevel.AAA)


@dataclass(frozen=True)
class Issue:
    """A single accessibility issue found in one document."""

    rule_id: str
    severity: Severity
    impact: Impact
    message: str
    element_snapshot: str = ""
    selector_path: str = ""
    standard: Standard = Standard.WCAG
    level: ConformanceLevel = ConformanceLevel.A
    remediation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "severity": self.severity.value,
            "impact": self.impact.value,
            "message": self.message,
            "elementSnapshot": self.element_snapshot,
            "selectorPath": self.selector_path,
            "standard": self.standard.value,
            "level": self.level.value,
            "remediation": self.remediation,
        }


@dataclass
class IssueSummary:
    """Counts derived from an issue list."""

    total: int = 0
    errors: int = 0
    warnings: int = 0
    info: int = 0
    by_standard: dict[str, int] = field(default_factory=dict)
    by_impact: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_issues(cls, issues: list[Issue]) -> IssueSummary:
        """Build a summary in a single pass over *issues*."""
        summary = cls()
        for issue in issues:
            summary.total += 1
            if issue.severity == Severity.ERROR:
                summary.errors += 1
            elif issue.severity == Severity.WARNING:
                summary.warnings += 1
            else:
                summary.info += 1
            std = issue.standard.value
            summary.by_standard[std] = summary.by_standard.get(std, 0) + 1
            imp = issue.impact.value
            summary.by_impact[imp] = summary.by_impact.get(imp, 0) + 1
        return summary


@dataclass(frozen=True)
class CheckOutcome:
    """Pass/fail record for one executed rule."""

    rule_id: str
    level: ConformanceLevel
    impact: Impact
    passed: bool


@dataclass
class EvaluationResult:
    """Issues produced by running the rule catalog against a document."""

    issues: list[Issue] = field(default_factory=list)
    checks: list[CheckOutcome] = field(default_factory=list)

    @property
    def summary(self) -> IssueSummary:
        return IssueSummary.from_issues(self.issues)

    @property
    def passed(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def failed(self) -> int:
        return sum(1 for c in self.checks if not c.passed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues": [i.to_dict() for i in self.issues],
            "summary": asdict(self.summary),
            "tally": {"passed": self.passed, "failed": self.failed},
        }


@dataclass
class AriaValidationResult:
    """Output of the ARIA validator."""

    issues: list[Issue] = field(default_factory=list)
    valid_usages: list[str] = field(default_factory=list)
    statistics: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues": [i.to_dict() for i in self.issues],
            "validUsages": list(self.valid_usages),
            "statistics": dict(self.statistics),
        }


@dataclass
class ComplianceReport:
    """Conformance verdict for one document."""

    level: ConformanceLevel
    score: float
    meets_target: bool
    target_level: ConformanceLevel
    errors_by_level: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "score": self.score,
            "meetsTarget": self.meets_target,
            "targetLevel": self.target_level.value,
            "errorsByLevel": dict(self.errors_by_level),
        }


@dataclass
class AnalysisReport:
    """Complete result of one ``analyze`` call."""

    timestamp: datetime
    source: str
    target_level: ConformanceLevel
    evaluation: EvaluationResult
    compliance: ComplianceReport
    aria: AriaValidationResult
    warnings: list[str] = field(default_factory=list)
    report_path: Path | None = None

    @property
    def total_issues(self) -> int:
        return len(self.evaluation.issues) + len(self.aria.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
            "targetLevel": self.target_level.value,
            "evaluation": self.evaluation.to_dict(),
            "compliance": self.compliance.to_dict(),
            "aria": self.aria.to_dict(),
            "summary": {
                "totalIssues": self.total_issues,
                "complianceLevel": self.compliance.level.value,
                "meetsTarget": self.compliance.meets_target,
                "ariaIssues": len(self.aria.issues),
            },
            "warnings": list(self.warnings),
        }
