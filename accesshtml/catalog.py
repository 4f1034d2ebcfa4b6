"""Rule catalog: the refreshable table of accessibility checks."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from accesshtml.dom import DocumentModel, Node
from accesshtml.models import ConformanceLevel, Impact, Issue, Severity, Standard

if TYPE_CHECKING:
    from accesshtml.docs.cache import WCAGDataSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Finding:
    """Raw output of a check function, before rule metadata is attached."""

    node: Node | None
    message: str
    severity: Severity | None = None
    impact: Impact | None = None


CheckFunction = Callable[[DocumentModel], Iterable[Finding]]


@dataclass(frozen=True)
class Rule:
    """A single accessibility rule.

    Every rule exposes the same ``check(doc)`` capability.  Rules created from
    scraped documentation have no ``checker`` and therefore never report
    anything; they only carry metadata.
    """

    id: str
    standard: Standard
    level: ConformanceLevel
    title: str
    description: str = ""
    severity: Severity = Severity.ERROR
    impact: Impact = Impact.MODERATE
    remediation: str = ""
    checker: CheckFunction | None = dataclasses.field(default=None, compare=False)

    @property
    def executable(self) -> bool:
        return self.checker is not None

    def check(self, doc: DocumentModel) -> list[Issue]:
        if self.checker is None:
            return []
        return [self._to_issue(f) for f in self.checker(doc)]

    def _to_issue(self, finding: Finding) -> Issue:
        node = finding.node
        return Issue(
            rule_id=self.id,
            severity=finding.severity or self.severity,
            impact=finding.impact or self.impact,
            message=finding.message,
            element_snapshot=node.snapshot() if node is not None else "",
            selector_path=node.selector_path() if node is not None else "",
            standard=self.standard,
            level=self.level,
            remediation=self.remediation,
        )


# Built-in rules are collected here by @builtin_rule, in import order.
_BUILTIN_RULES: list[Rule] = []
_all_registered: bool = False


def builtin_rule(
    rule_id: str,
    *,
    level: ConformanceLevel,
    title: str,
    standard: Standard = Standard.WCAG,
    severity: Severity = Severity.ERROR,
    impact: Impact = Impact.MODERATE,
    description: str = "",
    remediation: str = "",
) -> Callable[[CheckFunction], CheckFunction]:
    """Function decorator that declares a check function as a built-in rule."""

    def decorator(func: CheckFunction) -> CheckFunction:
        rule = Rule(
            id=rule_id,
            standard=standard,
            level=level,
            title=title,
            description=description or (func.__doc__ or "").strip(),
            severity=severity,
            impact=impact,
            remediation=remediation,
            checker=func,
        )
        _BUILTIN_RULES[:] = [r for r in _BUILTIN_RULES if r.id != rule_id]
        _BUILTIN_RULES.append(rule)
        return func

    return decorator


def builtin_rules() -> list[Rule]:
    """Return the built-in rule set (importing the rule modules on first use)."""
    global _all_registered
    if not _all_registered:
        from accesshtml.rules import _register_all
        _register_all()
        _all_registered = True
    return list(_BUILTIN_RULES)


class RuleCatalog:
    """In-memory table of rules keyed by id.

    Usage::

        catalog = RuleCatalog()            # seeded with built-in rules
        catalog.register(my_rule)          # replaces any rule with the same id
        rules = catalog.all_for_level(ConformanceLevel.AA)
    """

    def __init__(self, rules: Iterable[Rule] | None = None, *, include_builtins: bool = True) -> None:
        self._rules: dict[str, Rule] = {}
        self._guidelines: dict[str, str] = {}
        if include_builtins:
            for rule in builtin_rules():
                self.register(rule)
        for rule in rules or ():
            self.register(rule)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def register(self, rule: Rule) -> None:
        self._rules[rule.id] = rule

    def get(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def all(self) -> list[Rule]:
        return list(self._rules.values())

    def all_for_level(self, level: ConformanceLevel | str) -> list[Rule]:
        """Rules whose level is at or below *level* (A within AA within AAA)."""
        level = ConformanceLevel.parse(level)
        return [r for r in self._rules.values() if r.level <= level]

    @property
    def guidelines(self) -> dict[str, str]:
        return dict(self._guidelines)

    def merge_snapshot(self, snapshot: WCAGDataSnapshot) -> tuple[int, int]:
        """Fold scraped success criteria into the catalog by id.

        Existing rules keep their check function and get the scraped title and
        level; unknown criteria are added as metadata-only rules.  Nothing is
        ever removed.  Returns ``(added, updated)``.
        """
        added = updated = 0
        for criterion in snapshot.success_criteria:
            try:
                level = ConformanceLevel.parse(criterion.level)
            except ValueError:
                level = ConformanceLevel.A
            if level == ConformanceLevel.NONE:
                level = ConformanceLevel.A
            existing = self._rules.get(criterion.id)
            if existing is not None:
                self._rules[criterion.id] = dataclasses.replace(
                    existing,
                    title=criterion.title or existing.title,
                    level=level,
                    description=criterion.description or existing.description,
                )
                updated += 1
            else:
                self._rules[criterion.id] = Rule(
                    id=criterion.id,
                    standard=Standard.WCAG,
                    level=level,
                    title=criterion.title,
                    description=criterion.description,
                )
                added += 1
        for guideline in snapshot.guidelines:
            self._guidelines[guideline.id] = guideline.title
        logger.info("Merged documentation snapshot: %d rule(s) added, %d updated", added, updated)
        return added, updated
