"""Heading structure: levels increase one step at a time and headings have text."""

from __future__ import annotations

from collections.abc import Iterator

from accesshtml.catalog import Finding, builtin_rule
from accesshtml.dom import DocumentModel, Node
from accesshtml.models import ConformanceLevel, Impact, Severity
from accesshtml.rules._names import is_hidden, subtree_text

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def _heading_level(node: Node) -> int | None:
    if node.tag in _HEADING_TAGS:
        return int(node.tag[1])
    if (node.get("role") or "").lower() == "heading":
        level = (node.get("aria-level") or "").strip()
        return int(level) if level.isdigit() and int(level) > 0 else 2
    return None


@builtin_rule(
    "2.4.6",
    level=ConformanceLevel.AA,
    title="Headings and Labels",
    severity=Severity.WARNING,
    impact=Impact.MODERATE,
    remediation="Use heading levels in order (h1, h2, h3...) without skipping levels.",
)
def check_heading_order(doc: DocumentModel) -> Iterator[Finding]:
    """Headings describe topic structure; levels are never skipped."""
    last_level = 0
    for node in doc.elements():
        level = _heading_level(node)
        if level is None or is_hidden(node):
            continue
        if not subtree_text(node) and not node.get("aria-label", "").strip():
            yield Finding(node, f"Heading <{node.tag}> is empty")
        if last_level > 0 and level > last_level + 1:
            yield Finding(node, f"Heading level skipped: h{last_level} -> h{level}")
        elif last_level == 0 and level > 2:
            yield Finding(node, f"First heading is h{level}; expected h1 or h2")
        last_level = level
