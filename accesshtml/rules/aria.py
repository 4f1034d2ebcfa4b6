"""ARIA legality checks that need the whole document: id references and hidden focus."""

from __future__ import annotations

from collections.abc import Iterator

from accesshtml.catalog import Finding, builtin_rule
from accesshtml.dom import DocumentModel, Node
from accesshtml.models import ConformanceLevel, Impact, Severity, Standard

_IDREF_ATTRIBUTES = (
    "aria-activedescendant",
    "aria-controls",
    "aria-describedby",
    "aria-details",
    "aria-errormessage",
    "aria-flowto",
    "aria-labelledby",
    "aria-owns",
)

_FOCUSABLE_TAGS = frozenset({"button", "input", "select", "textarea", "iframe"})


@builtin_rule(
    "aria-valid-idref",
    standard=Standard.ARIA,
    level=ConformanceLevel.A,
    title="ARIA id references resolve",
    severity=Severity.ERROR,
    impact=Impact.SERIOUS,
    remediation="Point the attribute at the id of an element that exists in the page.",
)
def check_idrefs(doc: DocumentModel) -> Iterator[Finding]:
    """ARIA relationship attributes reference elements that exist."""
    ids = doc.ids()
    for name in _IDREF_ATTRIBUTES:
        for node in doc.with_attribute(name):
            missing = [ref for ref in node.get(name, "").split() if ref not in ids]
            if missing:
                yield Finding(node, f"{name} references missing id(s): {', '.join(missing)}")


def _is_focusable(node: Node) -> bool:
    tabindex = (node.get("tabindex") or "").strip()
    if tabindex.lstrip("-").isdigit():
        return int(tabindex) >= 0
    if node.has("disabled"):
        return False
    if node.tag in ("a", "area"):
        return node.has("href")
    if node.tag == "input":
        return (node.get("type") or "").lower() != "hidden"
    return node.tag in _FOCUSABLE_TAGS


@builtin_rule(
    "aria-hidden-focus",
    standard=Standard.ARIA,
    level=ConformanceLevel.A,
    title="Hidden elements are not focusable",
    severity=Severity.ERROR,
    impact=Impact.SERIOUS,
    remediation='Remove aria-hidden="true" or take the element out of the tab order.',
)
def check_hidden_focus(doc: DocumentModel) -> Iterator[Finding]:
    """Content hidden with aria-hidden must not receive keyboard focus."""
    seen: set[int] = set()
    for hidden in doc.with_attribute("aria-hidden"):
        if hidden.get("aria-hidden", "").strip().lower() != "true":
            continue
        for node in (hidden, *hidden.descendants()):
            if id(node) in seen or not _is_focusable(node):
                continue
            seen.add(id(node))
            yield Finding(node, f"Focusable <{node.tag}> is inside aria-hidden content")
