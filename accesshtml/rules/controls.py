"""Interactive controls: semantic elements, accessible names, and landmarks."""

from __future__ import annotations

from collections.abc import Iterator

from accesshtml.aria import explicit_role
from accesshtml.catalog import Finding, builtin_rule
from accesshtml.dom import DocumentModel
from accesshtml.models import ConformanceLevel, Impact, Severity
from accesshtml.rules._names import accessible_name, is_hidden

_EVENT_HANDLERS = ("onclick", "onkeydown", "onkeyup", "onkeypress", "onmousedown")
_NON_SEMANTIC = frozenset({"div", "span", "p", "li", "td", "section", "img", "i", "b"})


def _tabindex(value: str | None) -> int | None:
    try:
        return int((value or "").strip())
    except ValueError:
        return None


@builtin_rule(
    "4.1.2",
    level=ConformanceLevel.A,
    title="Name, Role, Value",
    severity=Severity.ERROR,
    impact=Impact.SERIOUS,
    remediation="Use a native control (<button>, <a href>, <input>) or give the element a role and an accessible name.",
)
def check_interactive_controls(doc: DocumentModel) -> Iterator[Finding]:
    """User interface components expose a name and role."""
    for node in doc.elements():
        if is_hidden(node):
            continue

        if node.tag == "button" or (
            node.tag == "input" and (node.get("type") or "").lower() in ("button", "submit", "reset")
        ):
            if not accessible_name(node, doc):
                yield Finding(node, "Button has no accessible name", impact=Impact.CRITICAL)
            continue

        if node.tag not in _NON_SEMANTIC or explicit_role(node) is not None:
            continue
        has_handler = any(node.has(h) for h in _EVENT_HANDLERS)
        tabindex = _tabindex(node.get("tabindex"))
        focusable = tabindex is not None and tabindex >= 0
        if has_handler:
            yield Finding(
                node,
                f"<{node.tag}> has an event handler but no role; use a native control",
            )
        elif focusable:
            yield Finding(
                node,
                f"Focusable <{node.tag}> has no role to describe what it does",
                severity=Severity.WARNING,
                impact=Impact.MODERATE,
            )


@builtin_rule(
    "2.4.1",
    level=ConformanceLevel.A,
    title="Bypass Blocks",
    severity=Severity.WARNING,
    impact=Impact.MODERATE,
    remediation="Wrap the primary content in <main> (or role=\"main\") so users can skip to it.",
)
def check_main_landmark(doc: DocumentModel) -> Iterator[Finding]:
    """A mechanism is available to bypass blocks repeated across pages."""
    bodies = doc.find_all("body")
    if not bodies:
        return
    if doc.find_all("main") or doc.with_attribute("role", "main"):
        return
    yield Finding(bodies[0], "Page has no main landmark")
