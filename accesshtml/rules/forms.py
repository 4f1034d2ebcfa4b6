"""Form controls must be programmatically associated with a label."""

from __future__ import annotations

from collections.abc import Iterator

from accesshtml.catalog import Finding, builtin_rule
from accesshtml.dom import DocumentModel
from accesshtml.models import ConformanceLevel, Impact, Severity
from accesshtml.rules._names import is_hidden, label_text, labelledby_text

# Input types that are labelled by their own value or are not user-facing.
_SELF_LABELLED = frozenset({"hidden", "submit", "reset", "button", "image"})


@builtin_rule(
    "1.3.1",
    level=ConformanceLevel.A,
    title="Info and Relationships",
    severity=Severity.ERROR,
    impact=Impact.SERIOUS,
    remediation="Associate a <label for=...> with the control, wrap it in a <label>, or add aria-label.",
)
def check_form_labels(doc: DocumentModel) -> Iterator[Finding]:
    """Form controls expose their label relationship programmatically."""
    for node in doc.find_all("input", "select", "textarea"):
        if node.tag == "input" and (node.get("type") or "text").lower() in _SELF_LABELLED:
            continue
        if is_hidden(node):
            continue
        if label_text(node, doc) or labelledby_text(node, doc):
            continue
        if node.get("aria-label", "").strip() or node.get("title", "").strip():
            continue

        if node.get("placeholder", "").strip():
            message = f"Form control <{node.tag}> relies on placeholder text instead of a label"
        else:
            message = f"Form control <{node.tag}> has no associated label"
        yield Finding(node, message)
