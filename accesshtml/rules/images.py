"""Non-text content: images and image-like controls need a text alternative."""

from __future__ import annotations

from collections.abc import Iterator

from accesshtml.catalog import Finding, builtin_rule
from accesshtml.dom import DocumentModel
from accesshtml.models import ConformanceLevel, Impact, Severity
from accesshtml.rules._names import is_hidden, labelledby_text


@builtin_rule(
    "1.1.1",
    level=ConformanceLevel.A,
    title="Non-text Content",
    severity=Severity.ERROR,
    impact=Impact.CRITICAL,
    remediation='Add an alt attribute describing the image, or alt="" if it is decorative.',
)
def check_non_text_content(doc: DocumentModel) -> Iterator[Finding]:
    """All non-text content presented to the user has a text alternative."""
    for node in doc.find_all("img", "area", "input"):
        if node.tag == "input" and (node.get("type") or "").lower() != "image":
            continue
        if node.tag == "area" and not node.has("href"):
            continue
        if node.has("alt") and node.tag == "img":
            continue
        if node.get("alt", "").strip():
            continue
        if is_hidden(node):
            continue
        if node.get("aria-label", "").strip() or labelledby_text(node, doc):
            continue
        if node.tag == "img" and node.get("role", "").lower() in ("presentation", "none"):
            continue

        src = node.get("src") or node.get("href") or ""
        what = {"img": "Image", "area": "Image map area"}.get(node.tag, "Image button")
        suffix = f": {src}" if src else ""
        yield Finding(node, f"{what} is missing a text alternative{suffix}")
