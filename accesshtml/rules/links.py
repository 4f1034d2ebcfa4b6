"""Link purpose: every link says where it goes."""

from __future__ import annotations

import re
from collections.abc import Iterator

from accesshtml.catalog import Finding, builtin_rule
from accesshtml.dom import DocumentModel
from accesshtml.models import ConformanceLevel, Impact, Severity
from accesshtml.rules._names import accessible_name, is_hidden

_AMBIGUOUS_LINK_TEXTS = frozenset({
    "click here",
    "here",
    "read more",
    "learn more",
    "link",
    "more",
    "more info",
    "more information",
    "details",
    "go",
    "see more",
})

_URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)


@builtin_rule(
    "2.4.4",
    level=ConformanceLevel.A,
    title="Link Purpose (In Context)",
    severity=Severity.ERROR,
    impact=Impact.SERIOUS,
    remediation="Give each link text that describes its destination.",
)
def check_link_purpose(doc: DocumentModel) -> Iterator[Finding]:
    """The purpose of each link can be determined from its text."""
    for node in doc.find_all("a"):
        if not node.has("href") or is_hidden(node):
            continue
        text = accessible_name(node, doc)
        if not text:
            yield Finding(node, "Link has no descriptive text")
        elif text.lower().strip(" .!") in _AMBIGUOUS_LINK_TEXTS:
            yield Finding(
                node,
                f'Link uses ambiguous text "{text}"',
                severity=Severity.WARNING,
                impact=Impact.MODERATE,
            )
        elif _URL_PATTERN.match(text):
            yield Finding(
                node,
                "Link uses a bare URL as its text",
                severity=Severity.INFO,
                impact=Impact.MINOR,
            )
