"""Document-level requirements: page title and language.

Both only apply when the markup is a whole document (it has an <html> or
<head> element); fragments are not expected to carry them.
"""

from __future__ import annotations

from collections.abc import Iterator

from accesshtml.catalog import Finding, builtin_rule
from accesshtml.dom import DocumentModel
from accesshtml.models import ConformanceLevel, Impact, Severity


@builtin_rule(
    "2.4.2",
    level=ConformanceLevel.A,
    title="Page Titled",
    severity=Severity.ERROR,
    impact=Impact.SERIOUS,
    remediation="Add a descriptive <title> to the document head.",
)
def check_page_title(doc: DocumentModel) -> Iterator[Finding]:
    """Web pages have titles that describe topic or purpose."""
    roots = doc.find_all("html") or doc.find_all("head")
    if not roots:
        return
    titles = doc.find_all("title")
    if not titles:
        yield Finding(roots[0], "Document has no <title>")
    elif not titles[0].text_content():
        yield Finding(titles[0], "Document <title> is empty")


@builtin_rule(
    "3.1.1",
    level=ConformanceLevel.A,
    title="Language of Page",
    severity=Severity.ERROR,
    impact=Impact.SERIOUS,
    remediation='Add a lang attribute to the <html> element, e.g. <html lang="en">.',
)
def check_page_language(doc: DocumentModel) -> Iterator[Finding]:
    """The default human language of each page can be determined."""
    for node in doc.find_all("html")[:1]:
        if not node.get("lang", "").strip():
            yield Finding(node, "Document language is not set")
