"""Accessible-name helpers shared across rules."""

from __future__ import annotations

import re

from accesshtml.dom import DocumentModel, Node

_WS = re.compile(r"\s+")

_LABELABLE = frozenset({"input", "select", "textarea", "meter", "output", "progress"})


def _clean(text: str | None) -> str:
    return _WS.sub(" ", text or "").strip()


def is_hidden(node: Node) -> bool:
    """True if the node or an ancestor is removed from the accessibility tree."""
    for candidate in (node, *node.ancestors()):
        if candidate.has("hidden") or candidate.get("aria-hidden", "").lower() == "true":
            return True
    return False


def subtree_text(node: Node) -> str:
    """Text a screen reader would read for *node*'s content (text plus image alts)."""
    parts: list[str] = []
    _walk(node, parts)
    return _clean(" ".join(parts))


def _walk(node: Node, parts: list[str]) -> None:
    for child in node.children:
        if child.is_text:
            parts.append(child.text)
            continue
        if child.get("aria-hidden", "").lower() == "true" or child.has("hidden"):
            continue
        label = _clean(child.get("aria-label"))
        if label:
            parts.append(label)
        elif child.tag in ("img", "area"):
            parts.append(child.get("alt") or "")
        elif child.tag == "input" and (child.get("type") or "").lower() == "image":
            parts.append(child.get("alt") or "")
        else:
            _walk(child, parts)


def labelledby_text(node: Node, doc: DocumentModel) -> str:
    ids = (node.get("aria-labelledby") or "").split()
    texts = []
    for element_id in ids:
        target = doc.by_id(element_id)
        if target is not None:
            texts.append(_clean(target.get("aria-label")) or subtree_text(target))
    return _clean(" ".join(texts))


def label_text(node: Node, doc: DocumentModel) -> str:
    """Text of ``<label>`` elements associated with a form control."""
    if node.tag not in _LABELABLE:
        return ""
    texts = []
    element_id = node.get("id")
    if element_id:
        for label in doc.find_all("label"):
            if label.get("for") == element_id:
                texts.append(subtree_text(label))
    for ancestor in node.ancestors():
        if ancestor.tag == "label":
            texts.append(subtree_text(ancestor))
            break
    return _clean(" ".join(texts))


def accessible_name(node: Node, doc: DocumentModel) -> str:
    """Approximate accessible name of *node*.

    Follows the usual precedence: aria-labelledby, aria-label, native
    labelling (alt, <label>, value), content, then title.
    """
    name = labelledby_text(node, doc)
    if name:
        return name
    name = _clean(node.get("aria-label"))
    if name:
        return name
    if node.tag in ("img", "area"):
        name = _clean(node.get("alt"))
    elif node.tag == "input":
        input_type = (node.get("type") or "text").lower()
        if input_type == "image":
            name = _clean(node.get("alt"))
        elif input_type in ("button", "submit", "reset"):
            name = _clean(node.get("value"))
            if not name and input_type in ("submit", "reset"):
                name = input_type.capitalize()
        else:
            name = label_text(node, doc)
    elif node.tag in _LABELABLE:
        name = label_text(node, doc)
    else:
        name = subtree_text(node)
    if name:
        return name
    return _clean(node.get("title"))
