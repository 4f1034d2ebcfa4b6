"""Document model adapter.

Turns raw markup into a read-only tree of :class:`Node` objects.  Parsing is
delegated to BeautifulSoup's ``html.parser`` backend, which tolerates the
same sloppiness browsers do (unclosed tags, stray end tags, upper-case names),
so a :class:`~accesshtml.errors.ParseError` is only raised when the input
cannot be read as markup at all.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

from accesshtml.errors import ParseError

logger = logging.getLogger(__name__)

TEXT_NODE = "#text"
DOCUMENT_NODE = "#document"

_SNAPSHOT_MAX = 120
_ATTR_VALUE_MAX = 40
_WS = re.compile(r"\s+")


class Node:
    """One node of the document tree.

    Element nodes carry a lower-case tag name and an ordered attribute
    mapping; text nodes use the tag ``"#text"`` and carry ``text``.  Nodes
    are never modified after :func:`parse` returns.
    """

    __slots__ = ("_tag", "_attrs", "_children", "_parent", "_text", "_type_index")

    def __init__(
        self,
        tag: str,
        attrs: Mapping[str, str] | None = None,
        text: str = "",
    ) -> None:
        self._tag = tag
        self._attrs: Mapping[str, str] = MappingProxyType(dict(attrs or {}))
        self._children: tuple[Node, ...] = ()
        self._parent: Node | None = None
        self._text = text
        self._type_index = 1

    def __repr__(self) -> str:
        if self.is_text:
            return f"Node(#text {self._text[:20]!r})"
        return f"Node({self.snapshot()})"

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def attrs(self) -> Mapping[str, str]:
        return self._attrs

    @property
    def children(self) -> tuple[Node, ...]:
        return self._children

    @property
    def parent(self) -> Node | None:
        return self._parent

    @property
    def text(self) -> str:
        return self._text

    @property
    def is_text(self) -> bool:
        return self._tag == TEXT_NODE

    @property
    def is_element(self) -> bool:
        return self._tag not in (TEXT_NODE, DOCUMENT_NODE)

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return an attribute value; names are case-insensitive."""
        return self._attrs.get(name.lower(), default)

    def has(self, name: str) -> bool:
        return name.lower() in self._attrs

    @property
    def element_children(self) -> list[Node]:
        return [c for c in self._children if c.is_element]

    def ancestors(self) -> Iterator[Node]:
        """Yield element ancestors, nearest first."""
        node = self._parent
        while node is not None and node.is_element:
            yield node
            node = node._parent

    def descendants(self) -> Iterator[Node]:
        """Yield descendant elements in document order."""
        for child in self._children:
            if child.is_element:
                yield child
                yield from child.descendants()

    def text_content(self) -> str:
        """All descendant text, whitespace-collapsed."""
        if self.is_text:
            return _WS.sub(" ", self._text).strip()
        parts: list[str] = []
        self._collect_text(parts)
        return _WS.sub(" ", " ".join(parts)).strip()

    def _collect_text(self, parts: list[str]) -> None:
        for child in self._children:
            if child.is_text:
                parts.append(child._text)
            else:
                child._collect_text(parts)

    def snapshot(self) -> str:
        """Short textual form of the element's start tag, e.g. ``<img src="a.png">``."""
        if not self.is_element:
            return self.text_content()[:_SNAPSHOT_MAX]
        pieces = [self._tag]
        for name, value in self._attrs.items():
            if value == "":
                pieces.append(name)
                continue
            if len(value) > _ATTR_VALUE_MAX:
                value = value[: _ATTR_VALUE_MAX - 3] + "..."
            pieces.append(f'{name}="{value}"')
        out = "<" + " ".join(pieces) + ">"
        if len(out) > _SNAPSHOT_MAX:
            out = out[: _SNAPSHOT_MAX - 4] + "...>"
        return out

    def selector_path(self) -> str:
        """CSS path from the nearest id-bearing ancestor (or the root) to this node."""
        if not self.is_element:
            return self._parent.selector_path() if self._parent else ""
        segments: list[str] = []
        node: Node | None = self
        while node is not None and node.is_element:
            element_id = node.get("id")
            if element_id:
                segments.append(f"{node._tag}#{element_id}")
                break
            segment = node._tag
            if node._has_same_tag_siblings():
                segment += f":nth-of-type({node._type_index})"
            segments.append(segment)
            node = node._parent
        return " > ".join(reversed(segments))

    def _has_same_tag_siblings(self) -> bool:
        if self._parent is None:
            return False
        return sum(1 for c in self._parent._children if c._tag == self._tag) > 1


class DocumentModel:
    """A parsed document, queryable by tag, attribute, id and CSS selector."""

    def __init__(self, root: Node, soup: BeautifulSoup, index: dict[int, Node]) -> None:
        self._root = root
        self._soup = soup
        self._index = index

    @property
    def root(self) -> Node:
        return self._root

    def elements(self) -> Iterator[Node]:
        """Every element in document order."""
        return self._root.descendants()

    def find_all(self, *tags: str) -> list[Node]:
        wanted = {t.lower() for t in tags}
        return [n for n in self.elements() if n.tag in wanted]

    def has_element(self, tag: str) -> bool:
        tag = tag.lower()
        return any(n.tag == tag for n in self.elements())

    def with_attribute(self, name: str, value: str | None = None) -> list[Node]:
        """Elements carrying attribute *name* (optionally with exactly *value*)."""
        name = name.lower()
        out = []
        for node in self.elements():
            if name not in node.attrs:
                continue
            if value is None or node.attrs[name] == value:
                out.append(node)
        return out

    def by_id(self, element_id: str) -> Node | None:
        for node in self.elements():
            if node.get("id") == element_id:
                return node
        return None

    def ids(self) -> set[str]:
        return {n.attrs["id"] for n in self.elements() if n.attrs.get("id")}

    def select(self, selector: str) -> list[Node]:
        """Elements matching a CSS selector, in document order."""
        return [self._index[id(tag)] for tag in self._soup.select(selector)]


def parse(markup: str | bytes) -> DocumentModel:
    """Parse *markup* into a :class:`DocumentModel`.

    Raises ``ParseError`` only when the input is not markup at all (wrong
    type, undecodable bytes, or rejected by the parser).
    """
    if isinstance(markup, bytes):
        try:
            markup = markup.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError("Markup is not valid UTF-8", context=repr(markup[:40])) from exc
    if not isinstance(markup, str):
        raise ParseError(f"Expected markup as text, got {type(markup).__name__}")

    clean = markup.replace("\ufeff", "")
    try:
        soup = BeautifulSoup(clean, "html.parser", multi_valued_attributes=None)
    except ParserRejectedMarkup as exc:
        raise ParseError(f"Parser rejected markup: {exc}", context=clean[:60]) from exc

    index: dict[int, Node] = {}
    root = Node(DOCUMENT_NODE)
    root._children = tuple(_build_children(soup, root, index))
    logger.debug("Parsed document with %d element(s)", len(index))
    return DocumentModel(root, soup, index)


def _build_children(tag: Tag, parent: Node, index: dict[int, Node]) -> list[Node]:
    children: list[Node] = []
    seen_tags: dict[str, int] = {}
    for item in tag.children:
        if isinstance(item, Tag):
            attrs = {k.lower(): _attr_text(v) for k, v in item.attrs.items()}
            node = Node(item.name.lower(), attrs)
            seen_tags[node.tag] = seen_tags.get(node.tag, 0) + 1
            node._type_index = seen_tags[node.tag]
            node._parent = parent
            index[id(item)] = node
            node._children = tuple(_build_children(item, node, index))
            children.append(node)
        elif type(item) is NavigableString:
            # Comments, doctypes and CDATA are NavigableString subclasses.
            text_node = Node(TEXT_NODE, text=str(item))
            text_node._parent = parent
            children.append(text_node)
    return children


def _attr_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)
