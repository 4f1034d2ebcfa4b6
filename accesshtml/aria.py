"""ARIA validator.

Checks every element that carries a ``role`` or an ``aria-*`` attribute:

* the role is a recognised, non-abstract WAI-ARIA role,
* the states and properties the role requires are present,
* the role sits inside the context role it needs (``tab`` in ``tablist``...),
* ``aria-*`` attribute names exist and their values have the right type,
* nothing restates what native HTML semantics already convey.

Each attribute is judged on its own, so one bad attribute never hides
problems with the others on the same element.
"""

from __future__ import annotations

import logging
import re

from accesshtml.dom import DocumentModel, Node
from accesshtml.models import (
    AriaValidationResult,
    ConformanceLevel,
    Impact,
    Issue,
    Severity,
    Standard,
)

logger = logging.getLogger(__name__)

VALID_ROLES = frozenset({
    "alert", "alertdialog", "application", "article", "banner", "blockquote",
    "button", "caption", "cell", "checkbox", "code", "columnheader",
    "combobox", "complementary", "contentinfo", "definition", "deletion",
    "dialog", "directory", "document", "emphasis", "feed", "figure", "form",
    "generic", "grid", "gridcell", "group", "heading", "img", "insertion",
    "link", "list", "listbox", "listitem", "log", "main", "marquee", "math",
    "menu", "menubar", "menuitem", "menuitemcheckbox", "menuitemradio",
    "meter", "navigation", "none", "note", "option", "paragraph",
    "presentation", "progressbar", "radio", "radiogroup", "region", "row",
    "rowgroup", "rowheader", "scrollbar", "search", "searchbox", "separator",
    "slider", "spinbutton", "status", "strong", "subscript", "superscript",
    "switch", "tab", "table", "tablist", "tabpanel", "term", "textbox",
    "time", "timer", "toolbar", "tooltip", "tree", "treegrid", "treeitem",
})

REQUIRED_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "checkbox": ("aria-checked",),
    "combobox": ("aria-expanded",),
    "heading": ("aria-level",),
    "menuitemcheckbox": ("aria-checked",),
    "menuitemradio": ("aria-checked",),
    "meter": ("aria-valuenow",),
    "radio": ("aria-checked",),
    "scrollbar": ("aria-controls", "aria-valuenow"),
    "slider": ("aria-valuenow",),
    "switch": ("aria-checked",),
}

REQUIRED_CONTEXT: dict[str, frozenset[str]] = {
    "cell": frozenset({"row"}),
    "columnheader": frozenset({"row"}),
    "gridcell": frozenset({"row"}),
    "listitem": frozenset({"list", "directory"}),
    "menuitem": frozenset({"menu", "menubar", "group"}),
    "menuitemcheckbox": frozenset({"menu", "menubar", "group"}),
    "menuitemradio": frozenset({"menu", "menubar", "group"}),
    "option": frozenset({"listbox", "group"}),
    "row": frozenset({"table", "grid", "treegrid", "rowgroup"}),
    "rowgroup": frozenset({"table", "grid", "treegrid"}),
    "rowheader": frozenset({"row"}),
    "tab": frozenset({"tablist"}),
    "treeitem": frozenset({"tree", "group"}),
}

# Roles that never establish context for their descendants.
_TRANSPARENT_ROLES = frozenset({"generic", "none", "presentation"})

_BOOLEAN = frozenset({"true", "false"})
_BOOLEAN_UNDEFINED = frozenset({"true", "false", "undefined"})
_TRISTATE = frozenset({"true", "false", "mixed", "undefined"})

ATTRIBUTE_TOKENS: dict[str, frozenset[str]] = {
    "aria-atomic": _BOOLEAN,
    "aria-busy": _BOOLEAN,
    "aria-disabled": _BOOLEAN,
    "aria-modal": _BOOLEAN,
    "aria-multiline": _BOOLEAN,
    "aria-multiselectable": _BOOLEAN,
    "aria-readonly": _BOOLEAN,
    "aria-required": _BOOLEAN,
    "aria-expanded": _BOOLEAN_UNDEFINED,
    "aria-grabbed": _BOOLEAN_UNDEFINED,
    "aria-hidden": _BOOLEAN_UNDEFINED,
    "aria-selected": _BOOLEAN_UNDEFINED,
    "aria-checked": _TRISTATE,
    "aria-pressed": _TRISTATE,
    "aria-autocomplete": frozenset({"inline", "list", "both", "none"}),
    "aria-current": frozenset({"page", "step", "location", "date", "time", "true", "false"}),
    "aria-haspopup": frozenset({"false", "true", "menu", "listbox", "tree", "grid", "dialog"}),
    "aria-invalid": frozenset({"grammar", "false", "spelling", "true"}),
    "aria-live": frozenset({"assertive", "off", "polite"}),
    "aria-orientation": frozenset({"horizontal", "vertical", "undefined"}),
    "aria-sort": frozenset({"ascending", "descending", "none", "other"}),
}

TOKEN_LIST_ATTRIBUTES: dict[str, frozenset[str]] = {
    "aria-dropeffect": frozenset({"copy", "execute", "link", "move", "none", "popup"}),
    "aria-relevant": frozenset({"additions", "all", "removals", "text"}),
}

INTEGER_ATTRIBUTES = frozenset({
    "aria-colcount", "aria-colindex", "aria-colspan", "aria-level",
    "aria-posinset", "aria-rowcount", "aria-rowindex", "aria-rowspan",
    "aria-setsize",
})

NUMBER_ATTRIBUTES = frozenset({"aria-valuemax", "aria-valuemin", "aria-valuenow"})

VALID_ATTRIBUTES = frozenset({
    "aria-activedescendant", "aria-braillelabel", "aria-brailleroledescription",
    "aria-colindextext", "aria-controls", "aria-describedby",
    "aria-description", "aria-details", "aria-errormessage", "aria-flowto",
    "aria-keyshortcuts", "aria-label", "aria-labelledby", "aria-owns",
    "aria-placeholder", "aria-roledescription", "aria-rowindextext",
    "aria-valuetext",
}) | frozenset(ATTRIBUTE_TOKENS) | frozenset(TOKEN_LIST_ATTRIBUTES) | INTEGER_ATTRIBUTES | NUMBER_ATTRIBUTES

# Native HTML attribute -> aria-* attribute that restates it.
NATIVE_EQUIVALENTS: dict[str, str] = {
    "disabled": "aria-disabled",
    "hidden": "aria-hidden",
    "multiple": "aria-multiselectable",
    "readonly": "aria-readonly",
    "required": "aria-required",
}

_INTEGER = re.compile(r"^-?\d+$")
_NUMBER = re.compile(r"^-?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$")

_INPUT_ROLES = {
    "button": "button",
    "checkbox": "checkbox",
    "email": "textbox",
    "image": "button",
    "number": "spinbutton",
    "radio": "radio",
    "range": "slider",
    "reset": "button",
    "search": "searchbox",
    "submit": "button",
    "tel": "textbox",
    "text": "textbox",
    "url": "textbox",
}

_TAG_ROLES = {
    "article": "article",
    "aside": "complementary",
    "blockquote": "blockquote",
    "button": "button",
    "code": "code",
    "datalist": "listbox",
    "dd": "definition",
    "del": "deletion",
    "details": "group",
    "dialog": "dialog",
    "div": "generic",
    "dt": "term",
    "em": "emphasis",
    "fieldset": "group",
    "figure": "figure",
    "footer": "contentinfo",
    "form": "form",
    "header": "banner",
    "hr": "separator",
    "ins": "insertion",
    "li": "listitem",
    "main": "main",
    "math": "math",
    "menu": "list",
    "meter": "meter",
    "nav": "navigation",
    "ol": "list",
    "optgroup": "group",
    "option": "option",
    "output": "status",
    "p": "paragraph",
    "progress": "progressbar",
    "search": "search",
    "section": "region",
    "span": "generic",
    "strong": "strong",
    "sub": "subscript",
    "sup": "superscript",
    "table": "table",
    "tbody": "rowgroup",
    "td": "cell",
    "textarea": "textbox",
    "tfoot": "rowgroup",
    "th": "columnheader",
    "thead": "rowgroup",
    "time": "time",
    "tr": "row",
    "ul": "list",
}

_HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

_REMEDIATION = {
    "aria-valid-role": "Use a role defined by WAI-ARIA, or remove the role attribute.",
    "aria-required-attr": "Add the state or property the role requires.",
    "aria-required-parent": "Nest the element inside an element with the required context role.",
    "aria-valid-attr": "Remove the attribute or correct its name.",
    "aria-valid-attr-value": "Use one of the values the attribute allows.",
    "aria-redundant-role": "Remove the role; the native element already has it.",
    "aria-redundant-attr": "Remove the aria-* attribute; the native attribute already conveys it.",
}


def implicit_role(node: Node) -> str | None:
    """Role an element has from its native HTML semantics, if any."""
    tag = node.tag
    if tag in _HEADING_TAGS:
        return "heading"
    if tag in ("a", "area"):
        return "link" if node.has("href") else None
    if tag == "img":
        return "presentation" if node.get("alt") == "" else "img"
    if tag == "input":
        input_type = (node.get("type") or "text").strip().lower()
        if input_type in ("text", "email", "tel", "url", "search") and node.has("list"):
            return "combobox"
        return _INPUT_ROLES.get(input_type)
    if tag == "select":
        size = node.get("size") or "1"
        if node.has("multiple") or (size.isdigit() and int(size) > 1):
            return "listbox"
        return "combobox"
    return _TAG_ROLES.get(tag)


def explicit_role(node: Node) -> str | None:
    """First recognised token of the ``role`` attribute."""
    value = node.get("role")
    if not value:
        return None
    for token in value.lower().split():
        if token in VALID_ROLES:
            return token
    return None


def effective_role(node: Node) -> str | None:
    return explicit_role(node) or implicit_role(node)


def _aria_attributes(node: Node) -> list[tuple[str, str]]:
    return [(k, v) for k, v in node.attrs.items() if k.startswith("aria-")]


class AriaValidator:
    """Validates WAI-ARIA usage in a parsed document.

    Usage::

        result = AriaValidator().validate(doc)
        for issue in result.issues:
            ...
    """

    def validate(self, doc: DocumentModel) -> AriaValidationResult:
        result = AriaValidationResult()
        stats = {
            "elements_checked": 0,
            "roles_checked": 0,
            "attributes_checked": 0,
        }

        for node in doc.elements():
            attributes = _aria_attributes(node)
            if not node.has("role") and not attributes:
                continue
            stats["elements_checked"] += 1
            if node.has("role"):
                stats["roles_checked"] += 1
                self._check_role(node, result)
            for name, value in attributes:
                stats["attributes_checked"] += 1
                self._check_attribute(node, name, value, result)

        stats["issues"] = len(result.issues)
        stats["valid_usages"] = len(result.valid_usages)
        result.statistics = stats
        logger.debug("ARIA validation: %d issue(s), %d valid usage(s)",
                     len(result.issues), len(result.valid_usages))
        return result

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def _check_role(self, node: Node, result: AriaValidationResult) -> None:
        raw = (node.get("role") or "").strip()
        role = explicit_role(node)
        if role is None:
            result.issues.append(_issue(
                "aria-valid-role", node,
                f'Role "{raw}" is not a valid WAI-ARIA role.' if raw
                else "Role attribute is empty.",
                Severity.ERROR, Impact.CRITICAL,
            ))
            return

        native = implicit_role(node)
        if native == role:
            result.issues.append(_issue(
                "aria-redundant-role", node,
                f'Role "{role}" is redundant on <{node.tag}>; it is the element\'s native role.',
                Severity.WARNING, Impact.MINOR,
            ))
            return

        problems = 0
        for required in REQUIRED_ATTRIBUTES.get(role, ()):
            if not node.get(required):
                result.issues.append(_issue(
                    "aria-required-attr", node,
                    f'Role "{role}" is missing required attribute {required}.',
                    Severity.ERROR, Impact.CRITICAL,
                ))
                problems += 1

        allowed = REQUIRED_CONTEXT.get(role)
        if allowed is not None:
            context = self._context_role(node)
            if context not in allowed:
                expected = " or ".join(sorted(allowed))
                found = f'inside "{context}"' if context else "with no containing role"
                result.issues.append(_issue(
                    "aria-required-parent", node,
                    f'Role "{role}" must be contained in {expected}, found {found}.',
                    Severity.ERROR, Impact.SERIOUS,
                ))
                problems += 1

        if not problems:
            result.valid_usages.append(f'role="{role}" on <{node.tag}>')

    @staticmethod
    def _context_role(node: Node) -> str | None:
        """Role of the nearest ancestor that establishes context."""
        for ancestor in node.ancestors():
            role = effective_role(ancestor)
            if role is None or role in _TRANSPARENT_ROLES:
                continue
            return role
        return None

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _check_attribute(
        self, node: Node, name: str, value: str, result: AriaValidationResult
    ) -> None:
        if name not in VALID_ATTRIBUTES:
            result.issues.append(_issue(
                "aria-valid-attr", node,
                f"{name} is not a valid ARIA attribute.",
                Severity.ERROR, Impact.SERIOUS,
            ))
            return

        problem = _value_problem(name, value)
        if problem:
            result.issues.append(_issue(
                "aria-valid-attr-value", node, problem, Severity.ERROR, Impact.SERIOUS,
            ))
            return

        redundant = self._redundancy(node, name)
        if redundant:
            result.issues.append(_issue(
                "aria-redundant-attr", node, redundant, Severity.WARNING, Impact.MINOR,
            ))
            return

        result.valid_usages.append(f"{name} on <{node.tag}>")

    @staticmethod
    def _redundancy(node: Node, name: str) -> str | None:
        for native, aria_name in NATIVE_EQUIVALENTS.items():
            if aria_name == name and node.has(native):
                return f"{name} restates the native {native} attribute on <{node.tag}>."
        if name == "aria-checked" and node.tag == "input":
            input_type = (node.get("type") or "").lower()
            if input_type in ("checkbox", "radio"):
                return f"aria-checked is redundant on a native {input_type} input."
        if name == "aria-level" and node.tag in _HEADING_TAGS:
            if node.get(name, "").strip() == node.tag[1]:
                return f"aria-level restates the native level of <{node.tag}>."
        return None


def _value_problem(name: str, value: str) -> str | None:
    normalized = value.strip().lower()
    if name in ATTRIBUTE_TOKENS:
        allowed = ATTRIBUTE_TOKENS[name]
        if normalized not in allowed:
            return f'{name}="{value}" is not allowed; expected one of: {", ".join(sorted(allowed))}.'
    elif name in TOKEN_LIST_ATTRIBUTES:
        allowed = TOKEN_LIST_ATTRIBUTES[name]
        bad = [t for t in normalized.split() if t not in allowed]
        if bad or not normalized:
            return f'{name}="{value}" contains unknown token(s); expected: {", ".join(sorted(allowed))}.'
    elif name in INTEGER_ATTRIBUTES:
        if not _INTEGER.match(normalized):
            return f'{name}="{value}" must be an integer.'
    elif name in NUMBER_ATTRIBUTES:
        if not _NUMBER.match(normalized):
            return f'{name}="{value}" must be a number.'
    return None


def _issue(rule_id: str, node: Node, message: str, severity: Severity, impact: Impact) -> Issue:
    return Issue(
        rule_id=rule_id,
        severity=severity,
        impact=impact,
        message=message,
        element_snapshot=node.snapshot(),
        selector_path=node.selector_path(),
        standard=Standard.ARIA,
        level=ConformanceLevel.A,
        remediation=_REMEDIATION.get(rule_id, ""),
    )
