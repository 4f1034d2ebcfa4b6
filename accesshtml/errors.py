"""Exception hierarchy for AccessHTML."""

from __future__ import annotations


class AccessHTMLError(Exception):
    """Base class for all AccessHTML errors."""


class ParseError(AccessHTMLError):
    """Markup could not be turned into a document tree at all."""

    def __init__(self, message: str, *, context: str = "") -> None:
        self.context = context
        if context:
            message = f"{message} (input: {context!r})"
        super().__init__(message)


class RuleExecutionError(AccessHTMLError):
    """A single rule raised while checking a document."""

    def __init__(self, rule_id: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.cause = cause
        super().__init__(f"Rule {rule_id} failed: {type(cause).__name__}: {cause}")


class FetchError(AccessHTMLError):
    """Documentation could not be retrieved (network error, timeout, bad status)."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        if url:
            message = f"{message} [{url}]"
        super().__init__(message)


class ConfigValidationError(AccessHTMLError):
    """A configuration value was rejected."""

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message)
