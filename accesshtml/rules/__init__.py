"""Built-in accessibility rules."""


def _register_all() -> None:
    """Import all rule modules to trigger @builtin_rule.

    Called lazily by the catalog to avoid circular imports.
    """
    from accesshtml.rules import images  # noqa: F401
    from accesshtml.rules import forms  # noqa: F401
    from accesshtml.rules import headings  # noqa: F401
    from accesshtml.rules import controls  # noqa: F401
    from accesshtml.rules import links  # noqa: F401
    from accesshtml.rules import document  # noqa: F401
    from accesshtml.rules import aria  # noqa: F401
