"""AccessHTML: HTML accessibility evaluation and WCAG compliance scoring."""

__version__ = "0.1.0"
