"""Report generation: JSON and Markdown output."""

from __future__ import annotations

import itertools
import json
import threading
from datetime import datetime, timezone
from pathlib import Path

from accesshtml.models import AnalysisReport, Issue, Severity

REPORT_PREFIX = "accessibility-report"
_EXTENSIONS = {"json": ".json", "markdown": ".md"}

_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def report_path(output_dir: Path, report_format: str = "json", *, now: datetime | None = None) -> Path:
    """Return a report path in *output_dir* that no other call has returned.

    Names look like ``accessibility-report-20250101T120000123456Z-1.json``:
    a UTC timestamp plus a process-wide sequence number, bumped further if a
    file with that name already exists.
    """
    ext = _EXTENSIONS[report_format]
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S%fZ")
    while True:
        with _sequence_lock:
            seq = next(_sequence)
        candidate = Path(output_dir) / f"{REPORT_PREFIX}-{stamp}-{seq}{ext}"
        if not candidate.exists():
            return candidate


def write_report(report: AnalysisReport, output_dir: Path, report_format: str = "json") -> Path:
    """Write *report* into *output_dir* under a fresh unique name."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = report_path(output_dir, report_format, now=report.timestamp)
    if report_format == "markdown":
        write_markdown_report(report, path)
    else:
        write_json_report(report, path)
    return path


def write_json_report(report: AnalysisReport, output: Path) -> None:
    """Write an analysis report as JSON."""
    output.write_text(json.dumps(report.to_dict(), indent=2, default=str), encoding="utf-8")


def write_markdown_report(report: AnalysisReport, output: Path) -> None:
    """Write an analysis report as Markdown."""
    compliance = report.compliance
    summary = report.evaluation.summary
    lines: list[str] = [
        f"# Accessibility Report: {report.source}",
        "",
        f"- **Generated:** {report.timestamp.isoformat()}",
        f"- **Target level:** {report.target_level.value}",
        f"- **Compliance level:** {compliance.level.value}",
        f"- **Meets target:** {'Yes' if compliance.meets_target else 'No'}",
        f"- **Score:** {compliance.score}",
        f"- **Checks passed:** {report.evaluation.passed} / "
        f"{report.evaluation.passed + report.evaluation.failed}",
        "",
        f"## Issues ({summary.errors} errors, {summary.warnings} warnings, {summary.info} info)",
        "",
    ]
    lines.extend(_issue_line(i) for i in report.evaluation.issues)

    lines += ["", f"## ARIA ({len(report.aria.issues)} issues)", ""]
    lines.extend(_issue_line(i) for i in report.aria.issues)

    if report.warnings:
        lines += ["", "## Warnings", ""]
        lines.extend(f"- {w}" for w in report.warnings)

    lines.append("")
    output.write_text("\n".join(lines), encoding="utf-8")


def _issue_line(issue: Issue) -> str:
    marker = {Severity.ERROR: "ERROR", Severity.WARNING: "WARN"}.get(issue.severity, "INFO")
    line = f"- **[{marker}]** `{issue.rule_id}` ({issue.impact.value}): {issue.message}"
    if issue.selector_path:
        line += f" at `{issue.selector_path}`"
    return line
