"""Command-line interface for AccessHTML."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from accesshtml import __version__
from accesshtml.config import AccessHTMLConfig, write_example
from accesshtml.errors import AccessHTMLError
from accesshtml.logging_config import configure_logging

app = typer.Typer(
    name="accesshtml",
    help="HTML accessibility evaluation and WCAG compliance tool.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"accesshtml {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: UP007
        None, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """AccessHTML: accessibility checks for HTML documents."""


def _load_config(path: Optional[Path]) -> AccessHTMLConfig:  # noqa: UP007
    try:
        config = AccessHTMLConfig.load(path)
    except (AccessHTMLError, OSError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=1)
    configure_logging(config.logging, console=Console(stderr=True))
    return config


_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to accesshtml.yaml.")


@app.command()
def check(
    source: str = typer.Argument(..., help="HTML file path or http(s) URL to analyze."),
    level: Optional[str] = typer.Option(  # noqa: UP007
        None, "--level", "-l", help="Target conformance level (A, AA, AAA).",
    ),
    output: Optional[Path] = typer.Option(  # noqa: UP007
        None, "--output", "-o", help="Directory for the report file.",
    ),
    no_update: bool = typer.Option(False, "--no-update", help="Skip the documentation freshness check."),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 when the target level is not met."),
    config_path: Optional[Path] = _CONFIG_OPTION,  # noqa: UP007
) -> None:
    """Analyze an HTML document for accessibility issues."""
    from accesshtml.pipeline import AccessibilityPipeline

    is_url = source.startswith(("http://", "https://"))
    if not is_url and not Path(source).is_file():
        console.print(f"[red]File not found:[/red] {source}")
        raise typer.Exit(code=1)

    config = _load_config(config_path)
    if output is not None:
        config.integration.output_dir = output
    if no_update:
        config.integration.auto_update = False

    pipeline = AccessibilityPipeline(config)

    async def _run():
        markup = await pipeline.load_source(source)
        return await pipeline.analyze_async(markup, source, level)

    try:
        report = asyncio.run(_run())
    except (AccessHTMLError, OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Analysis failed:[/red] {exc}")
        raise typer.Exit(code=1)

    compliance = report.compliance
    summary = report.evaluation.summary

    table = Table(title=f"Accessibility Report: {report.source}")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Target level", report.target_level.value)
    table.add_row(
        "Compliance level",
        compliance.level.value if compliance.meets_target else f"[red]{compliance.level.value}[/red]",
    )
    table.add_row("Score", f"{compliance.score:.1f}")
    table.add_row("Checks passed", f"{report.evaluation.passed} / {len(report.evaluation.checks)}")
    table.add_row("Errors", str(summary.errors))
    table.add_row("Warnings", str(summary.warnings))
    table.add_row("ARIA issues", str(len(report.aria.issues)))
    console.print(table)

    issues = report.evaluation.issues + report.aria.issues
    if issues:
        console.print()
        severity_icon = {
            "error": "[red]X[/red]",
            "warning": "[yellow]![/yellow]",
            "info": "[blue]i[/blue]",
        }
        for issue in issues:
            icon = severity_icon.get(issue.severity.value, " ")
            console.print(f"  {icon} \\[{issue.rule_id}] {escape(issue.message)}")

    for warning in report.warnings:
        console.print(f"  [yellow]![/yellow] {escape(warning)}")

    if report.report_path:
        console.print(f"\n[dim]Report:[/dim] {report.report_path}")

    if strict and not compliance.meets_target:
        raise typer.Exit(code=1)


@app.command(name="update-docs")
def update_docs(
    url: Optional[str] = typer.Option(  # noqa: UP007
        None, "--url", "-u", help="Documentation base URL (defaults to the configured one).",
    ),
    cache: Optional[Path] = typer.Option(None, "--cache", help="Cache directory."),  # noqa: UP007
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory."),  # noqa: UP007
    config_path: Optional[Path] = _CONFIG_OPTION,  # noqa: UP007
) -> None:
    """Fetch WCAG documentation and refresh the rule catalog cache."""
    from accesshtml.pipeline import AccessibilityPipeline

    config = _load_config(config_path)
    if output is not None:
        config.integration.output_dir = output
    pipeline = AccessibilityPipeline(config)
    console.print(f"[dim]Fetching:[/dim] {url or pipeline.source_url}")

    try:
        config.integration.output_dir.mkdir(parents=True, exist_ok=True)
        outcome = asyncio.run(pipeline.update_documentation(url, cache_dir=cache))
    except OSError as exc:
        console.print(f"[red]Could not write documentation cache:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    for warning in outcome.warnings:
        console.print(f"  [yellow]![/yellow] {escape(warning)}")
    snapshot = outcome.snapshot
    if not outcome.refreshed or snapshot is None:
        console.print("[red]Documentation update failed.[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]OK[/green] {len(snapshot.guidelines)} guideline(s), "
        f"{len(snapshot.success_criteria)} success criteria, "
        f"{len(snapshot.techniques)} technique(s) cached in {pipeline.cache.path}"
    )


@app.command()
def status(
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Documentation base URL."),  # noqa: UP007
    config_path: Optional[Path] = _CONFIG_OPTION,  # noqa: UP007
) -> None:
    """Show documentation cache status."""
    from accesshtml.pipeline import AccessibilityPipeline

    config = _load_config(config_path)
    info = AccessibilityPipeline(config).status(url)

    table = Table(title="Documentation Cache")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Source", info.source_url)
    table.add_row("Cache file", info.cache_path)
    table.add_row("Populated", "Yes" if info.populated else "[red]No[/red]")
    if info.last_updated is not None:
        table.add_row("Last updated", info.last_updated.isoformat())
        table.add_row("Age (hours)", f"{(info.age_seconds or 0) / 3600:.1f}")
    table.add_row("Stale", "[yellow]Yes[/yellow]" if info.stale else "No")
    table.add_row("State", info.state.value)
    table.add_row("Guidelines", str(info.guidelines))
    table.add_row("Success criteria", str(info.success_criteria))
    table.add_row("Techniques", str(info.techniques))
    table.add_row("Rules loaded", str(info.rules))
    console.print(table)


@app.command()
def serve(
    port: int = typer.Option(8080, "--port", "-p", help="Port to serve on."),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to."),
    config_path: Optional[Path] = _CONFIG_OPTION,  # noqa: UP007
) -> None:
    """Serve the accessibility tools over HTTP."""
    import uvicorn

    from accesshtml.pipeline import AccessibilityPipeline
    from accesshtml.web.app import create_app

    config = _load_config(config_path)
    console.print(f"[dim]Serving tools at http://{host}:{port}/api/tools[/dim]")
    web_app = create_app(AccessibilityPipeline(config))
    uvicorn.run(web_app, host=host, port=port, log_level="warning")


@app.command(name="init-config")
def init_config(
    path: Path = typer.Argument(Path("accesshtml.yaml"), help="Where to write the example config."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write an example configuration file."""
    if path.exists() and not force:
        console.print(f"[red]Already exists:[/red] {path} (use --force to overwrite)")
        raise typer.Exit(code=1)
    write_example(path)
    console.print(f"[green]OK[/green] Wrote {path}")
