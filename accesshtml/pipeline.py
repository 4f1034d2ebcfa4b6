"""Integration orchestrator: composes parsing, evaluation, scoring and documentation refresh."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from accesshtml.aria import AriaValidator
from accesshtml.catalog import RuleCatalog
from accesshtml.config import AccessHTMLConfig
from accesshtml.docs.cache import DocumentationCache
from accesshtml.docs.fetcher import DocumentationFetcher, Fetch, HttpFetcher
from accesshtml.docs.scheduler import CacheStatus, RefreshOutcome, RefreshScheduler
from accesshtml.dom import parse
from accesshtml.evaluator import AccessibilityEvaluator
from accesshtml.models import (
    AnalysisReport,
    AriaValidationResult,
    ConformanceLevel,
    Impact,
)
from accesshtml.reporter import write_report
from accesshtml.scorer import ComplianceScorer, resolve_level

logger = logging.getLogger(__name__)

INLINE_SOURCE = "inline"


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


class AccessibilityPipeline:
    """The two externally invoked operations: analyze a document, refresh documentation.

    Usage::

        pipeline = AccessibilityPipeline(AccessHTMLConfig.load())
        report = pipeline.analyze("<img src='logo.png'>", target_level="AA")
        outcome = asyncio.run(pipeline.update_documentation())
    """

    def __init__(
        self,
        config: AccessHTMLConfig | None = None,
        *,
        catalog: RuleCatalog | None = None,
        cache: DocumentationCache | None = None,
        fetch: Fetch | None = None,
    ) -> None:
        self.config = config or AccessHTMLConfig()
        scraper = self.config.scraper
        integration = self.config.integration

        self.catalog = catalog if catalog is not None else RuleCatalog()
        self.fetch: Fetch = fetch or HttpFetcher(
            timeout=scraper.timeout_ms / 1000,
            user_agent=scraper.user_agent,
        )
        self.fetcher = DocumentationFetcher(
            self.fetch,
            techniques_path=scraper.techniques_path or None,
            request_delay=scraper.request_delay_ms / 1000,
        )
        self.scheduler = self._make_scheduler(cache or DocumentationCache(integration.cache_dir))

        self.evaluator = AccessibilityEvaluator(
            self.catalog,
            min_impact=Impact(self.config.evaluator.min_impact_level),
            max_workers=self.config.evaluator.max_workers,
        )
        self.aria_validator = AriaValidator()
        self.scorer = ComplianceScorer()
        self._seed_catalog()

    @property
    def cache(self) -> DocumentationCache:
        return self.scheduler.cache

    @property
    def source_url(self) -> str:
        return self.config.scraper.wcag_base_url

    def _make_scheduler(self, cache: DocumentationCache) -> RefreshScheduler:
        scraper = self.config.scraper
        # Two pages plus the pause between them.
        refresh_timeout = 2 * scraper.timeout_ms / 1000 + scraper.request_delay_ms / 1000
        return RefreshScheduler(
            cache,
            self.catalog,
            self.fetcher,
            update_interval=timedelta(hours=self.config.integration.update_interval_hours),
            timeout=refresh_timeout,
        )

    def _seed_catalog(self) -> None:
        for url in self.cache.sources():
            snapshot = self.cache.get(url)
            if snapshot is not None:
                self.catalog.merge_snapshot(snapshot)

    # -- analysis --------------------------------------------------------------

    def analyze(
        self,
        markup: str | bytes,
        source: str | None = None,
        target_level: ConformanceLevel | str | None = None,
        *,
        persist: bool = True,
        warnings: list[str] | None = None,
    ) -> AnalysisReport:
        """Parse, evaluate, validate ARIA and score one document.

        Raises ``ParseError`` for input that is not markup and
        ``ConfigValidationError`` for an unknown target level.  With
        *persist* the report is also written to the output directory.
        """
        target = resolve_level(target_level or self.config.evaluator.wcag_level)
        doc = parse(markup)

        evaluation = self.evaluator.evaluate(doc)
        if self.config.evaluator.enable_aria_validation:
            aria = self.aria_validator.validate(doc)
        else:
            aria = AriaValidationResult()
        compliance = self.scorer.score(evaluation, aria, target)

        report = AnalysisReport(
            timestamp=datetime.now(timezone.utc),
            source=source or INLINE_SOURCE,
            target_level=target,
            evaluation=evaluation,
            compliance=compliance,
            aria=aria,
            warnings=list(warnings or []),
        )
        if persist:
            report.report_path = write_report(
                report,
                self.config.integration.output_dir,
                self.config.output.report_format,
            )
            logger.info("Report written to %s", report.report_path)

        logger.info(
            "Analyzed %s: %d issue(s), level %s, score %.1f",
            report.source, report.total_issues, compliance.level.value, compliance.score,
        )
        return report

    async def analyze_async(
        self,
        markup: str | bytes,
        source: str | None = None,
        target_level: ConformanceLevel | str | None = None,
        *,
        persist: bool = True,
    ) -> AnalysisReport:
        """Like :meth:`analyze`, refreshing stale documentation first when auto-update is on."""
        warnings: list[str] = []
        if self.config.integration.auto_update:
            try:
                outcome = await self.scheduler.ensure_fresh(self.source_url)
            except OSError as exc:
                logger.warning("Documentation cache could not be written: %s", exc)
                warnings.append(f"Documentation cache could not be written: {exc}")
            else:
                warnings.extend(outcome.warnings)
        return self.analyze(markup, source, target_level, persist=persist, warnings=warnings)

    async def load_source(self, source: str, *, allow_files: bool = True) -> str:
        """Return markup from a URL (via the fetch capability) or a file path.

        With ``allow_files=False`` only http(s) URLs are accepted and
        anything else raises ``ValueError``.
        """
        if is_url(source):
            return await self.fetch(source)
        if not allow_files:
            raise ValueError(f"Only http(s) URLs are accepted, got {source!r}")
        return Path(source).read_text(encoding="utf-8")

    # -- documentation -----------------------------------------------------------

    async def update_documentation(
        self,
        base_url: str | None = None,
        *,
        cache_dir: Path | None = None,
    ) -> RefreshOutcome:
        """Refresh documentation for *base_url* now, regardless of staleness.

        *cache_dir* switches this pipeline to a different cache store.
        """
        if cache_dir is not None and Path(cache_dir) != self.cache.cache_dir:
            self.scheduler = self._make_scheduler(DocumentationCache(Path(cache_dir)))
            self._seed_catalog()
        return await self.scheduler.refresh(base_url or self.source_url)

    def status(self, base_url: str | None = None) -> CacheStatus:
        """Read-only cache status for *base_url* (the configured source by default)."""
        return self.scheduler.status(base_url or self.source_url)
