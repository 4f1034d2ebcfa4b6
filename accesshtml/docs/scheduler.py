"""Refresh scheduler: staleness control and single-flight refresh per source.

Each documentation source moves through ``FRESH -> STALE -> REFRESHING`` and
then back to ``FRESH`` or on to ``REFRESH_FAILED``.  A failed refresh keeps
the previous snapshot (and the catalog entries merged from it) and is not
retried automatically until another update interval has passed.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from accesshtml.catalog import RuleCatalog
from accesshtml.docs.cache import DocumentationCache, WCAGDataSnapshot, normalize_source
from accesshtml.docs.fetcher import DocumentationFetcher
from accesshtml.errors import FetchError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshState(str, enum.Enum):
    """Lifecycle state of one documentation source."""

    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"
    REFRESH_FAILED = "refresh_failed"


@dataclass
class RefreshOutcome:
    """What a refresh (or a skipped refresh) left behind."""

    source_url: str
    snapshot: WCAGDataSnapshot | None
    state: RefreshState
    refreshed: bool = False
    added: int = 0
    updated: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def warning(self) -> str | None:
        return "; ".join(self.warnings) if self.warnings else None

    def to_dict(self) -> dict[str, Any]:
        snap = self.snapshot
        return {
            "sourceUrl": self.source_url,
            "state": self.state.value,
            "refreshed": self.refreshed,
            "rulesAdded": self.added,
            "rulesUpdated": self.updated,
            "lastUpdated": snap.last_updated.isoformat() if snap else None,
            "guidelines": len(snap.guidelines) if snap else 0,
            "successCriteria": len(snap.success_criteria) if snap else 0,
            "techniques": len(snap.techniques) if snap else 0,
            "warnings": list(self.warnings),
        }


@dataclass
class CacheStatus:
    """Read-only view of the cache for one source."""

    source_url: str
    populated: bool
    cache_path: str
    state: RefreshState
    stale: bool
    last_updated: datetime | None = None
    age_seconds: float | None = None
    guidelines: int = 0
    success_criteria: int = 0
    techniques: int = 0
    rules: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceUrl": self.source_url,
            "populated": self.populated,
            "cachePath": self.cache_path,
            "state": self.state.value,
            "stale": self.stale,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
            "ageSeconds": self.age_seconds,
            "guidelines": self.guidelines,
            "successCriteria": self.success_criteria,
            "techniques": self.techniques,
            "rules": self.rules,
        }


class RefreshScheduler:
    """Owns every write to the documentation cache.

    Concurrent ``refresh`` calls for the same source share one in-flight
    task: only the first starts a fetch, the rest await its outcome.

    Usage::

        scheduler = RefreshScheduler(cache, catalog, fetcher, update_interval=timedelta(hours=24))
        outcome = await scheduler.ensure_fresh("https://www.w3.org/WAI/WCAG21/")
    """

    def __init__(
        self,
        cache: DocumentationCache,
        catalog: RuleCatalog,
        fetcher: DocumentationFetcher,
        *,
        update_interval: timedelta = timedelta(hours=24),
        timeout: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if update_interval <= timedelta(0):
            raise ValueError("update_interval must be positive")
        self.cache = cache
        self.catalog = catalog
        self.fetcher = fetcher
        self.update_interval = update_interval
        self.timeout = timeout
        self._clock = clock
        self._inflight: dict[str, asyncio.Task[RefreshOutcome]] = {}
        self._failed_at: dict[str, datetime] = {}

    # -- state ---------------------------------------------------------------

    def is_stale(self, url: str) -> bool:
        snapshot = self.cache.get(url)
        if snapshot is None:
            return True
        return snapshot.age(self._clock()) >= self.update_interval

    def state(self, url: str) -> RefreshState:
        key = normalize_source(url)
        task = self._inflight.get(key)
        if task is not None and not task.done():
            return RefreshState.REFRESHING
        if key in self._failed_at:
            return RefreshState.REFRESH_FAILED
        return RefreshState.STALE if self.is_stale(key) else RefreshState.FRESH

    def status(self, url: str) -> CacheStatus:
        key = normalize_source(url)
        snapshot = self.cache.get(key)
        status = CacheStatus(
            source_url=key,
            populated=snapshot is not None,
            cache_path=str(self.cache.path),
            state=self.state(key),
            stale=self.is_stale(key),
            rules=len(self.catalog),
        )
        if snapshot is not None:
            status.last_updated = snapshot.last_updated
            status.age_seconds = round(snapshot.age(self._clock()).total_seconds(), 1)
            status.guidelines = len(snapshot.guidelines)
            status.success_criteria = len(snapshot.success_criteria)
            status.techniques = len(snapshot.techniques)
        return status

    # -- refresh -------------------------------------------------------------

    async def ensure_fresh(self, url: str) -> RefreshOutcome:
        """Refresh *url* only if it is stale and not recently failed."""
        key = normalize_source(url)
        if not self.is_stale(key):
            return RefreshOutcome(key, self.cache.get(key), RefreshState.FRESH)
        failed_at = self._failed_at.get(key)
        if failed_at is not None and self._clock() - failed_at < self.update_interval:
            logger.debug("Skipping refresh of %s; last attempt failed at %s", key, failed_at)
            return RefreshOutcome(
                key,
                self.cache.get(key),
                RefreshState.REFRESH_FAILED,
                warnings=[f"Documentation for {key} is stale; last refresh failed at {failed_at.isoformat()}"],
            )
        return await self.refresh(key)

    async def refresh(self, url: str) -> RefreshOutcome:
        """Fetch *url* now, joining any refresh of the same source already running."""
        key = normalize_source(url)
        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(self._run_refresh(key))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            logger.debug("Joining in-flight refresh of %s", key)
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[RefreshOutcome]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _run_refresh(self, key: str) -> RefreshOutcome:
        previous = self.cache.get(key)
        try:
            snapshot, warnings = await asyncio.wait_for(
                self.fetcher.fetch_snapshot(key), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            return self._failed(key, previous, FetchError(f"Refresh timed out after {self.timeout}s", url=key))
        except FetchError as exc:
            return self._failed(key, previous, exc)
        except Exception as exc:
            wrapped = FetchError(f"{type(exc).__name__}: {exc}", url=key)
            return self._failed(key, previous, wrapped)

        snapshot = snapshot.model_copy(update={"last_updated": self._clock()})
        try:
            self.cache.store(key, snapshot)
        except OSError:
            self._failed_at[key] = self._clock()
            raise
        added, updated = self.catalog.merge_snapshot(snapshot)
        self._failed_at.pop(key, None)
        logger.info("Refreshed documentation for %s", key)
        return RefreshOutcome(
            key,
            snapshot,
            RefreshState.FRESH,
            refreshed=True,
            added=added,
            updated=updated,
            warnings=list(warnings),
        )

    def _failed(self, key: str, previous: WCAGDataSnapshot | None, exc: FetchError) -> RefreshOutcome:
        self._failed_at[key] = self._clock()
        kept = "keeping cached snapshot" if previous is not None else "no cached snapshot available"
        logger.warning("Documentation refresh failed for %s: %s (%s)", key, exc, kept)
        return RefreshOutcome(
            key,
            previous,
            RefreshState.REFRESH_FAILED,
            warnings=[f"Documentation refresh failed: {exc}; {kept}"],
        )
