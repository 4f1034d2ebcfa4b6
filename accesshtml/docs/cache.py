"""Documentation cache: scraped WCAG metadata persisted per source URL.

The cache lives in a single JSON file (``<cache_dir>/wcag-data.json``)
holding one snapshot per documentation source.  A snapshot is never edited
in place; a successful refresh stores a new one in its slot.
"""

from __future__ import annotations

import logging
import os
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "wcag-data.json"


class _CacheModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Guideline(_CacheModel):
    id: str
    title: str
    description: str = ""


class SuccessCriterion(_CacheModel):
    id: str
    title: str
    level: Literal["A", "AA", "AAA"] = "A"
    description: str = ""


class Technique(_CacheModel):
    id: str
    title: str
    description: str = ""


class WCAGDataSnapshot(_CacheModel):
    """Timestamped capture of the metadata scraped from one source."""

    source_url: str = ""
    guidelines: list[Guideline] = Field(default_factory=list)
    success_criteria: list[SuccessCriterion] = Field(default_factory=list)
    techniques: list[Technique] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.guidelines and not self.success_criteria

    def age(self, now: datetime | None = None) -> timedelta:
        now = now or datetime.now(timezone.utc)
        last = self.last_updated
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return now - last


class CacheFile(_CacheModel):
    """On-disk layout of the cache file."""

    version: int = 1
    sources: dict[str, WCAGDataSnapshot] = Field(default_factory=dict)


def normalize_source(url: str) -> str:
    """Cache key for a documentation source URL."""
    return url.strip()


class DocumentationCache:
    """Reads and writes snapshots in ``<cache_dir>/wcag-data.json``.

    Usage::

        cache = DocumentationCache(Path("./cache"))
        snapshot = cache.get("https://www.w3.org/WAI/WCAG21/")
    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)
        self.path = self.cache_dir / CACHE_FILE_NAME
        self._lock = threading.Lock()
        self._sources: dict[str, WCAGDataSnapshot] = self._load()

    def get(self, url: str) -> WCAGDataSnapshot | None:
        return self._sources.get(normalize_source(url))

    def sources(self) -> list[str]:
        return list(self._sources)

    def store(self, url: str, snapshot: WCAGDataSnapshot) -> None:
        """Replace the snapshot for *url* and persist the cache file."""
        key = normalize_source(url)
        with self._lock:
            sources = dict(self._sources)
            sources[key] = snapshot
            self._write(CacheFile(sources=sources))
            self._sources = sources
        logger.info(
            "Cached %d guideline(s), %d criteria for %s in %s",
            len(snapshot.guidelines), len(snapshot.success_criteria), key, self.path,
        )

    def _load(self) -> dict[str, WCAGDataSnapshot]:
        if not self.path.is_file():
            return {}
        try:
            data = CacheFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, ValueError):
            logger.warning("Ignoring unreadable documentation cache %s", self.path, exc_info=True)
            return {}
        return dict(data.sources)

    def _write(self, data: CacheFile) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(data.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
