"""Tests for the documentation cache."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from accesshtml.docs.cache import (
    CACHE_FILE_NAME,
    DocumentationCache,
    Guideline,
    SuccessCriterion,
    Technique,
    WCAGDataSnapshot,
)

URL = "https://docs.example.org/WCAG21/"


def _snapshot(**kwargs) -> WCAGDataSnapshot:
    data = {
        "source_url": URL,
        "guidelines": [Guideline(id="1.1", title="Text Alternatives")],
        "success_criteria": [SuccessCriterion(id="1.1.1", title="Non-text Content", level="A")],
        "techniques": [Technique(id="G94", title="Short text alternative")],
    }
    data.update(kwargs)
    return WCAGDataSnapshot(**data)


class TestSnapshot:
    def test_age(self) -> None:
        stamp = datetime(2025, 1, 1, tzinfo=timezone.utc)
        snapshot = _snapshot(last_updated=stamp)
        assert snapshot.age(stamp + timedelta(hours=3)) == timedelta(hours=3)

    def test_naive_timestamp_treated_as_utc(self) -> None:
        snapshot = _snapshot(last_updated=datetime(2025, 1, 1))
        now = datetime(2025, 1, 2, tzinfo=timezone.utc)
        assert snapshot.age(now) == timedelta(days=1)

    def test_is_empty(self) -> None:
        assert _snapshot(guidelines=[], success_criteria=[]).is_empty
        assert not _snapshot().is_empty

    def test_snapshot_is_immutable(self) -> None:
        snapshot = _snapshot()
        with pytest.raises(ValidationError, match="frozen"):
            snapshot.source_url = "other"  # type: ignore[misc]


class TestDocumentationCache:
    def test_empty_when_missing(self, tmp_path: Path) -> None:
        cache = DocumentationCache(tmp_path / "cache")
        assert cache.get(URL) is None
        assert cache.sources() == []

    def test_store_and_reload(self, tmp_path: Path) -> None:
        cache = DocumentationCache(tmp_path)
        cache.store(URL, _snapshot())
        assert (tmp_path / CACHE_FILE_NAME).is_file()

        reloaded = DocumentationCache(tmp_path).get(URL)
        assert reloaded is not None
        assert reloaded.success_criteria[0].id == "1.1.1"
        assert reloaded.techniques[0].id == "G94"
        assert reloaded.last_updated == cache.get(URL).last_updated

    def test_file_uses_camel_case_keys(self, tmp_path: Path) -> None:
        DocumentationCache(tmp_path).store(URL, _snapshot())
        data = json.loads((tmp_path / CACHE_FILE_NAME).read_text(encoding="utf-8"))
        entry = data["sources"][URL]
        assert "successCriteria" in entry
        assert "lastUpdated" in entry
        assert data["version"] == 1

    def test_store_supersedes_previous(self, tmp_path: Path) -> None:
        cache = DocumentationCache(tmp_path)
        first = _snapshot()
        cache.store(URL, first)
        second = _snapshot(guidelines=[Guideline(id="2.1", title="Keyboard Accessible")])
        cache.store(URL, second)
        assert cache.get(URL).guidelines[0].id == "2.1"
        # The first snapshot object was not touched
        assert first.guidelines[0].id == "1.1"

    def test_sources_are_kept_apart(self, tmp_path: Path) -> None:
        cache = DocumentationCache(tmp_path)
        cache.store(URL, _snapshot())
        cache.store("https://other.example/", _snapshot(source_url="https://other.example/"))
        assert sorted(cache.sources()) == sorted([URL, "https://other.example/"])

    def test_corrupt_file_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / CACHE_FILE_NAME).write_text("{not json", encoding="utf-8")
        cache = DocumentationCache(tmp_path)
        assert cache.sources() == []
        cache.store(URL, _snapshot())
        assert DocumentationCache(tmp_path).get(URL) is not None

    def test_no_temp_file_left_behind(self, tmp_path: Path) -> None:
        DocumentationCache(tmp_path).store(URL, _snapshot())
        assert [p.name for p in tmp_path.iterdir()] == [CACHE_FILE_NAME]
