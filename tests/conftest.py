"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from accesshtml.config import AccessHTMLConfig
from tests.fixtures.pages import BASE_URL, TECHNIQUES_PAGE, TECHNIQUES_URL, WCAG_PAGE, FakeFetch


@pytest.fixture
def fake_fetch() -> FakeFetch:
    return FakeFetch({BASE_URL: WCAG_PAGE, TECHNIQUES_URL: TECHNIQUES_PAGE})


@pytest.fixture
def config(tmp_path: Path) -> AccessHTMLConfig:
    """Config writing into a temp dir, with no network pauses and no auto-update."""
    return AccessHTMLConfig.from_dict({
        "scraper": {"wcag_base_url": BASE_URL, "request_delay_ms": 0},
        "integration": {
            "output_dir": str(tmp_path / "output"),
            "cache_dir": str(tmp_path / "cache"),
            "auto_update": False,
        },
    })
