"""Tests for the tool-protocol boundary."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from accesshtml.config import AccessHTMLConfig
from accesshtml.pipeline import AccessibilityPipeline
from accesshtml.tools import TOOLS, ToolResponse, call_tool
from tests.fixtures.pages import ACCESSIBLE_PAGE, BASE_URL, FakeFetch


@pytest.fixture
def pipeline(config: AccessHTMLConfig, fake_fetch: FakeFetch) -> AccessibilityPipeline:
    return AccessibilityPipeline(config, fetch=fake_fetch)


def _call(pipeline: AccessibilityPipeline, name: str, arguments: dict | None = None) -> tuple[ToolResponse, dict]:
    response = asyncio.run(call_tool(pipeline, name, arguments))
    return response, json.loads(response.content)


class TestTools:
    def test_registry(self) -> None:
        assert set(TOOLS) == {
            "evaluate_accessibility",
            "check_wcag_compliance",
            "validate_aria",
            "fetch_accessibility_docs",
        }

    def test_evaluate_accessibility(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "evaluate_accessibility", {"html": '<img src="a.png">'})
        assert not response.is_error
        assert data["source"] == "inline"
        assert any(i["ruleId"] == "1.1.1" for i in data["issues"])
        assert data["summary"]["errors"] >= 1

    def test_check_wcag_compliance(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "check_wcag_compliance", {"html": ACCESSIBLE_PAGE, "level": "AAA"})
        assert not response.is_error
        assert data["level"] == "AAA"
        assert data["meetsTarget"] is True
        assert data["targetLevel"] == "AAA"

    def test_validate_aria(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "validate_aria", {"html": '<div role="checkbox" tabindex="0">x</div>'})
        assert not response.is_error
        assert [i["ruleId"] for i in data["issues"]] == ["aria-required-attr"]

    def test_url_argument_is_fetched(self, config: AccessHTMLConfig) -> None:
        fetch = FakeFetch({"https://site.example/": ACCESSIBLE_PAGE})
        pipeline = AccessibilityPipeline(config, fetch=fetch)
        _, data = _call(pipeline, "check_wcag_compliance", {"url": "https://site.example/"})
        assert data["source"] == "https://site.example/"
        assert fetch.calls == ["https://site.example/"]

    def test_tools_do_not_persist_reports(self, pipeline: AccessibilityPipeline, config: AccessHTMLConfig) -> None:
        _call(pipeline, "evaluate_accessibility", {"html": ACCESSIBLE_PAGE})
        assert not config.integration.output_dir.exists()

    def test_analysis_refreshes_stale_documentation(
        self, pipeline: AccessibilityPipeline, config: AccessHTMLConfig, fake_fetch: FakeFetch
    ) -> None:
        config.integration.auto_update = True
        response, data = _call(pipeline, "check_wcag_compliance", {"html": ACCESSIBLE_PAGE})
        assert not response.is_error
        assert fake_fetch.calls[0] == BASE_URL
        assert pipeline.cache.get(BASE_URL) is not None
        assert data["warnings"] == []
        assert not config.integration.output_dir.exists()

    def test_refresh_failure_is_reported_in_warnings(self, config: AccessHTMLConfig) -> None:
        config.integration.auto_update = True
        pipeline = AccessibilityPipeline(config, fetch=FakeFetch({}))
        response, data = _call(pipeline, "evaluate_accessibility", {"html": ACCESSIBLE_PAGE})
        assert not response.is_error
        assert any("Documentation refresh failed" in w for w in data["warnings"])

    def test_fetch_accessibility_docs(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "fetch_accessibility_docs")
        assert not response.is_error
        assert data["refreshed"] is True
        assert data["sourceUrl"] == BASE_URL
        assert data["successCriteria"] == 5


class TestToolErrors:
    def test_unknown_tool(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "make_coffee")
        assert response.is_error
        assert data["error"] == "unknown tool"

    def test_missing_input(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "evaluate_accessibility", {})
        assert response.is_error
        assert data["error"] == "analysis failed"
        assert "html" in data["detail"]

    def test_invalid_level(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "check_wcag_compliance", {"html": ACCESSIBLE_PAGE, "level": "B"})
        assert response.is_error
        assert data["error"] == "analysis failed"
        assert data["detail"].startswith("ConfigValidationError")

    def test_unreachable_url(self, pipeline: AccessibilityPipeline) -> None:
        response, data = _call(pipeline, "validate_aria", {"url": "https://down.example/"})
        assert response.is_error
        assert data["error"] == "analysis failed"

    @pytest.mark.parametrize("tool", ["evaluate_accessibility", "validate_aria"])
    def test_local_file_url_is_rejected(self, pipeline: AccessibilityPipeline, tmp_path: Path, tool: str) -> None:
        secret = tmp_path / "secret.html"
        secret.write_text("<p>TOP-SECRET</p>", encoding="utf-8")
        response, data = _call(pipeline, tool, {"url": str(secret)})
        assert response.is_error
        assert data["error"] == "analysis failed"
        assert "http(s)" in data["detail"]
        assert "TOP-SECRET" not in response.content

    def test_response_dict(self) -> None:
        assert ToolResponse("{}", is_error=True).to_dict() == {"content": "{}", "isError": True}
