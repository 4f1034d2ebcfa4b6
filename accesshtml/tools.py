"""Tool-protocol boundary: the pipeline exposed as named request/response operations.

Each tool takes ``{html?, url?, level?}`` and answers with a JSON document.
Whatever goes wrong inside, the caller only ever sees a generic
``"analysis failed"`` error response; no internal exception type crosses
this boundary.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from accesshtml.dom import parse
from accesshtml.models import AnalysisReport
from accesshtml.pipeline import AccessibilityPipeline

logger = logging.getLogger(__name__)


class ToolRequest(BaseModel):
    """Arguments accepted by every tool."""

    model_config = ConfigDict(extra="ignore")

    html: str | None = None
    url: str | None = None
    level: str = Field(default="AA")


@dataclass
class ToolResponse:
    content: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "isError": self.is_error}


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    handler: Callable[[AccessibilityPipeline, ToolRequest], Awaitable[dict[str, Any]]]


async def _markup(pipeline: AccessibilityPipeline, request: ToolRequest) -> str:
    if request.html is not None:
        return request.html
    if request.url:
        return await pipeline.load_source(request.url, allow_files=False)
    raise ValueError("Either 'html' or 'url' is required")


async def _analyze(pipeline: AccessibilityPipeline, request: ToolRequest) -> AnalysisReport:
    markup = await _markup(pipeline, request)
    return await pipeline.analyze_async(markup, request.url, request.level, persist=False)


async def evaluate_accessibility(pipeline: AccessibilityPipeline, request: ToolRequest) -> dict[str, Any]:
    report = await _analyze(pipeline, request)
    return {"source": report.source, **report.evaluation.to_dict(), "warnings": report.warnings}


async def check_wcag_compliance(pipeline: AccessibilityPipeline, request: ToolRequest) -> dict[str, Any]:
    report = await _analyze(pipeline, request)
    return {"source": report.source, **report.compliance.to_dict(), "warnings": report.warnings}


async def validate_aria(pipeline: AccessibilityPipeline, request: ToolRequest) -> dict[str, Any]:
    markup = await _markup(pipeline, request)
    return pipeline.aria_validator.validate(parse(markup)).to_dict()


async def fetch_accessibility_docs(pipeline: AccessibilityPipeline, request: ToolRequest) -> dict[str, Any]:
    outcome = await pipeline.update_documentation(request.url)
    return outcome.to_dict()


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec("evaluate_accessibility", "Run every accessibility rule against a document.", evaluate_accessibility),
        ToolSpec("check_wcag_compliance", "Score a document against a WCAG conformance level.", check_wcag_compliance),
        ToolSpec("validate_aria", "Check ARIA roles and attributes in a document.", validate_aria),
        ToolSpec("fetch_accessibility_docs", "Refresh WCAG documentation from its source.", fetch_accessibility_docs),
    )
}


async def call_tool(
    pipeline: AccessibilityPipeline,
    name: str,
    arguments: dict[str, Any] | None = None,
) -> ToolResponse:
    """Dispatch one tool call and serialize its result."""
    spec = TOOLS.get(name)
    if spec is None:
        return ToolResponse(json.dumps({"error": "unknown tool", "detail": name}), is_error=True)
    try:
        request = ToolRequest.model_validate(arguments or {})
        result = await spec.handler(pipeline, request)
    except Exception as exc:
        logger.error("Tool %s failed: %s", name, exc, exc_info=True)
        payload = {"error": "analysis failed", "detail": f"{type(exc).__name__}: {exc}"}
        return ToolResponse(json.dumps(payload), is_error=True)
    return ToolResponse(json.dumps(result, indent=2, default=str))
