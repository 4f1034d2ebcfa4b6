"""FastAPI web application exposing the accessibility tools over HTTP."""

from __future__ import annotations

import logging

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel

from accesshtml import __version__
from accesshtml.config import AccessHTMLConfig
from accesshtml.errors import ConfigValidationError, FetchError, ParseError
from accesshtml.pipeline import AccessibilityPipeline
from accesshtml.tools import TOOLS, call_tool

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    html: str | None = None
    url: str | None = None
    level: str | None = None
    source: str | None = None


def create_app(pipeline: AccessibilityPipeline | None = None) -> FastAPI:
    """Create and return the FastAPI application."""
    app = FastAPI(title="AccessHTML", version=__version__, docs_url=None, redoc_url=None)
    pipe = pipeline or AccessibilityPipeline(AccessHTMLConfig.load())

    @app.get("/api/tools")
    async def list_tools() -> dict:
        """Return the names and descriptions of the available tools."""
        return {"tools": [{"name": t.name, "description": t.description} for t in TOOLS.values()]}

    @app.post("/api/tools/{name}")
    async def run_tool(name: str, arguments: dict | None = Body(default=None)) -> dict:
        """Call one tool. Expects JSON: {html?, url?, level?}"""
        if name not in TOOLS:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")
        response = await call_tool(pipe, name, arguments or {})
        return response.to_dict()

    @app.post("/api/analyze")
    async def analyze(request: AnalyzeRequest) -> dict:
        """Full analysis with a persisted report."""
        if request.html is not None:
            markup = request.html
        elif request.url:
            try:
                markup = await pipe.load_source(request.url, allow_files=False)
            except FetchError as exc:
                raise HTTPException(status_code=502, detail=str(exc)) from exc
            except (ValueError, OSError) as exc:
                raise HTTPException(status_code=400, detail=f"Could not load source: {exc}") from exc
        else:
            raise HTTPException(status_code=400, detail="Either 'html' or 'url' is required.")
        try:
            report = await pipe.analyze_async(markup, request.source or request.url, request.level)
        except (ParseError, ConfigValidationError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except FetchError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc

        data = report.to_dict()
        data["reportPath"] = str(report.report_path) if report.report_path else None
        return data

    @app.get("/api/status")
    async def status() -> dict:
        """Documentation cache status for the configured source."""
        return pipe.status().to_dict()

    return app
