"""Documentation fetcher: harvests WCAG metadata from the published standards pages.

Extraction is deliberately loose: it looks for a dotted numeric identifier
followed by a title (``1.1 Text Alternatives``, ``1.4.3 Contrast (Minimum)``)
and reads the conformance level from nearby ``Level AA`` markers.  Anything
it cannot classify defaults to level ``A``; anything it cannot parse is
skipped.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from accesshtml.docs.cache import Guideline, SuccessCriterion, Technique, WCAGDataSnapshot
from accesshtml.errors import FetchError

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[str]]

DEFAULT_USER_AGENT = "accesshtml-docs-fetcher (+https://www.w3.org/WAI/)"

_GUIDELINE = re.compile(r"^(?:Guideline\s+)?(\d+\.\d+)(?![.\d])\s*[:\-–]?\s+(\S.*)$")
_CRITERION = re.compile(r"^(?:Success Criterion\s+)?(\d+\.\d+\.\d+)(?![.\d])\s*[:\-–]?\s+(\S.*)$")
_TECHNIQUE = re.compile(
    r"^((?:ARIA|SCR|SVR|SM|PDF|FLASH|SL|G|H|C|F|T)\d+)\s*[:\-–]?\s+(\S.*)$"
)
_LEVEL = re.compile(r"\bLevel\s+(AAA|AA|A)\b")
_LEVEL_MARKER = re.compile(r"\(?\s*Level\s+A{1,3}\s*\)?")
_ANY_ID = re.compile(r"^(?:Guideline\s+|Success Criterion\s+)?\d+\.\d+")
_WS = re.compile(r"\s+")

# Lines after a criterion heading searched for its level marker.
_LEVEL_WINDOW = 4


class HttpFetcher:
    """Fetches a page over HTTP with httpx and returns its text."""

    def __init__(self, *, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._timeout = timeout
        self._user_agent = user_agent

    async def __call__(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers={"User-Agent": self._user_agent},
                follow_redirects=True,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp.text
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"HTTP {exc.response.status_code}", url=url) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"{type(exc).__name__}: {exc}", url=url) from exc


def page_lines(markup: str) -> list[str]:
    """Visible text of a page, one whitespace-collapsed line per block."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    main = soup.find("main") or soup.find(id="main") or soup.body or soup
    lines = []
    for raw in main.get_text("\n").splitlines():
        line = _WS.sub(" ", raw).strip()
        if line:
            lines.append(line)
    return lines


def classify_level(text: str) -> str:
    """Conformance level named in *text*, or ``"A"`` when there is none."""
    match = _LEVEL.search(text)
    return match.group(1) if match else "A"


def _clean_title(title: str) -> str:
    return _WS.sub(" ", _LEVEL_MARKER.sub(" ", title)).strip(" :-")


def extract_guidelines(lines: list[str]) -> list[Guideline]:
    seen: set[str] = set()
    out: list[Guideline] = []
    for line in lines:
        match = _GUIDELINE.match(line)
        if not match or match.group(1) in seen:
            continue
        title = _clean_title(match.group(2))
        if not title:
            continue
        seen.add(match.group(1))
        out.append(Guideline(id=match.group(1), title=title))
    return out


def extract_success_criteria(lines: list[str]) -> list[SuccessCriterion]:
    seen: set[str] = set()
    out: list[SuccessCriterion] = []
    for index, line in enumerate(lines):
        match = _CRITERION.match(line)
        if not match or match.group(1) in seen:
            continue
        title = _clean_title(match.group(2))
        if not title:
            continue
        window = [line]
        for following in lines[index + 1 : index + 1 + _LEVEL_WINDOW]:
            if _ANY_ID.match(following):
                break
            window.append(following)
        seen.add(match.group(1))
        out.append(SuccessCriterion(
            id=match.group(1),
            title=title,
            level=classify_level(" ".join(window)),
        ))
    return out


def extract_techniques(lines: list[str]) -> list[Technique]:
    seen: set[str] = set()
    out: list[Technique] = []
    for line in lines:
        match = _TECHNIQUE.match(line)
        if not match or match.group(1) in seen:
            continue
        seen.add(match.group(1))
        out.append(Technique(id=match.group(1), title=match.group(2).strip()))
    return out


class DocumentationFetcher:
    """Builds a :class:`WCAGDataSnapshot` from a standards documentation site.

    The base URL page supplies guidelines and success criteria; the
    techniques page (relative to it) supplies technique ids.  Losing the
    techniques page only produces a warning, but the base page is required.

    Usage::

        fetcher = DocumentationFetcher(HttpFetcher())
        snapshot, warnings = await fetcher.fetch_snapshot("https://www.w3.org/WAI/WCAG21/")
    """

    def __init__(
        self,
        fetch: Fetch | None = None,
        *,
        techniques_path: str | None = "Techniques/",
        request_delay: float = 0.0,
    ) -> None:
        self._fetch = fetch or HttpFetcher()
        self.techniques_path = techniques_path
        self.request_delay = request_delay

    async def fetch_page(self, url: str) -> str:
        return await self._fetch(url)

    async def fetch_snapshot(self, base_url: str) -> tuple[WCAGDataSnapshot, list[str]]:
        """Fetch and extract one source.

        Raises ``FetchError`` when the base page cannot be fetched or yields
        no guidelines and no success criteria.
        """
        warnings: list[str] = []
        logger.info("Fetching WCAG documentation from %s", base_url)
        primary = await self._fetch(base_url)
        guidelines, criteria = self._extract_primary(primary, base_url, warnings)

        techniques: list[Technique] = []
        if self.techniques_path:
            if self.request_delay > 0:
                await asyncio.sleep(self.request_delay)
            techniques_url = urljoin(base_url, self.techniques_path)
            try:
                techniques = extract_techniques(page_lines(await self._fetch(techniques_url)))
            except Exception as exc:
                logger.warning("Techniques page unavailable: %s", exc)
                warnings.append(f"Techniques not refreshed: {exc}")

        if not guidelines and not criteria:
            raise FetchError("No guidelines or success criteria found", url=base_url)

        snapshot = WCAGDataSnapshot(
            source_url=base_url,
            guidelines=guidelines,
            success_criteria=criteria,
            techniques=techniques,
        )
        return snapshot, warnings

    @staticmethod
    def _extract_primary(
        markup: str, base_url: str, warnings: list[str]
    ) -> tuple[list[Guideline], list[SuccessCriterion]]:
        try:
            lines = page_lines(markup)
            return extract_guidelines(lines), extract_success_criteria(lines)
        except Exception as exc:
            logger.warning("Could not extract metadata from %s: %s", base_url, exc, exc_info=True)
            warnings.append(f"Extraction failed for {base_url}: {exc}")
            return [], []
