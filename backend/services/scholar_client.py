"""
Semantic Scholar Client - Fetch papers and citation neighbourhoods
API docs: https://api.semanticscholar.org/api-docs/graph
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import Any

import aiohttp

from models.network import Paper
from services.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.semanticscholar.org/graph/v1"
DEFAULT_FIELDS = (
    "paperId,title,abstract,venue,year,citationCount,influentialCitationCount,"
    "referenceCount,authors,externalIds,url,tldr,fieldsOfStudy"
)
PAPER_ID_PATTERN = re.compile(r"[a-f0-9]{40}")


class ScholarAPIError(Exception):
    """Semantic Scholar request failed"""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ScholarConfigError(ScholarAPIError):
    """API key missing"""


class ScholarRateLimitError(ScholarAPIError):
    pass


class ScholarTimeoutError(ScholarAPIError):
    pass


class ScholarNetworkError(ScholarAPIError):
    pass


def transform_to_paper(raw: dict[str, Any]) -> Paper:
    """Convert a raw Semantic Scholar paper object to our Paper model"""
    paper_id = raw.get("paperId") or ""
    tldr = (raw.get("tldr") or {}).get("text")
    external_ids = raw.get("externalIds") or None
    if external_ids:
        external_ids = {k: str(v) for k, v in external_ids.items() if v is not None}

    return Paper(
        id=paper_id,
        title=raw.get("title") or "Untitled",
        authors=[a.get("name", "") for a in raw.get("authors") or []],
        year=raw.get("year") or 0,
        citation_count=raw.get("citationCount") or 0,
        url=raw.get("url") or f"https://www.semanticscholar.org/paper/{paper_id}",
        abstract=raw.get("abstract") or tldr or "",
        source="Semantic Scholar",
        venue=raw.get("venue") or "Unknown",
        influential_citation_count=raw.get("influentialCitationCount"),
        reference_count=raw.get("referenceCount"),
        tldr=tldr,
        fields_of_study=raw.get("fieldsOfStudy") or [],
        external_ids=external_ids,
    )


class SemanticScholarClient:
    """Rate-limited client for the Semantic Scholar Graph API"""

    def __init__(self, config: dict[str, Any]):
        self.config = config
        self.base_url = config.get("baseUrl", DEFAULT_BASE_URL).rstrip("/")
        self.rate_limit_delay = float(config.get("rateLimitDelay", 1.1))
        self.max_retries = int(config.get("maxRetries", 3))
        self.initial_retry_delay = float(config.get("initialRetryDelay", 2.0))
        self.timeout_seconds = float(config.get("timeout", 30))
        self._lock = asyncio.Lock()
        self._last_request = 0.0

    # ========== Request Helpers ==========

    def _get_headers(self) -> dict[str, str]:
        """Request headers with the API key. Raises if the key is missing."""
        api_key = self.config.get("apiKey")
        if not api_key:
            raise ScholarConfigError(
                "Semantic Scholar API key is not configured. Set SEMANTIC_SCHOLAR_API_KEY or the "
                "semanticScholar.apiKey config value."
            )
        return {"x-api-key": api_key}

    async def _wait_for_slot(self):
        """Space requests at least rate_limit_delay seconds apart"""
        async with self._lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.rate_limit_delay:
                await asyncio.sleep(self.rate_limit_delay - elapsed)
            self._last_request = time.monotonic()

    async def _get(self, url: str, params: dict[str, str], headers: dict[str, str]) -> tuple[int, Any]:
        """Single GET; returns (status, parsed JSON or error text)"""
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, params=params, headers=headers) as response:
                if response.status != 200:
                    return response.status, await response.text()
                return response.status, await response.json()

    async def _fetch_json(self, path: str, params: dict[str, str]) -> Any:
        """GET with rate limiting and exponential backoff on 429, 5xx and network errors"""
        headers = self._get_headers()
        url = f"{self.base_url}{path}"

        for attempt in range(self.max_retries + 1):
            can_retry = attempt < self.max_retries
            wait_time = self.initial_retry_delay * (2**attempt)
            await self._wait_for_slot()

            try:
                status, data = await self._get(url, params, headers)
            except asyncio.TimeoutError:
                if can_retry:
                    logger.warning("Request timeout. Retrying in %.1fs... (attempt %d)", wait_time, attempt + 1)
                    await asyncio.sleep(wait_time)
                    continue
                raise ScholarTimeoutError(f"Request timeout after {self.max_retries} retries")
            except aiohttp.ClientError as e:
                if can_retry:
                    logger.warning("Network error: %s. Retrying in %.1fs...", e, wait_time)
                    await asyncio.sleep(wait_time)
                    continue
                raise ScholarNetworkError(f"Network error: {e}")

            if status == 429:
                if can_retry:
                    logger.warning("Rate limited. Retrying in %.1fs... (%d retries left)", wait_time, self.max_retries - attempt)
                    await asyncio.sleep(wait_time)
                    continue
                raise ScholarRateLimitError("API rate limit exceeded. Please try again later.", status=429)

            if status >= 500 and can_retry:
                logger.warning("Server error (%d). Retrying in %.1fs...", status, wait_time)
                await asyncio.sleep(wait_time)
                continue

            if status != 200:
                logger.error("Semantic Scholar API error (%d): %s", status, data)
                raise ScholarAPIError(f"Semantic Scholar API error ({status}): {data}", status=status)

            return data

        raise ScholarAPIError("Semantic Scholar request failed")

    # ========== API Operations ==========

    async def search_papers(
        self,
        query: str,
        max_results: int = 20,
        year_from: int | None = None,
        year_to: int | None = None,
        venue: str | None = None,
        fields_of_study: list[str] | None = None,
    ) -> list[Paper]:
        """Search papers by free-text query"""
        logger.info("Searching Semantic Scholar for: %r", query)
        params = {
            "query": query,
            "limit": str(min(max_results, 100)),
            "fields": DEFAULT_FIELDS,
        }
        if year_from or year_to:
            params["year"] = f"{year_from or ''}-{year_to or ''}"
        if venue:
            params["venue"] = venue
        if fields_of_study:
            params["fieldsOfStudy"] = ",".join(fields_of_study)

        result = await self._fetch_json("/paper/search", params)
        papers = [transform_to_paper(item) for item in result.get("data") or []]
        logger.info("Found %d papers", len(papers))
        return papers

    async def get_paper_details(self, paper_id: str) -> Paper:
        result = await self._fetch_json(f"/paper/{paper_id}", {"fields": DEFAULT_FIELDS})
        return transform_to_paper(result)

    async def get_citations(self, paper_id: str, limit: int = 50) -> list[Paper]:
        """Papers citing ``paper_id`` (derivative works)"""
        if limit <= 0:
            return []
        result = await self._fetch_json(
            f"/paper/{paper_id}/citations",
            {"fields": DEFAULT_FIELDS, "limit": str(min(limit, 1000))},
        )
        return [transform_to_paper(item["citingPaper"]) for item in result.get("data") or [] if item.get("citingPaper")]

    async def get_references(self, paper_id: str, limit: int = 50) -> list[Paper]:
        """Papers cited by ``paper_id`` (prior works)"""
        if limit <= 0:
            return []
        result = await self._fetch_json(
            f"/paper/{paper_id}/references",
            {"fields": DEFAULT_FIELDS, "limit": str(min(limit, 1000))},
        )
        return [transform_to_paper(item["citedPaper"]) for item in result.get("data") or [] if item.get("citedPaper")]

    async def build_citation_network(
        self,
        paper_id_or_query: str,
        max_citations: int = 30,
        max_references: int = 30,
    ) -> tuple[Paper, list[Paper], list[Paper]]:
        """Fetch the origin paper with its citations and references.

        A 40-character hex string is taken as a paper id; anything else is
        searched and the top hit becomes the origin.
        """
        if PAPER_ID_PATTERN.fullmatch(paper_id_or_query):
            origin = await self.get_paper_details(paper_id_or_query)
        else:
            results = await self.search_papers(paper_id_or_query, max_results=1)
            if not results:
                raise LookupError(f"No papers found for query: {paper_id_or_query}")
            origin = results[0]

        logger.info("Origin paper: %r", origin.title)

        citations, references = await asyncio.gather(
            self.get_citations(origin.id, max_citations),
            self.get_references(origin.id, max_references),
        )

        logger.info(
            "Network complete: %d citations, %d references, %d papers total",
            len(citations),
            len(references),
            1 + len(citations) + len(references),
        )
        return origin, citations, references
