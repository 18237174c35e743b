"""Web search backed by a SearXNG instance.

``search_async`` returns structured hits; ``perform_web_search`` renders
them as the numbered free-form report the tool orchestrator hands to the
model. Connection settings come from ``SEARXNG_URL``, ``SEARXNG_USERNAME``
and ``SEARXNG_PASSWORD`` and are read on every call.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from .config import DEFAULT_SEARXNG_URL

LOGGER = logging.getLogger(__name__)

SEARCH_TIMEOUT = 30.0
TIME_RANGES = ("day", "week", "month", "year")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SearchHit:
    """One result row returned by SearXNG."""

    title: str
    url: str
    content: str = ""
    engine: str = ""
    score: float = 0.0


@dataclass(slots=True)
class SearchResponse:
    query: str
    hits: List[SearchHit] = field(default_factory=list)
    answers: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "results": [
                {
                    "title": hit.title,
                    "url": hit.url,
                    "content": hit.content,
                    "engine": hit.engine,
                    "score": hit.score,
                }
                for hit in self.hits
            ],
            "answers": self.answers,
            "suggestions": self.suggestions,
        }


class SearchError(Exception):
    """Raised when the SearXNG search fails."""

    def __init__(self, message: str, query: str = ""):
        self.query = query
        super().__init__(message)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _searxng_client(
    base_url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> httpx.AsyncClient:
    url = base_url or os.getenv("SEARXNG_URL") or DEFAULT_SEARXNG_URL
    user = username or os.getenv("SEARXNG_USERNAME")
    secret = password or os.getenv("SEARXNG_PASSWORD")

    auth = httpx.BasicAuth(user, secret) if user and secret else None
    return httpx.AsyncClient(
        base_url=url,
        auth=auth,
        headers={"Accept": "application/json"},
        timeout=SEARCH_TIMEOUT,
    )


def _to_hit(raw: Dict[str, Any]) -> SearchHit:
    return SearchHit(
        title=str(raw.get("title") or ""),
        url=str(raw.get("url") or ""),
        content=str(raw.get("content") or ""),
        engine=str(raw.get("engine") or ""),
        score=float(raw.get("score") or 0.0),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def search_async(
    query: str,
    *,
    language: str = "en",
    time_range: Optional[str] = None,
    safesearch: int = 1,
    max_results: int = 5,
    searxng_url: Optional[str] = None,
    searxng_username: Optional[str] = None,
    searxng_password: Optional[str] = None,
) -> SearchResponse:
    """Query SearXNG and return at most ``max_results`` hits (1-50).

    Raises:
        SearchError: On authentication failure, HTTP error or network error.
    """
    params: Dict[str, Any] = {
        "q": query,
        "format": "json",
        "language": language,
        "safesearch": safesearch,
    }
    if time_range in TIME_RANGES:
        params["time_range"] = time_range

    try:
        async with _searxng_client(
            base_url=searxng_url,
            username=searxng_username,
            password=searxng_password,
        ) as client:
            response = await client.get("/search", params=params)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 401:
            raise SearchError(
                "Authentication failed. Check SEARXNG_USERNAME and SEARXNG_PASSWORD.",
                query=query,
            ) from exc
        raise SearchError(
            f"SearXNG API error: {exc.response.status_code} - {exc.response.text}",
            query=query,
        ) from exc
    except httpx.RequestError as exc:
        raise SearchError(f"Request failed: {exc}", query=query) from exc

    limit = min(max(1, max_results), 50)
    hits = [_to_hit(raw) for raw in data.get("results", [])[:limit]]
    LOGGER.debug("SearXNG returned %d hits for %r", len(hits), query)
    return SearchResponse(
        query=data.get("query", query),
        hits=hits,
        answers=list(data.get("answers", [])),
        suggestions=list(data.get("suggestions", [])),
    )


def format_search_report(response: SearchResponse, *, now: Optional[datetime] = None) -> str:
    """Render hits as ``N. Title - snippet`` items followed by their URL."""
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    lines = [f'Web search results for query "{response.query}" (as of {timestamp}):', ""]

    for answer in response.answers:
        lines.append(f"Answer: {answer}")
        lines.append("")

    if not response.hits:
        lines.append("No results found.")
    for index, hit in enumerate(response.hits, start=1):
        snippet = " ".join(hit.content.split())
        heading = f"{index}. {hit.title}"
        if snippet:
            heading = f"{heading} - {snippet}"
        lines.append(heading)
        lines.append(f"   {hit.url}")
        lines.append("")

    lines.append(
        "Note: This search was performed at the time of your request. "
        "Newer information may now be available."
    )
    return "\n".join(lines)


async def perform_web_search(query: str) -> str:
    """Search collaborator of the tool orchestrator; errors propagate."""
    response = await search_async(query)
    return format_search_report(response)
