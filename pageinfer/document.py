"""Data structures shared by the page agent, the coordinator and the tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

DEFAULT_PARSER = "html.parser"


class PageDocument:
    """Read-only handle to a parsed page.

    Strategies read from :attr:`soup` but never mutate it; anything that
    needs to drop subtrees works on :meth:`clone`.
    """

    __slots__ = ("url", "html", "_parser", "_soup")

    def __init__(self, url: str, html: str, *, parser: str = DEFAULT_PARSER):
        self.url = url or ""
        self.html = html or ""
        self._parser = parser
        self._soup = BeautifulSoup(self.html, parser)

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    @property
    def host(self) -> str:
        return (urlparse(self.url).hostname or "").lower()

    @property
    def path(self) -> str:
        return urlparse(self.url).path or "/"

    @property
    def title(self) -> str:
        tag = self._soup.title
        if tag is None:
            return ""
        return " ".join(tag.get_text().split())

    def clone(self) -> BeautifulSoup:
        """Return an independent copy of the tree."""
        return BeautifulSoup(str(self._soup), self._parser)

    def select(self, selector: str) -> List[Tag]:
        return self._soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self._soup.select_one(selector)

    def meta_content(
        self, *, name: Optional[str] = None, prop: Optional[str] = None
    ) -> str:
        """Content of the first ``<meta>`` matching ``name`` or ``property``."""
        attrs: Dict[str, str] = {}
        if name:
            attrs["name"] = name
        if prop:
            attrs["property"] = prop
        tag = self._soup.find("meta", attrs=attrs)
        if tag is None:
            return ""
        return str(tag.get("content") or "").strip()

    def body_text(self) -> str:
        root = self._soup.body or self._soup
        return root.get_text()

    def __repr__(self) -> str:
        return f"PageDocument(url={self.url!r}, html_length={len(self.html)})"


@dataclass(frozen=True, slots=True)
class ExtractionOptions:
    """Per-call extraction switches."""

    include_metadata: bool = False
    include_links: bool = False

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "ExtractionOptions":
        payload = payload or {}
        return cls(
            include_metadata=bool(payload.get("includeMetadata", False)),
            include_links=bool(payload.get("includeLinks", False)),
        )


@dataclass(slots=True)
class SourceRecord:
    """A citation-like record recovered from free-form tool output.

    ``url`` is ``None`` when the source location is unknown.
    """

    title: str
    url: Optional[str] = None
    snippet: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


@dataclass(slots=True)
class ToolCall:
    """A parsed tool invocation requested by the model."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    call_id: Optional[str] = None


@dataclass(slots=True)
class ToolResult:
    """Successful tool execution."""

    name: str
    result: str
    sources: List[SourceRecord] = field(default_factory=list)
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "name": self.name,
            "result": self.result,
            "sources": [source.to_dict() for source in self.sources],
        }


@dataclass(slots=True)
class ToolFailure:
    """Failed tool execution, surfaced to the model instead of raised."""

    message: str
    error: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}
