"""Page question answering: extraction, page/coordinator messaging, tool calls.

Example usage:

    from pageinfer import ask_page_async, extract_page_async

    result = await extract_page_async("https://example.com/article")
    print(result["content"])

    answer = await ask_page_async(
        "https://www.linkedin.com/jobs/view/123",
        "What are the requirements?",
    )
    print(answer.get("answer") or answer["error"])

    # Offline extraction from markup you already have
    from pageinfer import extract_html
    text = extract_html("https://example.com", "<html>...</html>")
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from crawl4ai import CrawlerRunConfig

from .agent import AgentState, PageAgent, SessionState
from .auth import AuthConfig, build_browser_config
from .channel import ResilientChannel, detect_dev_mode, is_teardown_error
from .config import (
    AssistantSettings,
    ExtractionThresholds,
    PageLoadOverrides,
    SessionTimings,
    build_page_run_config,
)
from .coordinator import Coordinator
from .credentials import EnvCredentialStore, MissingCredentialError
from .dispatcher import ExtractorDispatcher
from .document import (
    ExtractionOptions,
    PageDocument,
    SourceRecord,
    ToolCall,
    ToolFailure,
    ToolResult,
)
from .generic import GenericStrategy
from .inference import Answer, answer_question
from .linkedin import LinkedInStrategy
from .llm import ChatClient, CompletionError
from .loader import PageLoadError, load_page
from .page import Page, ReadyState
from .search import SearchError, perform_web_search, search_async
from .strategy import ExtractionStrategy
from .text import normalize
from .tools import (
    ToolArgumentError,
    ToolCallError,
    UnsupportedToolError,
    execute_tool_call,
    parse_sources,
    parse_tool_call,
)
from .transport import LocalPort, TransportError, create_port_pair

__all__ = [
    # Extraction
    "normalize",
    "PageDocument",
    "ExtractionOptions",
    "ExtractionStrategy",
    "GenericStrategy",
    "LinkedInStrategy",
    "ExtractorDispatcher",
    "ExtractionThresholds",
    "extract_html",
    # Page session
    "Page",
    "ReadyState",
    "PageAgent",
    "AgentState",
    "SessionState",
    "SessionTimings",
    "LocalPort",
    "TransportError",
    "create_port_pair",
    "ResilientChannel",
    "detect_dev_mode",
    "is_teardown_error",
    # Tools and answering
    "ToolCall",
    "ToolResult",
    "ToolFailure",
    "SourceRecord",
    "ToolCallError",
    "ToolArgumentError",
    "UnsupportedToolError",
    "parse_tool_call",
    "parse_sources",
    "execute_tool_call",
    "SearchError",
    "search_async",
    "perform_web_search",
    "ChatClient",
    "CompletionError",
    "Answer",
    "answer_question",
    "AssistantSettings",
    "EnvCredentialStore",
    "MissingCredentialError",
    "Coordinator",
    # Live pages
    "AuthConfig",
    "build_browser_config",
    "PageLoadError",
    "PageLoadOverrides",
    "build_page_run_config",
    "load_page",
    "extract_page",
    "extract_page_async",
    "ask_page",
    "ask_page_async",
    # MCP Server
    "mcp",
]


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def extract_html(
    url: str, html: str, options: Optional[ExtractionOptions] = None
) -> str:
    """Run the extractor dispatcher over markup that is already loaded."""
    return ExtractorDispatcher().extract_current_page(PageDocument(url, html), options)


async def _open_tab(
    coordinator: Coordinator,
    url: str,
    auth: Optional[AuthConfig],
    timings: Optional[SessionTimings],
    run_config: Optional[CrawlerRunConfig],
):
    page = await load_page(url, config=run_config, auth=auth)
    tab_id, agent = coordinator.open_page(page, timings=timings)
    page.mark_ready()
    return tab_id, agent


async def extract_page_async(
    url: str,
    *,
    options: Optional[ExtractionOptions] = None,
    auth: Optional[AuthConfig] = None,
    coordinator: Optional[Coordinator] = None,
    timings: Optional[SessionTimings] = None,
    run_config: Optional[CrawlerRunConfig] = None,
) -> Dict[str, Any]:
    """Load ``url`` in a headless browser and extract its text.

    Returns ``{"content", "websiteType"}`` or ``{"error"}``.

    Raises:
        PageLoadError: If the browser could not load the page.
    """
    coordinator = coordinator or Coordinator()
    tab_id, agent = await _open_tab(coordinator, url, auth, timings, run_config)
    try:
        return await coordinator.scrape_tab(tab_id, options)
    finally:
        agent.close()
        coordinator.detach_tab(tab_id)


async def ask_page_async(
    url: str,
    question: Optional[str] = None,
    *,
    model: Optional[str] = None,
    auth: Optional[AuthConfig] = None,
    coordinator: Optional[Coordinator] = None,
    timings: Optional[SessionTimings] = None,
    run_config: Optional[CrawlerRunConfig] = None,
) -> Dict[str, Any]:
    """Load ``url`` and answer ``question`` about it.

    Returns ``{"answer", "sources", "model", "websiteType"}`` or ``{"error"}``.

    Raises:
        PageLoadError: If the browser could not load the page.
    """
    coordinator = coordinator or Coordinator()
    try:
        coordinator.credentials.require()
    except MissingCredentialError as exc:
        return {"error": str(exc)}
    tab_id, agent = await _open_tab(coordinator, url, auth, timings, run_config)
    try:
        return await coordinator.ask(tab_id, question, model=model)
    finally:
        agent.close()
        coordinator.detach_tab(tab_id)


def extract_page(url: str, **kwargs: Any) -> Dict[str, Any]:
    """Synchronous wrapper for extract_page_async."""
    return asyncio.run(extract_page_async(url, **kwargs))


def ask_page(url: str, question: Optional[str] = None, **kwargs: Any) -> Dict[str, Any]:
    """Synchronous wrapper for ask_page_async."""
    return asyncio.run(ask_page_async(url, question, **kwargs))
