"""MCP server exposing page extraction, page question answering and search.

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m pageinfer.mcp_server

    # HTTP (for remote access)
    python -m pageinfer.mcp_server --transport http --port 8000

Environment Variables:
    OPENAI_API_KEY: Key for the chat completions endpoint (ask_page)
    PAGEINFER_MODEL: Default model (default: gpt-4o-mini)
    SEARXNG_URL: SearXNG instance URL (default: http://localhost:8888)
    PAGEINFER_AUTH_STORAGE_STATE: Playwright storage state for logged-in pages
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .document import ExtractionOptions
from .search import SearchError, format_search_report, search_async

LOGGER = logging.getLogger(__name__)

mcp = FastMCP(
    name="Page Inference",
    instructions="""
    Tools for reading and reasoning about web pages:

    - extract_page: Load a URL in a headless browser and return its readable
      text. LinkedIn profiles and job postings come back as labeled sections.
    - ask_page: Answer a question about a page. The model may run web
      searches before answering; sources are listed in the result.
    - web_search: Search the web via SearXNG and return a numbered report.
    """,
)


def _dumps(data: dict) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


@mcp.tool
async def extract_page(
    url: str,
    include_metadata: bool = False,
    include_links: bool = False,
    storage_state: Optional[str] = None,
):
    """
    Extract the readable text of a web page.

    Args:
        url: Page URL
        include_metadata: Prefix title, URL and description (default: false)
        include_links: Append the links found on the page (default: false)
        storage_state: Path to Playwright storage_state JSON for logged-in pages

    Returns:
        JSON with "content" and "websiteType", or "error".
    """
    from . import extract_page_async
    from .auth import AuthConfig

    LOGGER.info("Extracting %s", url)
    options = ExtractionOptions(include_metadata=include_metadata, include_links=include_links)
    auth = AuthConfig(storage_state=storage_state) if storage_state else None
    try:
        result = await extract_page_async(url, options=options, auth=auth)
    except Exception as exc:
        LOGGER.error("Extraction of %s failed: %s", url, exc)
        result = {"error": str(exc)}
    return _dumps(result)


@mcp.tool
async def ask_page(
    url: str,
    question: Optional[str] = None,
    model: Optional[str] = None,
    storage_state: Optional[str] = None,
):
    """
    Answer a question about a web page.

    Args:
        url: Page URL
        question: The question (default: "What is on this page?")
        model: Model name (default: PAGEINFER_MODEL or gpt-4o-mini)
        storage_state: Path to Playwright storage_state JSON for logged-in pages

    Returns:
        JSON with "answer", "sources", "model" and "websiteType", or "error".
    """
    from . import ask_page_async
    from .auth import AuthConfig

    LOGGER.info("Answering question about %s", url)
    auth = AuthConfig(storage_state=storage_state) if storage_state else None
    try:
        result = await ask_page_async(url, question, model=model, auth=auth)
    except Exception as exc:
        LOGGER.error("Question about %s failed: %s", url, exc)
        result = {"error": str(exc)}
    return _dumps(result)


@mcp.tool
async def web_search(query: str, max_results: int = 5):
    """
    Search the web using SearXNG.

    Args:
        query: Search query string
        max_results: Maximum results to return (1-50). Default: 5

    Returns:
        A numbered plain-text report: "N. Title - snippet" followed by the URL.
    """
    LOGGER.info("Searching SearXNG for: %s", query)
    try:
        response = await search_async(query, max_results=max_results)
    except SearchError as exc:
        LOGGER.error("%s", exc)
        return _dumps({"error": str(exc), "query": query})
    return format_search_report(response)


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the page inference MCP server.",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    load_dotenv()
    LOGGER.info("SearXNG URL: %s", os.getenv("SEARXNG_URL", "http://localhost:8888"))
    LOGGER.info("API key: %s", "configured" if os.getenv("OPENAI_API_KEY") else "missing")

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
