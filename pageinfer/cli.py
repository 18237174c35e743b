"""Command-line interface: extract page text, ask about a page, search."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from crawl4ai import CrawlerRunConfig
from dotenv import load_dotenv

from .cli_config import load_config
from .config import PageLoadOverrides, build_page_run_config
from .document import ExtractionOptions


def _load_config() -> None:
    """Load ``./.env`` or ``~/.config/pageinfer/.env``."""
    load_config(cwd=Path.cwd(), load_env=load_dotenv, copy_file=shutil.copy)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _write_output(text: str, output: Optional[str]) -> None:
    if not output:
        print(text)
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logging.info("Wrote output to %s", path)


def _format_answer(result: Dict[str, Any]) -> str:
    lines = [result.get("answer", "")]
    sources = result.get("sources") or []
    if sources:
        lines.append("")
        lines.append("Sources:")
        for source in sources:
            url = source.get("url")
            lines.append(f"- {source['title']}" + (f" ({url})" if url else ""))
    return "\n".join(lines)


def _add_page_load_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("page loading")
    group.add_argument("--wait-until", default=None, help="Navigation event to wait for (default: domcontentloaded)")
    group.add_argument("--wait-for", default=None, help="CSS selector or JS condition to wait for")
    group.add_argument("--delay", type=float, default=None, help="Seconds to wait before reading the HTML (default: 0.5)")
    group.add_argument("--cache-mode", default=None, help="crawl4ai cache mode (default: bypass)")


def _run_config(args: argparse.Namespace) -> Optional[CrawlerRunConfig]:
    overrides = PageLoadOverrides(
        wait_until=args.wait_until,
        delay_before_return_html=args.delay,
        wait_for=args.wait_for,
        cache_mode=args.cache_mode,
    )
    if overrides == PageLoadOverrides():
        return None
    return build_page_run_config(overrides)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pageinfer",
        description="Extract readable page text and answer questions about it.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Page text to stdout
  pageinfer extract https://example.com/article

  # Extract from a saved HTML file instead of loading the page
  pageinfer extract https://www.linkedin.com/jobs/view/1 --html job.html

  # Ask a question (needs OPENAI_API_KEY)
  pageinfer ask https://example.com "What is this page about?"

  # Search via SearXNG
  pageinfer search "python asyncio tutorial" --json
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode: log channel teardown diagnostics",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract the readable text of a page")
    extract.add_argument("url", help="Page URL")
    extract.add_argument("--html", default=None, help="Read markup from this file instead of loading the URL")
    extract.add_argument("--metadata", action="store_true", help="Prefix title, URL and description")
    extract.add_argument("--links", action="store_true", help="Append the links found on the page")
    extract.add_argument("--storage-state", default=None, help="Playwright storage_state JSON for logged-in pages")
    _add_page_load_arguments(extract)
    extract.add_argument("--json", action="store_true", dest="json_output", help="Output as JSON")
    extract.add_argument("-o", "--output", default=None, help="Write output to this file")

    ask = subparsers.add_parser("ask", help="Answer a question about a page")
    ask.add_argument("url", help="Page URL")
    ask.add_argument("question", nargs="?", default=None, help="Question (default: what is on this page?)")
    ask.add_argument("--model", default=None, help="Model name (default: PAGEINFER_MODEL or gpt-4o-mini)")
    ask.add_argument("--storage-state", default=None, help="Playwright storage_state JSON for logged-in pages")
    _add_page_load_arguments(ask)
    ask.add_argument("--json", action="store_true", dest="json_output", help="Output as JSON")

    search = subparsers.add_parser("search", help="Search the web via SearXNG")
    search.add_argument("query", help="Search query")
    search.add_argument("--max-results", type=int, default=5, help="Maximum results (1-50, default: 5)")
    search.add_argument("--json", action="store_true", dest="json_output", help="Output as JSON")

    return parser.parse_args(argv)


# =============================================================================
# COMMANDS
# =============================================================================


async def _run_extract_async(args: argparse.Namespace) -> int:
    from . import extract_html, extract_page_async
    from .auth import AuthConfig
    from .prompts import detect_website_type

    options = ExtractionOptions(include_metadata=args.metadata, include_links=args.links)
    if args.html:
        html = Path(args.html).read_text(encoding="utf-8")
        content = extract_html(args.url, html, options)
        result = {
            "content": content,
            "websiteType": detect_website_type(content, args.url).type,
        }
    else:
        auth = AuthConfig(storage_state=args.storage_state) if args.storage_state else None
        logging.info("Loading: %s", args.url)
        result = await extract_page_async(
            args.url, options=options, auth=auth, run_config=_run_config(args)
        )

    if "error" in result:
        logging.error("Extraction failed: %s", result["error"])
        if args.json_output:
            print(json.dumps(result, indent=2, ensure_ascii=False))
        return 1

    if args.json_output:
        _write_output(json.dumps(result, indent=2, ensure_ascii=False), args.output)
    else:
        _write_output(result["content"], args.output)
    return 0


async def _run_ask_async(args: argparse.Namespace) -> int:
    from . import ask_page_async
    from .auth import AuthConfig

    auth = AuthConfig(storage_state=args.storage_state) if args.storage_state else None
    logging.info("Asking about: %s", args.url)
    result = await ask_page_async(
        args.url, args.question, model=args.model, auth=auth, run_config=_run_config(args)
    )

    if args.json_output:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    if "error" in result:
        logging.error("%s", result["error"])
        return 1
    if not args.json_output:
        print(_format_answer(result))
    return 0


async def _run_search_async(args: argparse.Namespace) -> int:
    from .search import SearchError, format_search_report, search_async

    logging.info("Searching for: %s", args.query)
    try:
        response = await search_async(args.query, max_results=args.max_results)
    except SearchError as exc:
        logging.error("%s", exc)
        return 1

    logging.info("Found %d results", len(response.hits))
    if args.json_output:
        print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_search_report(response))
    return 0


_COMMANDS = {
    "extract": _run_extract_async,
    "ask": _run_ask_async,
    "search": _run_search_async,
}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the ``pageinfer`` command."""
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    _load_config()
    if args.dev:
        os.environ["PAGEINFER_DEV_MODE"] = "1"

    try:
        return asyncio.run(_COMMANDS[args.command](args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
