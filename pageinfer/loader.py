"""Load live pages with a headless browser."""

from __future__ import annotations

import logging
from typing import Optional

from crawl4ai import AsyncWebCrawler, CrawlerRunConfig

from .auth import AuthConfig, build_browser_config, load_auth_from_env
from .config import build_page_run_config
from .page import Page, ReadyState

LOGGER = logging.getLogger(__name__)


class PageLoadError(Exception):
    """Raised when the browser could not load a page."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


async def load_page(
    url: str,
    *,
    config: Optional[CrawlerRunConfig] = None,
    auth: Optional[AuthConfig] = None,
) -> Page:
    """Render ``url`` and return a :class:`Page` still in the loading state.

    The caller starts its agent and then marks the page ready, which is the
    order a real page load follows.
    """
    run_config = config or build_page_run_config()
    if auth is None:
        auth = load_auth_from_env()
    browser_cfg = build_browser_config(auth)

    async with AsyncWebCrawler(config=browser_cfg) as crawler:
        container = await crawler.arun(url=url, config=run_config)

    try:
        result = container[0]
    except (IndexError, TypeError):
        result = None

    if result is None:
        raise PageLoadError(f"Crawler returned no results for {url}", url=url)
    if not result.success:
        raise PageLoadError(
            f"Failed to load {url}: {result.error_message or 'unknown error'}", url=url
        )

    html = result.html or result.cleaned_html or ""
    final_url = str(result.url or url)
    LOGGER.info("Loaded %s (%d bytes of HTML)", final_url, len(html))
    return Page(final_url, html, ready_state=ReadyState.LOADING)
