"""Extraction heuristics, timings and runtime settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from crawl4ai import CrawlerRunConfig
from crawl4ai.async_configs import CacheMode

LOGGER = logging.getLogger(__name__)

# Semantic containers probed in order; the first one with enough text wins.
MAIN_CONTENT_SELECTORS: List[str] = [
    "article",
    "main",
    ".content",
    "#content",
    ".article",
    ".post",
    ".entry",
    "[role='main']",
    ".main-content",
]

# Subtrees dropped from the cloned tree before paragraph collection.
NOISE_SELECTORS: List[str] = [
    "nav",
    "header",
    "footer",
    "aside",
    ".sidebar",
    ".nav",
    ".menu",
    ".navigation",
    ".comments",
    ".ad",
    ".advertisement",
    ".promo",
    "script",
    "style",
    "meta",
    "noscript",
    "iframe",
]

TEXT_BLOCK_SELECTOR = "p, h1, h2, h3, h4, h5, h6"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_SEARXNG_URL = "http://localhost:8888"


@dataclass(frozen=True)
class ExtractionThresholds:
    """Character-count thresholds of the generic strategy."""

    container_min_chars: int = 500
    paragraph_min_chars: int = 20
    body_fallback_min_chars: int = 100


@dataclass(frozen=True)
class SessionTimings:
    """Delays (seconds) used by the page agent and the key tracker."""

    ready_failsafe: float = 1.0
    reinit_failsafe: float = 1.5
    release_debounce: float = 0.01
    blur_release: float = 0.5
    heartbeat_interval: float = 2.0


@dataclass
class AssistantSettings:
    """Coordinator-side settings read from the environment."""

    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    temperature: float = 0.7
    max_tokens: int = 1000
    followup_temperature: float = 0.3
    followup_max_tokens: int = 500
    max_content_chars: int = 100_000
    searxng_url: str = DEFAULT_SEARXNG_URL
    searxng_username: Optional[str] = None
    searxng_password: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AssistantSettings":
        """Read settings at call time so late ``.env`` loading is honoured."""
        return cls(
            model=os.getenv("PAGEINFER_MODEL") or DEFAULT_MODEL,
            api_base=(os.getenv("PAGEINFER_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            searxng_url=os.getenv("SEARXNG_URL") or DEFAULT_SEARXNG_URL,
            searxng_username=os.getenv("SEARXNG_USERNAME"),
            searxng_password=os.getenv("SEARXNG_PASSWORD"),
        )


@dataclass
class PageLoadOverrides:
    """Optional browser-load overrides for live page fetching."""

    wait_until: Optional[str] = None
    delay_before_return_html: Optional[float] = None
    wait_for: Optional[str] = None
    cache_mode: Optional[str] = None


def _convert_cache_mode(value: Optional[str], default: CacheMode) -> CacheMode:
    if not value:
        return default
    candidate = value.strip().replace("CacheMode.", "")
    try:
        return CacheMode[candidate.upper()]
    except KeyError:
        pass
    try:
        return CacheMode(candidate.lower())
    except ValueError:
        LOGGER.warning(
            "Unknown cache_mode '%s'; falling back to %s.", value, default.name
        )
        return default


def build_page_run_config(
    overrides: Optional[PageLoadOverrides] = None,
) -> CrawlerRunConfig:
    """Run config that returns the rendered HTML of a single page untouched.

    Extraction happens in :mod:`pageinfer.dispatcher`, so no content
    filtering or markdown pruning is configured here.
    """
    config = CrawlerRunConfig(
        verbose=False,
        wait_until="domcontentloaded",
        delay_before_return_html=0.5,
        cache_mode=CacheMode.BYPASS,
        scan_full_page=True,
    )
    if overrides is None:
        return config
    if overrides.wait_until is not None:
        config.wait_until = overrides.wait_until
    if overrides.delay_before_return_html is not None:
        config.delay_before_return_html = overrides.delay_before_return_html
    if overrides.wait_for:
        config.wait_for = overrides.wait_for
    if overrides.cache_mode:
        config.cache_mode = _convert_cache_mode(overrides.cache_mode, config.cache_mode)
    return config
