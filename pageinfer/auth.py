"""Browser session state for loading pages that need a login.

LinkedIn profiles and job postings are only fully rendered for signed-in
sessions, so the loader can reuse a Playwright storage state, cookies or
extra headers.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from crawl4ai import BrowserConfig

LOGGER = logging.getLogger(__name__)

STORAGE_STATE_ENV = "PAGEINFER_AUTH_STORAGE_STATE"
COOKIES_FILE_ENV = "PAGEINFER_AUTH_COOKIES_FILE"


@dataclass
class AuthConfig:
    """Optional, composable browser credentials.

    Attributes:
        storage_state: Path to a Playwright storage state JSON file.
        cookies: Cookie dicts with at least ``name``, ``value`` and ``domain``.
        headers: Extra HTTP headers sent with every request.
    """

    storage_state: Optional[str] = None
    cookies: Optional[List[Dict[str, Any]]] = None
    headers: Optional[Dict[str, str]] = None

    @property
    def is_empty(self) -> bool:
        return not (self.storage_state or self.cookies or self.headers)

    def load_storage_state(self) -> Optional[Dict[str, Any]]:
        if not self.storage_state:
            return None
        path = Path(self.storage_state).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"Storage state file not found: {path}")
        with open(path, "r", encoding="utf-8") as fh:
            state = json.load(fh)
        LOGGER.info("Loaded storage state from %s", path)
        return state


def build_browser_config(auth: Optional[AuthConfig] = None) -> BrowserConfig:
    """Headless browser config carrying whatever credentials ``auth`` holds."""
    if auth is None or auth.is_empty:
        return BrowserConfig(headless=True, verbose=False)

    kwargs: Dict[str, Any] = {"headless": True, "verbose": False}
    if auth.cookies:
        kwargs["cookies"] = auth.cookies
        LOGGER.info("Auth: injecting %d cookie(s)", len(auth.cookies))
    if auth.headers:
        kwargs["headers"] = auth.headers
        LOGGER.info("Auth: injecting %d header(s)", len(auth.headers))
    state = auth.load_storage_state()
    if state:
        kwargs["storage_state"] = state
    return BrowserConfig(**kwargs)


def load_auth_from_env() -> Optional[AuthConfig]:
    """Build an :class:`AuthConfig` from ``PAGEINFER_AUTH_*`` variables, if set."""
    storage_state = os.environ.get(STORAGE_STATE_ENV)
    cookies_file = os.environ.get(COOKIES_FILE_ENV)
    if not storage_state and not cookies_file:
        return None

    cookies = None
    if cookies_file:
        path = Path(cookies_file).expanduser()
        if path.is_file():
            with open(path, "r", encoding="utf-8") as fh:
                cookies = json.load(fh)
            LOGGER.info("Loaded %d cookie(s) from %s", len(cookies), path)
        else:
            LOGGER.warning("Cookies file not found: %s", path)

    return AuthConfig(storage_state=storage_state, cookies=cookies)
