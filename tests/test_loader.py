from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pageinfer.loader import PageLoadError, load_page
from pageinfer.page import ReadyState


def _result(**overrides):
    values = dict(
        success=True,
        html="<html><body><p>Hello</p></body></html>",
        cleaned_html=None,
        url="https://example.com/final",
        error_message=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def _crawler_cls(container):
    crawler = MagicMock()
    crawler.arun = AsyncMock(return_value=container)
    crawler.__aenter__ = AsyncMock(return_value=crawler)
    crawler.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=crawler), crawler


class TestLoadPage:
    @pytest.mark.asyncio
    async def test_returns_loading_page(self):
        cls, crawler = _crawler_cls([_result()])
        with patch("pageinfer.loader.AsyncWebCrawler", cls):
            page = await load_page("https://example.com")

        assert page.url == "https://example.com/final"
        assert "<p>Hello</p>" in page.html
        assert page.ready_state is ReadyState.LOADING
        assert crawler.arun.call_args.kwargs["url"] == "https://example.com"

    @pytest.mark.asyncio
    async def test_cleaned_html_fallback(self):
        cls, _ = _crawler_cls([_result(html=None, cleaned_html="<p>clean</p>", url=None)])
        with patch("pageinfer.loader.AsyncWebCrawler", cls):
            page = await load_page("https://example.com")

        assert page.html == "<p>clean</p>"
        assert page.url == "https://example.com"

    @pytest.mark.asyncio
    async def test_failed_load(self):
        cls, _ = _crawler_cls([_result(success=False, error_message="net::ERR_NAME_NOT_RESOLVED")])
        with patch("pageinfer.loader.AsyncWebCrawler", cls):
            with pytest.raises(PageLoadError, match="ERR_NAME_NOT_RESOLVED") as info:
                await load_page("https://nope.invalid")

        assert info.value.url == "https://nope.invalid"

    @pytest.mark.asyncio
    async def test_no_results(self):
        cls, _ = _crawler_cls([])
        with patch("pageinfer.loader.AsyncWebCrawler", cls):
            with pytest.raises(PageLoadError, match="no results"):
                await load_page("https://example.com")

    @pytest.mark.asyncio
    async def test_custom_run_config_used(self):
        cls, crawler = _crawler_cls([_result()])
        config = MagicMock()
        with patch("pageinfer.loader.AsyncWebCrawler", cls):
            await load_page("https://example.com", config=config)

        assert crawler.arun.call_args.kwargs["config"] is config
