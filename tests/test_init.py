"""Tests for the package-level API."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

import pageinfer
from pageinfer import (
    AssistantSettings,
    Coordinator,
    EnvCredentialStore,
    ExtractionOptions,
    Page,
    ReadyState,
    extract_html,
)
from pageinfer.credentials import MISSING_API_KEY
from pageinfer.llm import Completion

ARTICLE_HTML = (
    "<html><head><title>Story</title></head><body><nav>Menu</nav><main><p>"
    + "Readable sentence about the subject. " * 20
    + "</p></main></body></html>"
)


def _loading_page(url="https://news.example/story", html=ARTICLE_HTML):
    return Page(url, html, ready_state=ReadyState.LOADING)


class ScriptedClient:
    def __init__(self, reply):
        self.reply = reply

    async def complete(self, **kwargs):
        return self.reply


def _coordinator(api_key=None, client=None):
    return Coordinator(
        credentials=EnvCredentialStore(value=api_key),
        settings=AssistantSettings(),
        client_factory=lambda key, settings: client,
        dev_mode=False,
    )


class TestExtractHtml:
    def test_generic_page(self):
        text = extract_html("https://news.example/story", ARTICLE_HTML)
        assert text.startswith("Readable sentence about the subject.")
        assert "Menu" not in text

    def test_options(self):
        text = extract_html(
            "https://news.example/story",
            ARTICLE_HTML,
            ExtractionOptions(include_metadata=True),
        )
        assert text.startswith("Title: Story\n\nURL: https://news.example/story")


class TestExtractPageAsync:
    @pytest.mark.asyncio
    async def test_extracts_and_cleans_up(self, fast_timings):
        coordinator = _coordinator()
        with patch("pageinfer.load_page", AsyncMock(return_value=_loading_page())) as load:
            result = await pageinfer.extract_page_async(
                "https://news.example/story", coordinator=coordinator, timings=fast_timings
            )

        assert result["content"].startswith("Readable sentence")
        assert result["websiteType"] == "news"
        assert coordinator.tab(1) is None
        assert load.call_args.kwargs == {"config": None, "auth": None}

    @pytest.mark.asyncio
    async def test_load_error_propagates(self):
        failure = AsyncMock(side_effect=pageinfer.PageLoadError("Failed to load x", url="x"))
        with patch("pageinfer.load_page", failure):
            with pytest.raises(pageinfer.PageLoadError):
                await pageinfer.extract_page_async("x", coordinator=_coordinator())


class TestAskPageAsync:
    @pytest.mark.asyncio
    async def test_missing_key_skips_loading(self):
        load = AsyncMock()
        with patch("pageinfer.load_page", load):
            result = await pageinfer.ask_page_async("https://a.example", coordinator=_coordinator())

        assert result == {"error": MISSING_API_KEY}
        load.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_answers(self, fast_timings):
        client = ScriptedClient(Completion(content="A story.", model="gpt-4o-mini"))
        coordinator = _coordinator(api_key="sk-test", client=client)
        with patch("pageinfer.load_page", AsyncMock(return_value=_loading_page())):
            result = await pageinfer.ask_page_async(
                "https://news.example/story",
                "What is it?",
                coordinator=coordinator,
                timings=fast_timings,
            )

        assert result["answer"] == "A story."
        assert coordinator.chat_history(1, "https://news.example/story")[0].content == "What is it?"


class TestSyncWrappers:
    def test_extract_page(self, fast_timings):
        with patch("pageinfer.load_page", AsyncMock(return_value=_loading_page())):
            result = pageinfer.extract_page(
                "https://news.example/story", coordinator=_coordinator(), timings=fast_timings
            )

        assert "content" in result


def test_unknown_attribute():
    with pytest.raises(AttributeError):
        pageinfer.does_not_exist
