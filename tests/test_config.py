"""Tests for pageinfer.config module."""

from crawl4ai import CrawlerRunConfig
from crawl4ai.async_configs import CacheMode

from pageinfer.config import (
    DEFAULT_API_BASE,
    DEFAULT_MODEL,
    AssistantSettings,
    ExtractionThresholds,
    PageLoadOverrides,
    SessionTimings,
    _convert_cache_mode,
    build_page_run_config,
)


class TestDefaults:
    def test_thresholds(self):
        t = ExtractionThresholds()
        assert (t.container_min_chars, t.paragraph_min_chars, t.body_fallback_min_chars) == (500, 20, 100)

    def test_timings(self):
        t = SessionTimings()
        assert t.ready_failsafe == 1.0
        assert t.reinit_failsafe == 1.5
        assert t.release_debounce == 0.01
        assert t.blur_release == 0.5


class TestAssistantSettings:
    def test_from_env_defaults(self):
        s = AssistantSettings.from_env()
        assert s.model == DEFAULT_MODEL
        assert s.api_base == DEFAULT_API_BASE
        assert s.temperature == 0.7
        assert s.max_tokens == 1000
        assert s.followup_temperature == 0.3
        assert s.followup_max_tokens == 500
        assert s.max_content_chars == 100_000
        assert s.searxng_url == "http://localhost:8888"

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PAGEINFER_MODEL", "gpt-4o")
        monkeypatch.setenv("PAGEINFER_API_BASE", "http://llm.local/v1/")
        monkeypatch.setenv("SEARXNG_URL", "http://searx:8080")
        monkeypatch.setenv("SEARXNG_USERNAME", "me")

        s = AssistantSettings.from_env()

        assert s.model == "gpt-4o"
        assert s.api_base == "http://llm.local/v1"
        assert s.searxng_url == "http://searx:8080"
        assert s.searxng_username == "me"
        assert s.searxng_password is None


class TestConvertCacheMode:
    def test_none_returns_default(self):
        assert _convert_cache_mode(None, CacheMode.BYPASS) == CacheMode.BYPASS

    def test_name_lookup(self):
        assert _convert_cache_mode("ENABLED", CacheMode.BYPASS) == CacheMode.ENABLED

    def test_value_lookup(self):
        assert _convert_cache_mode("enabled", CacheMode.BYPASS) == CacheMode.ENABLED

    def test_with_prefix(self):
        assert _convert_cache_mode("CacheMode.ENABLED", CacheMode.BYPASS) == CacheMode.ENABLED

    def test_unknown_falls_back(self):
        assert _convert_cache_mode("nonexistent", CacheMode.BYPASS) == CacheMode.BYPASS


class TestBuildPageRunConfig:
    def test_defaults(self):
        config = build_page_run_config()
        assert isinstance(config, CrawlerRunConfig)
        assert config.wait_until == "domcontentloaded"
        assert config.delay_before_return_html == 0.5
        assert config.cache_mode == CacheMode.BYPASS

    def test_overrides(self):
        config = build_page_run_config(
            PageLoadOverrides(
                wait_until="networkidle",
                delay_before_return_html=2.0,
                wait_for="css:.jobs-description__content",
                cache_mode="enabled",
            )
        )
        assert config.wait_until == "networkidle"
        assert config.delay_before_return_html == 2.0
        assert config.wait_for == "css:.jobs-description__content"
        assert config.cache_mode == CacheMode.ENABLED

    def test_empty_overrides_keep_defaults(self):
        config = build_page_run_config(PageLoadOverrides())
        assert config.wait_until == "domcontentloaded"
        assert config.cache_mode == CacheMode.BYPASS
