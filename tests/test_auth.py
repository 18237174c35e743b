"""Tests for the browser credential module."""

from __future__ import annotations

import json

import pytest

from pageinfer.auth import AuthConfig, build_browser_config, load_auth_from_env


class TestAuthConfig:
    """Tests for the AuthConfig dataclass."""

    def test_empty_config(self):
        assert AuthConfig().is_empty is True

    def test_cookies_not_empty(self):
        auth = AuthConfig(cookies=[{"name": "li_at", "value": "abc", "domain": ".linkedin.com"}])
        assert auth.is_empty is False

    def test_headers_not_empty(self):
        assert AuthConfig(headers={"Authorization": "Bearer xyz"}).is_empty is False

    def test_storage_state_not_empty(self):
        assert AuthConfig(storage_state="./state.json").is_empty is False

    def test_load_storage_state(self, tmp_path):
        state = {"cookies": [], "origins": []}
        path = tmp_path / "state.json"
        path.write_text(json.dumps(state), encoding="utf-8")

        assert AuthConfig(storage_state=str(path)).load_storage_state() == state

    def test_load_storage_state_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Storage state file not found"):
            AuthConfig(storage_state=str(tmp_path / "missing.json")).load_storage_state()

    def test_no_storage_state(self):
        assert AuthConfig().load_storage_state() is None


class TestBuildBrowserConfig:
    def test_none_auth(self):
        cfg = build_browser_config(None)
        assert cfg.headless is True

    def test_cookies_and_headers(self):
        cookies = [{"name": "li_at", "value": "abc", "domain": ".linkedin.com"}]
        cfg = build_browser_config(AuthConfig(cookies=cookies, headers={"X-Test": "1"}))
        assert cfg.cookies == cookies
        assert cfg.headers["X-Test"] == "1"

    def test_storage_state_loaded(self, tmp_path):
        state = {"cookies": [{"name": "a", "value": "b", "domain": "x"}], "origins": []}
        path = tmp_path / "state.json"
        path.write_text(json.dumps(state), encoding="utf-8")

        cfg = build_browser_config(AuthConfig(storage_state=str(path)))

        assert cfg.storage_state == state


class TestLoadAuthFromEnv:
    def test_no_env(self):
        assert load_auth_from_env() is None

    def test_storage_state_env(self, monkeypatch):
        monkeypatch.setenv("PAGEINFER_AUTH_STORAGE_STATE", "/tmp/state.json")
        auth = load_auth_from_env()
        assert auth.storage_state == "/tmp/state.json"
        assert auth.cookies is None

    def test_cookies_file_env(self, monkeypatch, tmp_path):
        cookies = [{"name": "li_at", "value": "abc", "domain": ".linkedin.com"}]
        path = tmp_path / "cookies.json"
        path.write_text(json.dumps(cookies), encoding="utf-8")
        monkeypatch.setenv("PAGEINFER_AUTH_COOKIES_FILE", str(path))

        assert load_auth_from_env().cookies == cookies

    def test_missing_cookies_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PAGEINFER_AUTH_COOKIES_FILE", str(tmp_path / "nope.json"))

        auth = load_auth_from_env()

        assert auth is not None
        assert auth.cookies is None
