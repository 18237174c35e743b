"""Shared fixtures for the pageinfer test suite."""

from __future__ import annotations

import pytest

from pageinfer.config import SessionTimings

_ENV_VARS = (
    "OPENAI_API_KEY",
    "PAGEINFER_MODEL",
    "PAGEINFER_API_BASE",
    "PAGEINFER_DEV_MODE",
    "PAGEINFER_AUTH_STORAGE_STATE",
    "PAGEINFER_AUTH_COOKIES_FILE",
    "SEARXNG_URL",
    "SEARXNG_USERNAME",
    "SEARXNG_PASSWORD",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fast_timings() -> SessionTimings:
    return SessionTimings(
        ready_failsafe=0.05,
        reinit_failsafe=0.1,
        release_debounce=0.01,
        blur_release=0.05,
    )

