"""API key storage for the coordinator."""

from __future__ import annotations

import logging
import os
from typing import Optional

LOGGER = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"
MISSING_API_KEY = "API key not found. Please set your API key in the extension options."


class MissingCredentialError(Exception):
    """No API key is configured."""

    def __init__(self, message: str = MISSING_API_KEY):
        super().__init__(message)


class EnvCredentialStore:
    """A single API key: an explicitly set value wins over the environment.

    Setting an empty value clears the key without falling back to the
    environment.
    """

    def __init__(self, env_var: str = API_KEY_ENV, value: Optional[str] = None) -> None:
        self.env_var = env_var
        self._value = value

    def get(self) -> Optional[str]:
        value = self._value if self._value is not None else os.getenv(self.env_var)
        value = (value or "").strip()
        return value or None

    def set(self, value: Optional[str]) -> None:
        self._value = (value or "").strip()
        LOGGER.info("API key %s", "updated" if self._value else "cleared")

    def require(self) -> str:
        value = self.get()
        if not value:
            raise MissingCredentialError()
        return value
