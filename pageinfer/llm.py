"""Minimal OpenAI-compatible chat completions client over httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .config import DEFAULT_API_BASE

LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60.0


class CompletionError(Exception):
    """Raised when the completion endpoint fails or answers nonsense."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass(slots=True)
class Completion:
    """The first choice of a chat completion response."""

    content: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    message: Dict[str, Any] = field(default_factory=dict)
    model: str = ""


class ChatClient:
    """POST ``{model, messages, temperature, max_tokens}`` with a bearer key."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_API_BASE,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )

    async def complete(
        self,
        *,
        model: str,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_tokens: int,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Completion:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        try:
            async with self._client() as client:
                response = await client.post("/chat/completions", json=payload)
        except httpx.RequestError as exc:
            raise CompletionError(f"Request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise CompletionError(
                _error_message(response), status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise CompletionError("Failed to parse the API response") from exc

        return _first_choice(data, model)


def _error_message(response: httpx.Response) -> str:
    try:
        envelope = response.json()
    except ValueError:
        envelope = None
    if isinstance(envelope, dict):
        error = envelope.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"HTTP {response.status_code}"


def _first_choice(data: Any, model: str) -> Completion:
    try:
        message = data["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as exc:
        raise CompletionError("Invalid API response") from exc
    if not isinstance(message, dict):
        raise CompletionError("Invalid API response")

    LOGGER.debug("Completion finish_reason=%s", data["choices"][0].get("finish_reason"))
    return Completion(
        content=(message.get("content") or "").strip(),
        tool_calls=list(message.get("tool_calls") or []),
        message=message,
        model=str(data.get("model") or model),
    )
