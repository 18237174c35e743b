"""Answer a question about page content, running web searches on request."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import AssistantSettings
from .document import SourceRecord, ToolResult
from .llm import ChatClient, CompletionError
from .prompts import WebsiteType, detect_website_type
from .tools import WEB_SEARCH_TOOL, SearchFunction, execute_tool_call

LOGGER = logging.getLogger(__name__)

DEFAULT_QUESTION = "What is on this page?"
TRUNCATION_MARKER = "... (content truncated due to length)"
EMPTY_REPLY = "Received an empty response with no tool calls. Please try again."
GENERIC_FAILURE = "Error getting inference from OpenAI API"
MODEL_UNAVAILABLE_HINT = "does not exist or you do not have access to it"


@dataclass(slots=True)
class Answer:
    content: str = ""
    sources: List[SourceRecord] = field(default_factory=list)
    model: str = ""
    website_type: str = "general"
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.error:
            return {"error": self.error}
        return {
            "answer": self.content,
            "sources": [source.to_dict() for source in self.sources],
            "model": self.model,
            "websiteType": self.website_type,
        }


def truncate_content(content: str, limit: int) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def model_supports_tools(model: str) -> bool:
    return "gpt-4" in model


def build_messages(
    content: str, question: Optional[str], url: str, website: WebsiteType
) -> List[Dict[str, Any]]:
    question = question or DEFAULT_QUESTION
    return [
        {"role": "system", "content": website.system_prompt},
        {
            "role": "user",
            "content": (
                f"Here is the content of a webpage (URL: {url}):\n\n{content}\n\n"
                f"Based on this content, please answer the following question: {question}"
            ),
        },
    ]


async def answer_question(
    client: ChatClient,
    content: str,
    question: Optional[str] = None,
    url: str = "",
    *,
    settings: Optional[AssistantSettings] = None,
    model: Optional[str] = None,
    search: Optional[SearchFunction] = None,
) -> Answer:
    """Ask the model once; if it requests tools, run them and ask again.

    Upstream failures are returned as ``Answer(error=...)``.
    """
    settings = settings or AssistantSettings.from_env()
    model = model or settings.model
    url = url or ""
    text = truncate_content(content or "", settings.max_content_chars)
    website = detect_website_type(text, url)
    messages = build_messages(text, question, url, website)
    tools = [WEB_SEARCH_TOOL] if model_supports_tools(model) else None
    LOGGER.info("Asking %s about %s (%s page)", model, url or "<unknown>", website.type)

    try:
        first = await client.complete(
            model=model,
            messages=messages,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            tools=tools,
        )
        if not first.tool_calls:
            if not first.content:
                return Answer(model=first.model, website_type=website.type, error=EMPTY_REPLY)
            return Answer(content=first.content, model=first.model, website_type=website.type)

        sources: List[SourceRecord] = []
        tool_messages: List[Dict[str, Any]] = []
        for raw_call in first.tool_calls:
            outcome = await execute_tool_call(raw_call, search=search)
            if isinstance(outcome, ToolResult):
                sources.extend(outcome.sources)
            tool_messages.append(
                {
                    "tool_call_id": raw_call.get("id") if isinstance(raw_call, dict) else None,
                    "role": "tool",
                    "content": json.dumps(outcome.to_dict()),
                }
            )

        LOGGER.info("Following up after %d tool call(s)", len(tool_messages))
        followup = await client.complete(
            model=model,
            messages=[*messages, first.message, *tool_messages],
            temperature=settings.followup_temperature,
            max_tokens=settings.followup_max_tokens,
        )
        if not followup.content:
            return Answer(
                sources=sources,
                model=followup.model,
                website_type=website.type,
                error=EMPTY_REPLY,
            )
        return Answer(
            content=followup.content,
            sources=sources,
            model=followup.model,
            website_type=website.type,
        )
    except CompletionError as exc:
        LOGGER.error("Completion failed: %s", exc)
        return Answer(model=model, website_type=website.type, error=_describe(exc, model))
    except Exception as exc:
        LOGGER.exception("Unexpected inference failure")
        return Answer(
            model=model, website_type=website.type, error=str(exc) or GENERIC_FAILURE
        )


def _describe(exc: CompletionError, model: str) -> str:
    message = str(exc)
    if MODEL_UNAVAILABLE_HINT in message:
        return f"Model {model} is not available. Please select a different model in settings."
    return message or GENERIC_FAILURE
