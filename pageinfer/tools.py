"""Tool calls requested by the model: parsing, dispatch, result shaping."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from . import search as search_module
from .document import SourceRecord, ToolCall, ToolFailure, ToolResult

LOGGER = logging.getLogger(__name__)

WEB_SEARCH = "web_search"
DEFAULT_SEARCH_QUERY = "latest news"

WEB_SEARCH_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": WEB_SEARCH,
        "description": "Search the web for current information on a topic.",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query",
                }
            },
            "required": ["query"],
        },
    },
}

_SOURCE_LINE = re.compile(r"^\d+\.\s+(.*)")

SearchFunction = Callable[[str], Awaitable[str]]


class ToolCallError(Exception):
    """A tool call that cannot be executed."""


class ToolArgumentError(ToolCallError):
    """The argument string of a tool call is not a JSON object."""


class UnsupportedToolError(ToolCallError):
    """The model asked for a tool that is not registered."""


def parse_tool_call(raw: Union[ToolCall, Dict[str, Any], None]) -> ToolCall:
    """Turn a ``{"id", "function": {"name", "arguments"}}`` mapping into a ToolCall.

    An empty or missing argument string means no arguments; anything else
    must decode to a JSON object.
    """
    if isinstance(raw, ToolCall):
        return raw
    if not raw:
        raise ToolCallError("Tool call is undefined or null")

    function = raw.get("function") if isinstance(raw, dict) else None
    if not isinstance(function, dict) or not function.get("name"):
        raise ToolCallError(f"Unsupported tool call format: {json.dumps(raw, default=str)}")

    arguments = function.get("arguments")
    args: Any = {}
    if isinstance(arguments, dict):
        args = arguments
    elif arguments:
        try:
            args = json.loads(arguments)
        except (TypeError, ValueError) as exc:
            raise ToolArgumentError(f"Failed to parse tool arguments: {exc}") from exc
    if not isinstance(args, dict):
        raise ToolArgumentError(
            f"Failed to parse tool arguments: expected an object, got {type(args).__name__}"
        )

    return ToolCall(name=str(function["name"]), args=args, call_id=raw.get("id"))


def parse_sources(text: str) -> List[SourceRecord]:
    """Best-effort citations: every ``N. something`` line becomes a source."""
    sources: List[SourceRecord] = []
    for line in (text or "").split("\n"):
        match = _SOURCE_LINE.match(line)
        if match:
            title = match.group(1)
            sources.append(SourceRecord(title=title, url=None, snippet=title))
    return sources


async def execute_tool_call(
    raw: Union[ToolCall, Dict[str, Any], None],
    search: Optional[SearchFunction] = None,
) -> Union[ToolResult, ToolFailure]:
    """Run one tool call; failures come back as a :class:`ToolFailure`."""
    try:
        call = parse_tool_call(raw)
        if call.name != WEB_SEARCH:
            raise UnsupportedToolError(f"Unsupported tool: {call.name}")

        query = str(call.args.get("query") or "").strip() or DEFAULT_SEARCH_QUERY
        search_fn = search or search_module.perform_web_search
        LOGGER.info("Running %s for %r", WEB_SEARCH, query)
        result = await search_fn(query)
        return ToolResult(name=WEB_SEARCH, result=result, sources=parse_sources(result))
    except Exception as exc:
        LOGGER.error("Error executing tool call: %s", exc)
        return ToolFailure(message=f"Error executing tool: {exc}")
