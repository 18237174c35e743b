"""Coordinator side: tab registry, page relay, question answering.

The coordinator owns one port per attached tab. Pages talk to it through
``getTabId``, ``contentScriptInitialized`` and ``ctrlKeyState``; callers
use :meth:`Coordinator.scrape_tab` and :meth:`Coordinator.ask`.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .agent import PageAgent
from .channel import ResilientChannel
from .config import AssistantSettings, SessionTimings
from .credentials import EnvCredentialStore, MissingCredentialError
from .dispatcher import ExtractorDispatcher
from .document import ExtractionOptions
from .inference import answer_question
from .llm import ChatClient
from .page import Page
from .prompts import detect_website_type
from .tools import SearchFunction
from .transport import (
    DEFAULT_RESPONSE_TIMEOUT,
    LocalPort,
    Responder,
    Sender,
    TransportError,
    create_port_pair,
)

LOGGER = logging.getLogger(__name__)

UNSUPPORTED_SCHEMES = ("chrome://", "chrome-extension://", "edge://")

NO_TAB = "No active tab found"
UNSUPPORTED_PAGE = "This page is not supported"
NO_RESPONSE = (
    "No response received from page. The content script may not be properly initialized."
)
INVALID_RESPONSE = "Invalid response from page. The page content could not be extracted."
ACK_MESSAGE = "Message received by background script"

ClientFactory = Callable[[str, AssistantSettings], ChatClient]


def _default_client(api_key: str, settings: AssistantSettings) -> ChatClient:
    return ChatClient(api_key, base_url=settings.api_base)


def base_domain(url: Optional[str]) -> str:
    """Host of ``url`` without a leading ``www.``; placeholders for bad input."""
    if not url:
        return "unknown-domain"
    if not isinstance(url, str):
        return "invalid-url-type"
    if "://" not in url:
        if "." in url and " " not in url:
            return url
        return "invalid-url-format"
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return "parse-error"
    if host.startswith("www."):
        host = host[4:]
    return host or "parse-error"


@dataclass
class TabRecord:
    tab_id: int
    url: str
    port: LocalPort
    channel: ResilientChannel
    ready: bool = False
    modifier_pressed: bool = False
    modifier_updated_at: Optional[int] = None


@dataclass(slots=True)
class ChatTurn:
    role: str
    content: str
    timestamp: float = field(default_factory=time.time)


class Coordinator:
    """Privileged side of every page session."""

    def __init__(
        self,
        *,
        credentials: Optional[EnvCredentialStore] = None,
        settings: Optional[AssistantSettings] = None,
        client_factory: ClientFactory = _default_client,
        search: Optional[SearchFunction] = None,
        manifest: Optional[Dict[str, Any]] = None,
        dev_mode: Optional[bool] = None,
        response_timeout: float = DEFAULT_RESPONSE_TIMEOUT,
    ) -> None:
        self.credentials = credentials or EnvCredentialStore()
        self.settings = settings or AssistantSettings.from_env()
        self.manifest = dict(manifest or {})
        self.dev_mode = dev_mode
        self.response_timeout = response_timeout
        self._client_factory = client_factory
        self._search = search
        self._tabs: Dict[int, TabRecord] = {}
        self._histories: Dict[Tuple[int, str], List[ChatTurn]] = {}
        self._tab_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Tab registry
    # ------------------------------------------------------------------

    def attach_tab(self, tab_id: int, url: str) -> LocalPort:
        """Register a tab and return the port its page agent should use."""
        self.detach_tab(tab_id)
        page_port, own_port = create_port_pair(
            manifest=self.manifest,
            tab_id=tab_id,
            url=url,
            response_timeout=self.response_timeout,
        )
        own_port.add_listener(self._on_message)
        self._tabs[tab_id] = TabRecord(
            tab_id=tab_id,
            url=url,
            port=own_port,
            channel=ResilientChannel(own_port, self.dev_mode),
        )
        LOGGER.debug("Attached tab %s (%s)", tab_id, url)
        return page_port

    def detach_tab(self, tab_id: int) -> None:
        record = self._tabs.pop(tab_id, None)
        if record is not None:
            record.port.invalidate()

    def tab(self, tab_id: int) -> Optional[TabRecord]:
        return self._tabs.get(tab_id)

    def open_page(
        self,
        page: Page,
        *,
        dispatcher: Optional[ExtractorDispatcher] = None,
        timings: Optional[SessionTimings] = None,
    ) -> Tuple[int, PageAgent]:
        """Attach a new tab for ``page`` and start its agent.

        Must be called from a running event loop.
        """
        tab_id = next(self._tab_ids)
        while tab_id in self._tabs:
            tab_id = next(self._tab_ids)
        port = self.attach_tab(tab_id, page.url)
        agent = PageAgent(
            page,
            ResilientChannel(port, self.dev_mode),
            dispatcher=dispatcher,
            timings=timings,
        )
        agent.start()
        return tab_id, agent

    # ------------------------------------------------------------------
    # Inbound messages from pages
    # ------------------------------------------------------------------

    def _on_message(self, message: Dict[str, Any], sender: Sender, respond: Responder) -> bool:
        try:
            reply = self.handle_message(message, sender)
        except Exception as exc:
            LOGGER.error("Failed to handle %r: %s", message, exc)
            reply = {"success": False, "error": str(exc)}
        record = self._tabs.get(sender.tab_id) if sender.tab_id is not None else None
        if record is None:
            LOGGER.warning("Message %r from unknown tab %s", message, sender.tab_id)
            try:
                respond(reply)
            except TransportError as exc:
                LOGGER.debug("Could not answer unknown tab: %s", exc)
            return False
        record.channel.respond(respond, reply)
        return False

    def handle_message(self, message: Dict[str, Any], sender: Sender) -> Dict[str, Any]:
        action = message.get("action") if isinstance(message, dict) else None

        if action == "getTabId":
            if sender.tab_id is None:
                return {"error": "Unable to determine tab ID"}
            return {"tabId": sender.tab_id}

        if action == "contentScriptInitialized":
            record = self._tabs.get(sender.tab_id)
            if record is not None:
                record.ready = True
                record.url = message.get("url") or record.url
            LOGGER.debug("Page agent ready in tab %s", sender.tab_id)
            return {"success": True}

        if action in ("ctrlKeyState", "ctrlKeyPressed"):
            tab_id = message.get("tabId")
            if tab_id is None:
                tab_id = sender.tab_id
            record = self._tabs.get(tab_id)
            if record is not None:
                record.modifier_pressed = bool(message.get("isPressed"))
                record.modifier_updated_at = message.get("timestamp")
            return {"success": True}

        return {"success": True, "message": ACK_MESSAGE}

    # ------------------------------------------------------------------
    # Caller-facing operations
    # ------------------------------------------------------------------

    async def scrape_tab(
        self, tab_id: int, options: Optional[ExtractionOptions] = None
    ) -> Dict[str, Any]:
        record = self._tabs.get(tab_id)
        if record is None:
            return {"error": NO_TAB}
        if not record.url or record.url.startswith(UNSUPPORTED_SCHEMES):
            return {"error": UNSUPPORTED_PAGE}

        options = options or ExtractionOptions()
        response = await record.channel.request(
            {
                "action": "scrapeContent",
                "options": {
                    "includeMetadata": options.include_metadata,
                    "includeLinks": options.include_links,
                },
            }
        )
        if not isinstance(response, dict):
            return {"error": INVALID_RESPONSE}
        if response.get("success") is False and response.get("error"):
            return {"error": f"Error communicating with page: {response['error']}"}
        if "content" not in response:
            return {"error": NO_RESPONSE}
        if not response["content"]:
            return {"error": INVALID_RESPONSE}

        result = {
            "content": response["content"],
            "websiteType": detect_website_type(response["content"], record.url).type,
        }
        if response.get("error"):
            result["warning"] = response["error"]
        return result

    async def ask(
        self, tab_id: int, question: Optional[str] = None, *, model: Optional[str] = None
    ) -> Dict[str, Any]:
        try:
            api_key = self.credentials.require()
        except MissingCredentialError as exc:
            return {"error": str(exc)}

        record = self._tabs.get(tab_id)
        if record is None:
            return {"error": NO_TAB}
        scraped = await self.scrape_tab(tab_id)
        if "error" in scraped:
            return {"error": scraped["error"]}

        url = record.url
        client = self._client_factory(api_key, self.settings)
        answer = await answer_question(
            client,
            scraped["content"],
            question,
            url,
            settings=self.settings,
            model=model,
            search=self._search,
        )
        if answer.ok:
            self._remember(tab_id, url, question or "", answer.content)
        return answer.to_dict()

    def set_api_key(self, value: Optional[str]) -> Dict[str, Any]:
        self.credentials.set(value)
        return {"success": True}

    def get_api_key(self) -> Dict[str, Any]:
        return {"apiKey": self.credentials.get() or ""}

    # ------------------------------------------------------------------
    # Chat history
    # ------------------------------------------------------------------

    def _remember(self, tab_id: int, url: str, question: str, answer: str) -> None:
        turns = self._histories.setdefault((tab_id, base_domain(url)), [])
        turns.append(ChatTurn("user", question))
        turns.append(ChatTurn("assistant", answer))

    def chat_history(self, tab_id: int, url: str) -> List[ChatTurn]:
        return list(self._histories.get((tab_id, base_domain(url)), []))

    def clear_chat_history(self, tab_id: int, url: str) -> None:
        self._histories.pop((tab_id, base_domain(url)), None)

    def close(self) -> None:
        for tab_id in list(self._tabs):
            self.detach_tab(tab_id)
