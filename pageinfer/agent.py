"""Page-side agent: handshake, extraction requests and key signals."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

from .channel import ResilientChannel
from .config import SessionTimings
from .dispatcher import ExtractorDispatcher
from .document import ExtractionOptions
from .keys import ModifierKeyTracker
from .page import BLUR, CLICK, KEY_DOWN, KEY_UP, READY_EVENT, Page
from .timers import SingleSlotTimer
from .transport import Responder, Sender

LOGGER = logging.getLogger(__name__)

ACK_MESSAGE = "Message received by content script"


class AgentState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LISTENER_ATTACHED = "listener_attached"
    AWAITING_DOCUMENT = "awaiting_document"
    READY = "ready"


@dataclass(slots=True)
class SessionState:
    """Per page-load state; never shared with other contexts."""

    initialized: bool = False
    tab_id: Optional[int] = None
    last_signal_value: bool = False
    last_signal_at: Optional[int] = None


class PageAgent:
    """Lives inside one page load and answers the coordinator.

    Call :meth:`start` once per page load from a running event loop. The
    inbound listener is attached before anything else, so requests that
    arrive while the document is still loading are answered.
    """

    def __init__(
        self,
        page: Page,
        channel: ResilientChannel,
        dispatcher: Optional[ExtractorDispatcher] = None,
        timings: Optional[SessionTimings] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.page = page
        self.channel = channel
        self.dispatcher = dispatcher or ExtractorDispatcher()
        self.timings = timings or SessionTimings()
        self.state = AgentState.UNINITIALIZED
        self.session = SessionState()
        self.setup_runs = 0
        self.keys = ModifierKeyTracker(
            self._send_key_state, self.timings, heartbeat=self._send_heartbeat
        )
        self._clock = clock
        self._ready_timer = SingleSlotTimer()
        self._reinit_timer = SingleSlotTimer()
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.initialize()
        if self.state is not AgentState.READY:
            self._reinit_timer.schedule(self.timings.reinit_failsafe, self._reinitialize)

    def initialize(self) -> None:
        if self.state is AgentState.READY:
            return

        if self.state is AgentState.UNINITIALIZED:
            self.channel.transport.add_listener(self._on_message)
            self.state = AgentState.LISTENER_ATTACHED

        if self.page.is_ready:
            self._setup()
            return

        if self.state is not AgentState.AWAITING_DOCUMENT:
            self.state = AgentState.AWAITING_DOCUMENT
            self.page.add_event_listener(READY_EVENT, self._setup)
            self._ready_timer.schedule(self.timings.ready_failsafe, self._force_ready)

    def _force_ready(self) -> None:
        if self.state is not AgentState.READY:
            LOGGER.info("Ready event not seen for %s, continuing setup", self.page.url)
        self._setup()

    def _reinitialize(self) -> None:
        if self.state is AgentState.READY:
            return
        LOGGER.warning("Agent for %s not ready, re-initializing", self.page.url)
        self.initialize()

    def _setup(self) -> None:
        if self.state is AgentState.READY:
            return
        self.state = AgentState.READY
        self.session.initialized = True
        self.setup_runs += 1
        self._ready_timer.cancel()
        self._reinit_timer.cancel()
        self.page.remove_event_listener(READY_EVENT, self._setup)

        self.page.add_event_listener(KEY_DOWN, self.keys.on_key_down)
        self.page.add_event_listener(KEY_UP, self.keys.on_key_up)
        self.page.add_event_listener(CLICK, self.keys.on_click)
        self.page.add_event_listener(BLUR, self.keys.on_blur)

        self.channel.send(
            {
                "action": "contentScriptInitialized",
                "url": self.page.url,
                "timestamp": self._now(),
            }
        )
        self._spawn(self._fetch_tab_id())
        self._send_key_state(False)
        LOGGER.debug("Agent ready on %s", self.page.url)

    def close(self) -> None:
        """Detach from the page and the port at the end of the page load."""
        self._ready_timer.cancel()
        self._reinit_timer.cancel()
        self.keys.close()
        self.page.remove_event_listener(READY_EVENT, self._setup)
        self.page.remove_event_listener(KEY_DOWN, self.keys.on_key_down)
        self.page.remove_event_listener(KEY_UP, self.keys.on_key_up)
        self.page.remove_event_listener(CLICK, self.keys.on_click)
        self.page.remove_event_listener(BLUR, self.keys.on_blur)
        self.channel.transport.remove_listener(self._on_message)
        for task in list(self._tasks):
            task.cancel()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def _fetch_tab_id(self) -> None:
        response = await self.channel.request({"action": "getTabId"}, log_in_dev=False)
        tab_id = response.get("tabId") if isinstance(response, dict) else None
        if isinstance(tab_id, int):
            self.session.tab_id = tab_id
        else:
            LOGGER.debug("Tab id unavailable for %s: %s", self.page.url, response)

    def _send_key_state(self, pressed: bool, heartbeat: bool = False) -> None:
        self.session.last_signal_value = pressed
        self.session.last_signal_at = self._now()
        self.channel.send(
            {
                "action": "ctrlKeyState",
                "isPressed": pressed,
                "isHeartbeat": heartbeat,
                "timestamp": self.session.last_signal_at,
                "tabId": self.session.tab_id,
            },
            log_in_dev=False,
        )

    def _send_heartbeat(self) -> None:
        self._send_key_state(True, heartbeat=True)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def _on_message(self, message: Dict[str, Any], sender: Sender, respond: Responder) -> bool:
        try:
            reply = self.handle_message(message)
        except Exception as exc:
            LOGGER.error("Failed to handle %r: %s", message, exc)
            reply = {"success": False, "error": str(exc)}
        self.channel.respond(respond, reply)
        return False

    def handle_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        action = message.get("action") if isinstance(message, dict) else None
        if action == "scrapeContent":
            return self._scrape(message)
        if action == "ping":
            return {"pong": True, "initialized": True}
        return {"success": True, "message": ACK_MESSAGE}

    def _scrape(self, message: Dict[str, Any]) -> Dict[str, Any]:
        options = ExtractionOptions.from_payload(
            message.get("options") or message.get("payload")
        )
        try:
            content = self.dispatcher.extract_current_page(self.page.document(), options)
        except Exception as exc:
            LOGGER.error("Scraping %s failed: %s", self.page.url, exc)
            return {
                "error": f"Error scraping content: {exc}",
                "content": f"Failed to extract content from {self.page.url}. {exc}",
            }
        return {"content": content}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return int(self._clock() * 1000)

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
