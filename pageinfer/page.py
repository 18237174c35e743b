"""Host environment of a page context: location, markup, events."""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, DefaultDict, List

from .document import PageDocument

LOGGER = logging.getLogger(__name__)

READY_EVENT = "DOMContentLoaded"
KEY_DOWN = "keydown"
KEY_UP = "keyup"
BLUR = "blur"
CLICK = "click"

EventListener = Callable[..., Any]


class ReadyState(str, Enum):
    LOADING = "loading"
    INTERACTIVE = "interactive"
    COMPLETE = "complete"


class Page:
    """A loaded page that a :class:`~pageinfer.agent.PageAgent` lives in.

    ``READY_EVENT`` fires once, when the ready state first leaves
    ``loading``. Key, click and focus events are dispatched by whoever drives the
    page (a browser bridge, the CLI or tests).
    """

    def __init__(
        self,
        url: str,
        html: str = "",
        ready_state: ReadyState = ReadyState.COMPLETE,
    ) -> None:
        self.url = url
        self.html = html
        self._ready_state = ReadyState(ready_state)
        self._listeners: DefaultDict[str, List[EventListener]] = defaultdict(list)

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def is_ready(self) -> bool:
        return self._ready_state is not ReadyState.LOADING

    def set_ready_state(self, state: ReadyState) -> None:
        was_ready = self.is_ready
        self._ready_state = ReadyState(state)
        if not was_ready and self.is_ready:
            self.dispatch_event(READY_EVENT)

    def mark_ready(self) -> None:
        self.set_ready_state(ReadyState.INTERACTIVE)

    def add_event_listener(self, event: str, listener: EventListener) -> None:
        if listener not in self._listeners[event]:
            self._listeners[event].append(listener)

    def remove_event_listener(self, event: str, listener: EventListener) -> None:
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def dispatch_event(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener(*args)
            except Exception:
                LOGGER.exception("Listener for %s on %s failed", event, self.url)

    def key_down(self, key: str) -> None:
        self.dispatch_event(KEY_DOWN, key)

    def key_up(self, key: str) -> None:
        self.dispatch_event(KEY_UP, key)

    def click(self) -> None:
        self.dispatch_event(CLICK)

    def blur(self) -> None:
        self.dispatch_event(BLUR)

    def document(self) -> PageDocument:
        return PageDocument(self.url, self.html)
