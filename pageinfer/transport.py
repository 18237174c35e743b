"""In-process message ports between a page context and the coordinator.

A :class:`LocalPort` behaves like the host runtime's messaging primitive:
messages cross a serialization boundary (deep copy), are delivered on the
next loop iteration, and the receiving side may disappear at any time.
Failures use the same wording the host runtime uses so that callers can
classify them.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

LOGGER = logging.getLogger(__name__)

CONTEXT_INVALIDATED = "Extension context invalidated."
NO_RECEIVER = "Could not establish connection. Receiving end does not exist."
PORT_CLOSED = "The message port closed before a response was received."

DEFAULT_RESPONSE_TIMEOUT = 30.0


class TransportError(Exception):
    """Raised for any failure of the underlying message port."""


@dataclass(slots=True)
class Sender:
    """Identity of the port a message came from."""

    port_name: str
    tab_id: Optional[int] = None
    url: Optional[str] = None


Responder = Callable[[Any], None]
# listener(message, sender, respond) -> True keeps the port open for a later respond()
Listener = Callable[[Dict[str, Any], Sender, Responder], Optional[bool]]


class LocalPort:
    """One end of a connected port pair."""

    def __init__(
        self,
        name: str,
        *,
        manifest: Optional[Dict[str, Any]] = None,
        tab_id: Optional[int] = None,
        url: Optional[str] = None,
        response_timeout: float = DEFAULT_RESPONSE_TIMEOUT,
    ) -> None:
        self.name = name
        self.tab_id = tab_id
        self.url = url
        self.response_timeout = response_timeout
        self._manifest = dict(manifest or {})
        self._id = uuid.uuid4().hex
        self._valid = True
        self._peer: Optional[LocalPort] = None
        self._listeners: List[Listener] = []
        self._inflight: Set[asyncio.Future] = set()

    # ------------------------------------------------------------------
    # Runtime probes
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._valid

    def runtime_id(self) -> str:
        if not self._valid:
            raise TransportError(CONTEXT_INVALIDATED)
        return self._id

    def manifest(self) -> Dict[str, Any]:
        if not self._valid:
            raise TransportError(CONTEXT_INVALIDATED)
        return dict(self._manifest)

    def connect(self, peer: "LocalPort") -> None:
        self._peer = peer
        peer._peer = self

    def invalidate(self) -> None:
        """Tear this context down; in-flight requests to it fail."""
        if not self._valid:
            return
        self._valid = False
        self._listeners.clear()
        for future in list(self._inflight):
            _fail(future, PORT_CLOSED)
        LOGGER.debug("Port %s invalidated", self.name)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    def post(self, message: Dict[str, Any]) -> asyncio.Future:
        """Send ``message`` to the peer and return a future for its response.

        Raises :class:`TransportError` synchronously when this side is
        already invalidated; every other failure is delivered through the
        future.
        """
        if not self._valid:
            raise TransportError(CONTEXT_INVALIDATED)

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        payload = copy.deepcopy(message)
        sender = Sender(self.name, self.tab_id, self.url)

        peer = self._peer
        if peer is None:
            _fail(future, NO_RECEIVER)
            return future

        timeout = loop.call_later(self.response_timeout, _fail, future, PORT_CLOSED)
        future.add_done_callback(lambda _: timeout.cancel())
        loop.call_soon(peer._deliver, payload, sender, future)
        return future

    def _deliver(
        self, message: Dict[str, Any], sender: Sender, future: asyncio.Future
    ) -> None:
        if future.done():
            return
        if not self._valid or not self._listeners:
            _fail(future, NO_RECEIVER)
            return

        self._inflight.add(future)
        future.add_done_callback(self._inflight.discard)

        def respond(response: Any = None) -> None:
            if not self._valid:
                raise TransportError(CONTEXT_INVALIDATED)
            if future.done():
                raise TransportError(PORT_CLOSED)
            future.set_result(copy.deepcopy(response))

        keep_open = False
        for listener in list(self._listeners):
            try:
                if listener(message, sender, respond) is True:
                    keep_open = True
            except Exception:
                LOGGER.exception(
                    "Listener on %s raised for %r", self.name, message.get("action")
                )

        if not keep_open:
            _fail(future, PORT_CLOSED)

    def __repr__(self) -> str:
        state = "open" if self._valid else "invalidated"
        return f"LocalPort(name={self.name!r}, tab_id={self.tab_id!r}, {state})"


def _fail(future: asyncio.Future, message: str) -> None:
    if not future.done():
        future.set_exception(TransportError(message))


def create_port_pair(
    *,
    manifest: Optional[Dict[str, Any]] = None,
    tab_id: Optional[int] = None,
    url: Optional[str] = None,
    response_timeout: float = DEFAULT_RESPONSE_TIMEOUT,
) -> Tuple[LocalPort, LocalPort]:
    """Return connected ``(page_port, coordinator_port)``.

    Messages posted from the page port carry ``tab_id`` and ``url`` as
    their sender identity.
    """
    page = LocalPort(
        "page",
        manifest=manifest,
        tab_id=tab_id,
        url=url,
        response_timeout=response_timeout,
    )
    coordinator = LocalPort(
        "coordinator", manifest=manifest, response_timeout=response_timeout
    )
    page.connect(coordinator)
    return page, coordinator
