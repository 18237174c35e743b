"""Send/respond wrappers that survive the other context disappearing.

Teardown-class failures (the receiving context unloaded, the port closed
before a response) are expected during navigation and extension reloads.
They are reported to callbacks as ``{"error": ..., "success": False}`` and
only logged in development mode. Anything else is logged at ERROR.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
from typing import Any, Callable, Dict, Optional

from .transport import LocalPort, Responder

LOGGER = logging.getLogger(__name__)

TEARDOWN_ERRORS = (
    "Extension context invalidated",
    "Could not establish connection",
    "Receiving end does not exist",
    "The message port closed before a response was received",
)

CHANNEL_UNAVAILABLE = "Channel unavailable"

ResponseCallback = Callable[[Any], None]


def is_teardown_error(error: Any) -> bool:
    """True when ``error`` is one of the known benign teardown failures."""
    message = str(error or "")
    return any(marker in message for marker in TEARDOWN_ERRORS)


def detect_dev_mode(transport: LocalPort) -> bool:
    """Unpacked builds carry no ``update_url`` in their manifest.

    ``PAGEINFER_DEV_MODE`` overrides the probe. A failure while probing
    means the context is gone and counts as production.
    """
    override = (os.getenv("PAGEINFER_DEV_MODE") or "").strip().lower()
    if override:
        return override in {"1", "true", "yes", "on"}
    try:
        return not transport.manifest().get("update_url")
    except Exception:
        return False


def _action(message: Any) -> str:
    if isinstance(message, dict):
        return str(message.get("action") or "<no action>")
    return "<invalid message>"


class ResilientChannel:
    """Liveness-checked messaging over a :class:`LocalPort`."""

    def __init__(self, transport: LocalPort, dev_mode: Optional[bool] = None) -> None:
        self.transport = transport
        self.dev_mode = detect_dev_mode(transport) if dev_mode is None else dev_mode

    def is_valid(self) -> bool:
        try:
            return bool(self.transport.runtime_id())
        except Exception:
            return False

    def send(
        self,
        message: Dict[str, Any],
        on_response: Optional[ResponseCallback] = None,
        *,
        log_in_dev: bool = True,
    ) -> bool:
        """Post ``message``; return False if it could not be transmitted.

        ``on_response`` is called exactly once if, and only if, the message
        was transmitted.
        """
        if not self.is_valid():
            if self.dev_mode:
                LOGGER.debug("Channel invalid, not sending %s", _action(message))
            return False

        try:
            future = self.transport.post(message)
        except Exception as exc:
            if log_in_dev and self.dev_mode:
                LOGGER.warning("Failed to send %s: %s", _action(message), exc)
            return False

        future.add_done_callback(
            functools.partial(self._settle, _action(message), on_response, log_in_dev)
        )
        return True

    def _settle(
        self,
        action: str,
        on_response: Optional[ResponseCallback],
        log_in_dev: bool,
        future: asyncio.Future,
    ) -> None:
        if future.cancelled():
            payload: Any = {"error": "Request cancelled", "success": False}
        elif future.exception() is not None:
            error = str(future.exception())
            if is_teardown_error(error):
                if log_in_dev and self.dev_mode:
                    LOGGER.debug("Channel closed while sending %s: %s", action, error)
            else:
                LOGGER.error("Unexpected channel error for %s: %s", action, error)
            payload = {"error": error, "success": False}
        else:
            response = future.result()
            payload = response if response else {"success": True}

        if on_response is None:
            return
        try:
            on_response(payload)
        except Exception:
            LOGGER.exception("Response callback for %s failed", action)

    async def request(
        self, message: Dict[str, Any], *, log_in_dev: bool = True
    ) -> Any:
        """Awaitable :meth:`send`; always resolves to a response envelope."""
        loop = asyncio.get_running_loop()
        result: asyncio.Future = loop.create_future()

        def deliver(payload: Any) -> None:
            if not result.done():
                result.set_result(payload)

        if not self.send(message, deliver, log_in_dev=log_in_dev):
            return {"error": CHANNEL_UNAVAILABLE, "success": False}
        return await result

    def respond(self, responder: Responder, data: Any) -> bool:
        """Acknowledge an inbound message unless this context is gone."""
        if not self.is_valid():
            return False
        try:
            responder(data)
            return True
        except Exception as exc:
            if self.dev_mode:
                LOGGER.warning("Failed to send response: %s", exc)
            return False
