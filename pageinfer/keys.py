"""Debounced modifier-key state for the page agent."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from .config import SessionTimings
from .timers import SingleSlotTimer

LOGGER = logging.getLogger(__name__)

DEFAULT_TRACKED_KEYS = frozenset({"Control", "Meta"})


class ModifierKeyTracker:
    """Turn raw key, click and focus events into pressed/released signals.

    A press is emitted at once. A release is emitted after
    ``release_debounce`` so a press-then-click is not cut short downstream;
    losing focus while pressed waits ``blur_release`` before releasing.
    All delayed releases share one timer slot, so a new press cancels any
    pending release.

    While the key is held, ``heartbeat`` is called every
    ``heartbeat_interval`` seconds and a click re-emits the pressed state.
    """

    def __init__(
        self,
        emit: Callable[[bool], None],
        timings: Optional[SessionTimings] = None,
        tracked_keys: Iterable[str] = DEFAULT_TRACKED_KEYS,
        heartbeat: Optional[Callable[[], None]] = None,
    ) -> None:
        self._emit = emit
        self._heartbeat = heartbeat
        self.timings = timings or SessionTimings()
        self.tracked_keys = frozenset(tracked_keys)
        self.pressed = False
        self._timer = SingleSlotTimer()
        self._heartbeat_timer = SingleSlotTimer()

    @property
    def release_pending(self) -> bool:
        return self._timer.pending

    @property
    def heartbeat_pending(self) -> bool:
        return self._heartbeat_timer.pending

    def on_key_down(self, key: str) -> None:
        if key not in self.tracked_keys:
            return
        self._timer.cancel()
        if self.pressed:
            return
        self.pressed = True
        self._emit(True)
        self._schedule_heartbeat()

    def on_key_up(self, key: str) -> None:
        if key not in self.tracked_keys:
            return
        self.pressed = False
        self._heartbeat_timer.cancel()
        self._timer.schedule(self.timings.release_debounce, self._emit, False)

    def on_click(self) -> None:
        if self.pressed:
            self._emit(True)

    def on_blur(self) -> None:
        if not self.pressed:
            return
        LOGGER.debug("Focus lost while pressed, delaying release")
        self._timer.schedule(self.timings.blur_release, self._release)

    def _release(self) -> None:
        self.pressed = False
        self._heartbeat_timer.cancel()
        self._emit(False)

    def _schedule_heartbeat(self) -> None:
        if self._heartbeat is None:
            return
        self._heartbeat_timer.schedule(self.timings.heartbeat_interval, self._beat)

    def _beat(self) -> None:
        if not self.pressed:
            return
        self._heartbeat()
        self._schedule_heartbeat()

    def close(self) -> None:
        self._timer.cancel()
        self._heartbeat_timer.cancel()
