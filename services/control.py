"""Auto/manual pump control backed by the shared control record."""

from __future__ import annotations

import logging
from dataclasses import replace
from threading import Lock
from typing import Optional

from datastore.realtime_store import CONTROL_PATH, RealtimeStore
from models.records import ControlState

logger = logging.getLogger(__name__)


class ManualControlLocked(Exception):
    """Raised when a manual pump toggle is attempted while auto mode is on."""


def toggle_auto(state: ControlState) -> ControlState:
    auto = not state.auto
    # Auto mode always supersedes manual control.
    return ControlState(auto=auto, manual_pump=False if auto else state.manual_pump)


def toggle_manual(state: ControlState) -> Optional[ControlState]:
    """Flip the manual pump, or ``None`` when auto mode rejects the toggle."""
    if state.auto:
        return None
    return replace(state, manual_pump=not state.manual_pump)


class ControlChannel:
    """Local view of the control record plus fire-and-forget writes."""

    def __init__(self, store: RealtimeStore, initial: Optional[ControlState] = None) -> None:
        self.store = store
        self._state = initial or ControlState()
        self._lock = Lock()

    @property
    def state(self) -> ControlState:
        with self._lock:
            return self._state

    def apply_remote(self, state: ControlState) -> None:
        with self._lock:
            self._state = state

    def toggle_auto(self) -> ControlState:
        with self._lock:
            self._state = toggle_auto(self._state)
            updated = self._state
        self._write(updated)
        return updated

    def toggle_manual(self) -> ControlState:
        with self._lock:
            updated = toggle_manual(self._state)
            if updated is None:
                logger.debug("Manual pump toggle rejected while auto mode is on")
                raise ManualControlLocked(
                    "Manual pump control is disabled while auto mode is on."
                )
            self._state = updated
        self._write(updated)
        return updated

    def _write(self, state: ControlState) -> None:
        # Both fields in one update so readers never see a half-written pair.
        self.store.update(CONTROL_PATH, state.to_record())
        logger.info(state.describe(), extra={"path": CONTROL_PATH})
