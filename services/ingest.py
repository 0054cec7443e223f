"""Device-side writes: what the irrigation rig pushes into the store."""

from __future__ import annotations

import logging
from typing import Optional

from datastore.realtime_store import (
    DATA_PATH,
    LAST_SEEN_PATH,
    SOIL_HISTORY_PATH,
    RealtimeStore,
)

logger = logging.getLogger(__name__)


class DeviceIngest:
    def __init__(self, store: RealtimeStore, history_retention: int = 200) -> None:
        self.store = store
        self.history_retention = history_retention

    def record(
        self,
        temperature: Optional[float],
        humidity: Optional[float],
        soil: Optional[float],
        pump_status: Optional[str],
    ) -> int:
        """Store one reading and return the server timestamp it was stamped with."""
        stamp = self.store.server_timestamp()
        self.store.update(
            DATA_PATH,
            {
                "temperature": temperature,
                "humidity": humidity,
                "soil": soil,
                "pumpStatus": pump_status,
            },
        )
        if soil is not None:
            self.store.set(f"{SOIL_HISTORY_PATH}/{stamp}", soil)
            self._prune_history()
        self.store.set(LAST_SEEN_PATH, stamp)
        logger.debug("Recorded device reading", extra={"path": DATA_PATH})
        return stamp

    def heartbeat(self) -> int:
        stamp = self.store.server_timestamp()
        self.store.set(LAST_SEEN_PATH, stamp)
        return stamp

    def _prune_history(self) -> None:
        history = self.store.get(SOIL_HISTORY_PATH) or {}
        excess = len(history) - self.history_retention
        if excess <= 0:
            return
        stale = sorted(history, key=lambda key: int(key) if key.isdigit() else -1)[:excess]
        self.store.update(SOIL_HISTORY_PATH, {key: None for key in stale})
