"""Device online/offline detection anchored on the server's last-seen stamp."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from models.records import LivenessState, LivenessStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_POLL_INTERVAL = 1.0


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


def evaluate(last_seen: Optional[int], now_ms: int, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> LivenessStatus:
    if last_seen is None:
        return LivenessStatus.unknown
    if now_ms - last_seen > timeout_ms:
        return LivenessStatus.offline
    return LivenessStatus.online


class LivenessMonitor:
    """Tracks the latest last-seen stamp and re-evaluates it on each tick."""

    def __init__(self, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.timeout_ms = timeout_ms
        self._state = LivenessState()

    @property
    def state(self) -> LivenessState:
        return self._state

    def observe(self, last_seen: Optional[int], now_ms: int) -> LivenessState:
        """Record a fresh stamp from the feed and evaluate immediately."""
        return self._transition(last_seen, now_ms)

    def tick(self, now_ms: int) -> LivenessState:
        return self._transition(self._state.last_seen, now_ms)

    def _transition(self, last_seen: Optional[int], now_ms: int) -> LivenessState:
        status = evaluate(last_seen, now_ms, self.timeout_ms)
        previous = self._state.status
        self._state = LivenessState(last_seen=last_seen, status=status)
        if status is not previous:
            elapsed = None if last_seen is None else now_ms - last_seen
            logger.info(
                "Device liveness changed to %s",
                status.value,
                extra={"status": status.value, "elapsed_ms": elapsed},
            )
        return self._state


class LivenessPoller:
    """Runs ``on_tick`` on a fixed period until stopped."""

    def __init__(
        self,
        on_tick: Callable[[int], None],
        interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self._on_tick = on_tick
        self.interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._on_tick(self._clock())
