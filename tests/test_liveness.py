"""Unit tests for device liveness detection."""

from __future__ import annotations

import asyncio
import logging

from models.records import LivenessStatus
from services.liveness import LivenessMonitor, LivenessPoller, evaluate

T = 1_700_000_000_000


def test_evaluate_threshold() -> None:
    assert evaluate(T, T + 4999) is LivenessStatus.online
    assert evaluate(T, T + 5000) is LivenessStatus.online
    assert evaluate(T, T + 5001) is LivenessStatus.offline
    assert evaluate(None, T) is LivenessStatus.unknown


def test_monitor_starts_unknown_and_evaluates_first_observation() -> None:
    monitor = LivenessMonitor()
    assert monitor.state.status is LivenessStatus.unknown

    state = monitor.observe(T, now_ms=T + 10_000)

    assert state.status is LivenessStatus.offline
    assert state.last_seen == T
    assert not state.is_online


def test_tick_goes_offline_and_recovers_with_fresher_stamp() -> None:
    monitor = LivenessMonitor()
    monitor.observe(T, now_ms=T + 100)
    assert monitor.state.is_online

    assert monitor.tick(T + 4999).status is LivenessStatus.online
    assert monitor.tick(T + 5001).status is LivenessStatus.offline
    # Stays offline until the feed delivers a new stamp.
    assert monitor.tick(T + 9000).status is LivenessStatus.offline

    monitor.observe(T + 8500, now_ms=T + 9000)
    assert monitor.tick(T + 10_000).status is LivenessStatus.online


def test_cleared_stamp_returns_to_unknown() -> None:
    monitor = LivenessMonitor()
    monitor.observe(T, now_ms=T)

    assert monitor.observe(None, now_ms=T + 1).status is LivenessStatus.unknown


def test_custom_timeout() -> None:
    monitor = LivenessMonitor(timeout_ms=1000)
    monitor.observe(T, now_ms=T)

    assert monitor.tick(T + 1001).status is LivenessStatus.offline


def test_transitions_are_logged(caplog) -> None:
    monitor = LivenessMonitor()

    with caplog.at_level(logging.INFO, logger="services.liveness"):
        monitor.observe(T, now_ms=T)
        monitor.tick(T + 1000)
        monitor.tick(T + 6000)

    statuses = [getattr(record, "status", None) for record in caplog.records]
    assert statuses == ["online", "offline"]


def test_poller_ticks_until_stopped() -> None:
    ticks: list[int] = []

    async def scenario() -> bool:
        poller = LivenessPoller(ticks.append, interval=0.01, clock=lambda: 42)
        poller.start()
        assert poller.running
        await asyncio.sleep(0.08)
        await poller.stop()
        count = len(ticks)
        await asyncio.sleep(0.03)
        return len(ticks) == count and not poller.running

    stopped_cleanly = asyncio.run(scenario())

    assert ticks and set(ticks) == {42}
    assert stopped_cleanly
