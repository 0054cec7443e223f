"""Tests for dashboard state transitions and session lifecycle."""

from __future__ import annotations

import asyncio
from datetime import date, timezone
from typing import Callable, List, TypeVar

from datastore.realtime_store import (
    CONTROL_PATH,
    DATA_PATH,
    LAST_SEEN_PATH,
    SOIL_HISTORY_PATH,
    RealtimeStore,
)
from models.records import ControlState, LivenessState, LivenessStatus, SensorReadings
from services.dashboard import DashboardSession, DashboardState, apply_liveness
from services.forecast import ForecastService

T = 1_700_000_000_000
R = TypeVar("R")


class FakeClock:
    def __init__(self, now: int = T) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _session(store: RealtimeStore, clock: FakeClock, history_mode: str = "snapshot") -> DashboardSession:
    forecast = ForecastService(client=None, city="Indore,IN", tz=timezone.utc, today=date(2024, 1, 1))
    return DashboardSession(
        store=store,
        forecast_service=forecast,
        tz=timezone.utc,
        history_mode=history_mode,
        clock=clock,
    )


def _run(session: DashboardSession, body: Callable[[DashboardSession], R]) -> R:
    async def scenario() -> R:
        async with session:
            return body(session)

    return asyncio.run(scenario())


def test_start_subscribes_and_loads_demo_forecast() -> None:
    store = RealtimeStore()

    def body(session: DashboardSession) -> DashboardState:
        assert store.listener_count() == 4
        assert session.poller.running
        return session.state

    state = _run(_session(store, FakeClock()), body)

    assert state.forecast_source == "demo"
    assert len(state.forecast) == 5
    assert state.liveness.status is LivenessStatus.unknown
    assert state.readings == SensorReadings()


def test_close_releases_subscriptions_and_timer() -> None:
    store = RealtimeStore()
    session = _session(store, FakeClock())

    _run(session, lambda _session: None)

    assert store.listener_count() == 0
    assert session.subscription_count == 0
    assert not session.poller.running


def test_sensor_feed_updates_readings_and_drops_bad_fields() -> None:
    store = RealtimeStore()

    def body(session: DashboardSession) -> SensorReadings:
        store.set(DATA_PATH, {"temperature": 23.5, "humidity": "high", "soil": 41, "pumpStatus": "ON"})
        return session.state.readings

    readings = _run(_session(store, FakeClock()), body)

    assert readings == SensorReadings(temperature=23.5, humidity=None, soil=41.0, pump_status="ON")


def test_offline_tick_blanks_readings() -> None:
    store = RealtimeStore()
    clock = FakeClock()

    def body(session: DashboardSession) -> List[DashboardState]:
        store.set(DATA_PATH, {"temperature": 23.5, "humidity": 60, "soil": 41, "pumpStatus": "ON"})
        store.set(LAST_SEEN_PATH, T)
        online = session.state
        clock.now = T + 5001
        session._on_tick(clock.now)
        offline = session.state
        store.set(LAST_SEEN_PATH, T + 5500)
        recovered = session.state
        return [online, offline, recovered]

    online, offline, recovered = _run(_session(store, clock), body)

    assert online.liveness.is_online
    assert online.readings.soil == 41.0
    assert offline.liveness.status is LivenessStatus.offline
    assert offline.readings == SensorReadings(pump_status="OFF")
    assert recovered.liveness.is_online


def test_tick_without_last_seen_is_a_no_op() -> None:
    store = RealtimeStore()
    clock = FakeClock()

    def body(session: DashboardSession) -> DashboardState:
        store.set(DATA_PATH, {"soil": 41})
        session._on_tick(T + 60_000)
        return session.state

    state = _run(_session(store, clock), body)

    assert state.liveness.status is LivenessStatus.unknown
    assert state.readings.soil == 41.0


def test_history_snapshot_is_authoritative() -> None:
    store = RealtimeStore()
    store.set(SOIL_HISTORY_PATH, {str(T + i * 1000): 30 + i for i in range(20)})

    def body(session: DashboardSession) -> DashboardState:
        store.set(f"{SOIL_HISTORY_PATH}/{T + 20_000}", 99)
        return session.state

    state = _run(_session(store, FakeClock()), body)

    assert len(state.history) == 15
    assert state.history[0].timestamp == T + 6000
    assert state.history[-1].value == 99.0


def test_stream_mode_buffers_live_soil_readings() -> None:
    store = RealtimeStore()
    clock = FakeClock()

    def body(session: DashboardSession) -> DashboardState:
        assert store.listener_count() == 3
        for step in range(17):
            clock.now = T + step * 1000
            store.set(DATA_PATH, {"soil": float(step)})
        store.set(DATA_PATH, {"soil": "dry"})
        return session.state

    state = _run(_session(store, clock, history_mode="stream"), body)

    assert [sample.value for sample in state.history] == [float(v) for v in range(2, 17)]


def test_control_toggles_round_trip_through_store() -> None:
    store = RealtimeStore()
    store.set(CONTROL_PATH, {"auto": False, "manualPump": True})

    def body(session: DashboardSession) -> DashboardState:
        assert session.state.control == ControlState(auto=False, manual_pump=True)
        session.toggle_auto()
        return session.state

    state = _run(_session(store, FakeClock()), body)

    assert state.control == ControlState(auto=True, manual_pump=False)
    assert state.status_text == "Auto = ON, Manual Pump = OFF"
    assert store.get(CONTROL_PATH) == {"auto": True, "manualPump": False}


def test_apply_liveness_online_keeps_readings() -> None:
    state = DashboardState(readings=SensorReadings(soil=10.0))

    updated = apply_liveness(state, LivenessState(last_seen=T, status=LivenessStatus.online))

    assert updated.readings.soil == 10.0
    assert state.liveness.status is LivenessStatus.unknown
