"""Live dashboard state and the session that keeps it current."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import timezone, tzinfo
from functools import lru_cache
from threading import Lock
from typing import Any, Callable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from datastore.realtime_store import (
    CONTROL_PATH,
    DATA_PATH,
    LAST_SEEN_PATH,
    SOIL_HISTORY_PATH,
    RealtimeStore,
    Subscription,
    build_default_store,
)
from models.records import (
    ControlState,
    ForecastDay,
    LivenessState,
    LivenessStatus,
    Sample,
    SensorReadings,
)
from services.control import ControlChannel
from services.decoder import decode_control, decode_last_seen, decode_sensor_data
from services.forecast import ForecastResult, ForecastService, WeatherClient
from services.history import HistoryBuffer
from services.liveness import LivenessMonitor, LivenessPoller, wall_clock_ms
from settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardState:
    """Immutable snapshot of everything the dashboard renders."""

    readings: SensorReadings = field(default_factory=SensorReadings)
    control: ControlState = field(default_factory=ControlState)
    liveness: LivenessState = field(default_factory=LivenessState)
    history: Tuple[Sample, ...] = ()
    forecast: Tuple[ForecastDay, ...] = ()
    forecast_source: Optional[str] = None
    status_text: str = ""


def apply_sensor_data(state: DashboardState, readings: SensorReadings) -> DashboardState:
    return replace(state, readings=readings)


def apply_control(state: DashboardState, control: ControlState) -> DashboardState:
    return replace(state, control=control)


def apply_liveness(state: DashboardState, liveness: LivenessState) -> DashboardState:
    if liveness.status is LivenessStatus.offline:
        # Stale readings must never be shown as current.
        return replace(state, liveness=liveness, readings=SensorReadings.offline())
    return replace(state, liveness=liveness)


def apply_history(state: DashboardState, samples: List[Sample]) -> DashboardState:
    return replace(state, history=tuple(samples))


def apply_forecast(state: DashboardState, result: ForecastResult) -> DashboardState:
    return replace(state, forecast=tuple(result.days), forecast_source=result.source)


def apply_status_text(state: DashboardState, text: str) -> DashboardState:
    return replace(state, status_text=text)


class DashboardSession:
    """Owns the store subscriptions, the liveness poll and the forecast load.

    Use as an async context manager, or pair ``start`` with ``close``; closing
    releases every subscription and stops the poll task.
    """

    def __init__(
        self,
        store: RealtimeStore,
        forecast_service: ForecastService,
        tz: tzinfo = timezone.utc,
        liveness_timeout_ms: int = 5000,
        poll_interval: float = 1.0,
        history_capacity: int = 15,
        history_mode: str = "snapshot",
        clock: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self.store = store
        self.forecast_service = forecast_service
        self.tz = tz
        self.history_mode = history_mode
        self.control = ControlChannel(store)
        self.monitor = LivenessMonitor(timeout_ms=liveness_timeout_ms)
        self.poller = LivenessPoller(self._on_tick, interval=poll_interval, clock=clock)
        self._clock = clock
        self._history = HistoryBuffer(history_capacity)
        self._subscriptions: List[Subscription] = []
        self._state = DashboardState()
        self._lock = Lock()

    @property
    def state(self) -> DashboardState:
        with self._lock:
            return self._state

    @property
    def subscription_count(self) -> int:
        return sum(1 for subscription in self._subscriptions if subscription.active)

    async def start(self) -> None:
        self._subscriptions = [
            self.store.subscribe(DATA_PATH, self._on_sensor_data),
            self.store.subscribe(CONTROL_PATH, self._on_control),
            self.store.subscribe(LAST_SEEN_PATH, self._on_last_seen),
        ]
        if self.history_mode == "snapshot":
            self._subscriptions.append(
                self.store.subscribe(SOIL_HISTORY_PATH, self._on_history_snapshot)
            )
        self.poller.start()
        result = await self.forecast_service.load()
        self._update(apply_forecast, result)

    async def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        await self.poller.stop()
        await self.forecast_service.close()

    async def __aenter__(self) -> "DashboardSession":
        await self.start()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.close()

    def toggle_auto(self) -> ControlState:
        updated = self.control.toggle_auto()
        self._update(apply_status_text, updated.describe())
        return updated

    def toggle_manual(self) -> ControlState:
        updated = self.control.toggle_manual()
        self._update(apply_status_text, updated.describe())
        return updated

    def _update(self, transition: Callable[..., DashboardState], *args: Any) -> None:
        with self._lock:
            self._state = transition(self._state, *args)

    def _on_sensor_data(self, raw: Any) -> None:
        with self._lock:
            previous = self._state.readings.pump_status
        readings = decode_sensor_data(raw, previous_pump_status=previous).value
        self._update(apply_sensor_data, readings)
        if self.history_mode == "stream" and readings.soil is not None:
            self._history.append(self._clock(), readings.soil)
            self._update(apply_history, self._history.samples())

    def _on_control(self, raw: Any) -> None:
        control = decode_control(raw).value
        self.control.apply_remote(control)
        self._update(apply_control, control)

    def _on_last_seen(self, raw: Any) -> None:
        last_seen = decode_last_seen(raw).value
        liveness = self.monitor.observe(last_seen, self._clock())
        self._update(apply_liveness, liveness)

    def _on_history_snapshot(self, raw: Any) -> None:
        if raw is not None and not isinstance(raw, dict):
            logger.warning(
                "Ignoring malformed history snapshot",
                extra={"path": SOIL_HISTORY_PATH, "invalid_value": type(raw).__name__},
            )
            raw = None
        self._history = HistoryBuffer.from_snapshot(raw, self._history.capacity)
        self._update(apply_history, self._history.samples())

    def _on_tick(self, now_ms: int) -> None:
        if self.monitor.state.last_seen is None:
            return
        self._update(apply_liveness, self.monitor.tick(now_ms))


def resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown display timezone, falling back to UTC", extra={"reason": name})
        return timezone.utc


@lru_cache
def build_default_session() -> DashboardSession:
    """Factory that wires the session from environment settings."""
    settings = get_settings()
    tz = resolve_timezone(settings.display_timezone)
    client = (
        WeatherClient(api_key=settings.weather_api_key, base_url=settings.weather_base_url)
        if settings.weather_api_key
        else None
    )
    return DashboardSession(
        store=build_default_store(),
        forecast_service=ForecastService(client=client, city=settings.weather_city, tz=tz),
        tz=tz,
        liveness_timeout_ms=settings.liveness_timeout_ms,
        poll_interval=settings.liveness_poll_interval,
        history_capacity=settings.history_capacity,
        history_mode=settings.history_mode,
    )
