"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import date, tzinfo
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import LivenessStatus
from services.dashboard import DashboardState
from services.history import format_time_of_day


class ReadingsOut(BaseModel):
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil: Optional[float] = None
    pump_status: str
    pump_on: bool


class ControlOut(BaseModel):
    """Current auto/manual pump configuration."""

    auto: bool
    manual_pump: bool
    status_text: str = ""


class LivenessOut(BaseModel):
    status: LivenessStatus
    is_online: bool
    last_seen: Optional[int] = Field(
        default=None, description="Server timestamp (ms) of the device's last heartbeat."
    )


class HistoryPointOut(BaseModel):
    timestamp: int
    label: str
    value: float


class ForecastDayOut(BaseModel):
    day: date
    label: str
    min: float
    max: float


class ForecastOut(BaseModel):
    source: Optional[str] = Field(
        default=None, description="'live' when fetched from the provider, 'demo' otherwise."
    )
    days: List[ForecastDayOut] = Field(default_factory=list)


class DashboardOut(BaseModel):
    """Full dashboard snapshot."""

    liveness: LivenessOut
    readings: ReadingsOut
    control: ControlOut
    history: List[HistoryPointOut] = Field(default_factory=list)
    forecast: ForecastOut


class DeviceReadingIn(BaseModel):
    """Payload posted by the irrigation rig."""

    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil: Optional[float] = Field(default=None, ge=0, le=100)
    pump_status: Optional[str] = Field(default=None, alias="pumpStatus")

    model_config = {"populate_by_name": True}


class DeviceReadingAck(BaseModel):
    last_seen: int


class CredentialsIn(BaseModel):
    email: str
    password: str
    confirm_password: Optional[str] = None


class UserOut(BaseModel):
    uid: str
    email: str


def history_out(state: DashboardState, tz: tzinfo) -> List[HistoryPointOut]:
    return [
        HistoryPointOut(
            timestamp=sample.timestamp,
            label=format_time_of_day(sample.timestamp, tz),
            value=sample.value,
        )
        for sample in state.history
    ]


def forecast_out(state: DashboardState) -> ForecastOut:
    return ForecastOut(
        source=state.forecast_source,
        days=[
            ForecastDayOut(day=day.day, label=day.label, min=day.min, max=day.max)
            for day in state.forecast
        ],
    )


def dashboard_out(state: DashboardState, tz: tzinfo) -> DashboardOut:
    readings = state.readings
    return DashboardOut(
        liveness=LivenessOut(
            status=state.liveness.status,
            is_online=state.liveness.is_online,
            last_seen=state.liveness.last_seen,
        ),
        readings=ReadingsOut(
            temperature=readings.temperature,
            humidity=readings.humidity,
            soil=readings.soil,
            pump_status=readings.pump_status,
            pump_on=readings.pump_on,
        ),
        control=ControlOut(
            auto=state.control.auto,
            manual_pump=state.control.manual_pump,
            status_text=state.status_text,
        ),
        history=history_out(state, tz),
        forecast=forecast_out(state),
    )
