"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


UNKNOWN_PUMP_STATUS = "--"
OFFLINE_PUMP_STATUS = "OFF"


@dataclass(frozen=True, slots=True)
class Sample:
    """A single soil reading keyed by its server timestamp in milliseconds."""

    timestamp: int
    value: float


@dataclass(frozen=True, slots=True)
class ForecastSample:
    """One 3-hour forecast slot; ``timestamp`` is Unix seconds."""

    timestamp: int
    temp_min: float
    temp_max: float


@dataclass(frozen=True, slots=True)
class ForecastDay:
    day: date
    label: str
    min: float
    max: float


@dataclass(frozen=True, slots=True)
class ControlState:
    """Shared auto/manual pump configuration.

    While ``auto`` is on the physical pump follows the device's own logic and
    ``manual_pump`` is not authoritative.
    """

    auto: bool = True
    manual_pump: bool = False

    def to_record(self) -> dict[str, bool]:
        return {"auto": self.auto, "manualPump": self.manual_pump}

    def describe(self) -> str:
        auto = "ON" if self.auto else "OFF"
        manual = "ON" if self.manual_pump else "OFF"
        return f"Auto = {auto}, Manual Pump = {manual}"


@dataclass(frozen=True, slots=True)
class SensorReadings:
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil: Optional[float] = None
    pump_status: str = UNKNOWN_PUMP_STATUS

    @property
    def pump_on(self) -> bool:
        return self.pump_status == "ON"

    @classmethod
    def offline(cls) -> "SensorReadings":
        return cls(pump_status=OFFLINE_PUMP_STATUS)


class LivenessStatus(str, Enum):
    unknown = "unknown"
    online = "online"
    offline = "offline"


@dataclass(frozen=True, slots=True)
class LivenessState:
    last_seen: Optional[int] = None
    status: LivenessStatus = LivenessStatus.unknown

    @property
    def is_online(self) -> bool:
        return self.status is LivenessStatus.online


@dataclass(frozen=True, slots=True)
class GeometryPoint:
    x: float
    y: float
