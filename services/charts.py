"""View models for the dashboard's gauges and SVG charts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import List, Optional, Sequence

from models.records import ForecastDay, GeometryPoint, Sample
from services.geometry import (
    Domain,
    Padding,
    Viewport,
    auto_domain,
    axis_ticks,
    band_path,
    format_coordinate,
    map_points,
    polyline,
    x_positions,
    y_position,
)
from services.history import format_time_of_day

HISTORY_VIEWPORT = Viewport(width=240, height=90, padding=Padding.uniform(10))
FORECAST_VIEWPORT = Viewport(
    width=260, height=140, padding=Padding(left=32, right=10, top=30, bottom=24)
)

GAUGE_DOMAIN = Domain(low=0, high=100)
DEFAULT_GAUGE_COLOR = "#22c55e"
DRY_SOIL_THRESHOLD = 30
WET_SOIL_THRESHOLD = 80


@dataclass(frozen=True)
class Gauge:
    label: str
    display: str
    unit: str
    percent: float
    angle: float
    color: str
    hint: str
    low: float
    high: float


def moisture_color(value: Optional[float]) -> str:
    if value is None:
        return DEFAULT_GAUGE_COLOR
    if value < DRY_SOIL_THRESHOLD:
        return "#f97316"
    if value > WET_SOIL_THRESHOLD:
        return "#0ea5e9"
    return DEFAULT_GAUGE_COLOR


def _gauge_hint(label: str, value: Optional[float]) -> str:
    if value is None:
        return "Waiting for sensor data..."
    if label == "Soil Moisture":
        if value < DRY_SOIL_THRESHOLD:
            return "Soil is dry - pump may turn ON in auto mode."
        if value > WET_SOIL_THRESHOLD:
            return "Soil is very wet - consider stopping pump."
        return "Soil moisture is in optimal range."
    if label == "Soil Temperature":
        return "Monitor soil temperature for crop health."
    if label == "Surrounding Humidity":
        return "Ambient humidity around your field."
    return ""


def build_gauge(
    label: str,
    value: Optional[float],
    unit: str = "",
    domain: Domain = GAUGE_DOMAIN,
    color: str = DEFAULT_GAUGE_COLOR,
) -> Gauge:
    percent = 0.0 if value is None else domain.normalize(value)
    if value is None:
        display = "--"
    else:
        display = f"{value:.0f}" if unit == "%" else f"{value:.1f}"
    return Gauge(
        label=label,
        display=display,
        unit=unit,
        percent=percent,
        angle=-90 + 180 * percent,
        color=color,
        hint=_gauge_hint(label, value),
        low=domain.low,
        high=domain.high,
    )


@dataclass(frozen=True)
class AxisTick:
    value: float
    y: str


@dataclass(frozen=True)
class HistoryChart:
    viewport: Viewport
    points: str
    y_min_label: str
    y_max_label: str
    x_start_label: str
    x_end_label: str
    latest: float


def build_history_chart(
    samples: Sequence[Sample], tz: tzinfo, viewport: Viewport = HISTORY_VIEWPORT
) -> Optional[HistoryChart]:
    """``None`` means there is nothing to plot yet."""
    if not samples:
        return None
    values = [sample.value for sample in samples]
    domain = auto_domain(values)
    coords = map_points(values, viewport, domain)
    return HistoryChart(
        viewport=viewport,
        points=polyline(coords),
        y_min_label=f"{domain.low:.1f}",
        y_max_label=f"{domain.high:.1f}",
        x_start_label=format_time_of_day(samples[0].timestamp, tz),
        x_end_label=format_time_of_day(samples[-1].timestamp, tz),
        latest=samples[-1].value,
    )


@dataclass(frozen=True)
class DayLabel:
    text: str
    x: str


@dataclass(frozen=True)
class ForecastChart:
    viewport: Viewport
    domain: Domain
    max_points: List[GeometryPoint]
    min_points: List[GeometryPoint]
    max_line: str
    min_line: str
    band: str
    ticks: List[AxisTick]
    day_labels: List[DayLabel]


def build_forecast_chart(
    days: Sequence[ForecastDay], viewport: Viewport = FORECAST_VIEWPORT
) -> Optional[ForecastChart]:
    if not days:
        return None
    domain = auto_domain([value for day in days for value in (day.min, day.max)])
    max_points = map_points([day.max for day in days], viewport, domain)
    min_points = map_points([day.min for day in days], viewport, domain)
    ticks = [
        AxisTick(value=tick, y=format_coordinate(y_position(tick, viewport, domain)))
        for tick in axis_ticks(domain)
    ]
    labels = [
        DayLabel(text=day.label, x=format_coordinate(x))
        for day, x in zip(days, x_positions(len(days), viewport))
    ]
    return ForecastChart(
        viewport=viewport,
        domain=domain,
        max_points=max_points,
        min_points=min_points,
        max_line=polyline(max_points),
        min_line=polyline(min_points),
        band=band_path(max_points, min_points),
        ticks=ticks,
        day_labels=labels,
    )
