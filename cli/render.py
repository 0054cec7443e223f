from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def _fmt(value: Any, unit: str = "") -> str:
    if value is None:
        return "--"
    return f"{value}{unit}"


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_control(control: Dict[str, Any]) -> None:
    echo_heading("Controls")
    echo_key_values(
        [
            ("auto", "ON" if control.get("auto") else "OFF"),
            ("manual_pump", "ON" if control.get("manual_pump") else "OFF"),
        ]
    )


def render_forecast(forecast: Dict[str, Any]) -> None:
    echo_heading(f"Forecast ({forecast.get('source') or 'unavailable'})")
    days = forecast.get("days") or []
    if not days:
        typer.echo("No data yet")
        return
    for day in days:
        typer.echo(f"  - {day.get('label')}: min {day.get('min'):.1f}°C, max {day.get('max'):.1f}°C")


def render_history(points: List[Dict[str, Any]]) -> None:
    echo_heading("Soil Moisture History")
    if not points:
        typer.echo("No data yet")
        return
    for point in points:
        typer.echo(f"  - {point.get('label')}: {point.get('value'):.0f}%")


def render_dashboard(payload: Dict[str, Any]) -> None:
    liveness = payload.get("liveness") or {}
    online = liveness.get("is_online")
    typer.secho(
        "ESP32 ONLINE" if online else "ESP32 OFFLINE",
        fg=typer.colors.GREEN if online else typer.colors.RED,
        bold=True,
    )
    typer.echo()

    readings = payload.get("readings") or {}
    echo_heading("Live Sensors")
    echo_key_values(
        [
            ("soil_moisture", _fmt(readings.get("soil"), "%")),
            ("temperature", _fmt(readings.get("temperature"), "°C")),
            ("humidity", _fmt(readings.get("humidity"), "%")),
            ("pump", "ON" if readings.get("pump_on") else "OFF"),
        ]
    )

    typer.echo()
    render_control(payload.get("control") or {})
    typer.echo()
    render_history(payload.get("history") or [])
    typer.echo()
    render_forecast(payload.get("forecast") or {})
