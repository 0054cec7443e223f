from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_control, render_dashboard, render_forecast, render_history


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the smart irrigation dashboard.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _signed_in_client(ctx: typer.Context) -> ApiClient:
    state = _get_state(ctx)
    if state.config.has_credentials:
        state.client.sign_in(state.config.email, state.config.password)
    return state.client


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each request.",
    ),
    email: Optional[str] = typer.Option(
        None,
        "--email",
        help="Account used for control commands (defaults to CLI_EMAIL env).",
    ),
    password: Optional[str] = typer.Option(
        None,
        "--password",
        help="Password for --email (defaults to CLI_PASSWORD env).",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout, email=email, password=password)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show liveness, live readings, controls, history and forecast."""
    state = _get_state(ctx)
    render_dashboard(state.client.get_dashboard())


@app.command("auto")
def auto_command(ctx: typer.Context) -> None:
    """Toggle auto mode (turning it on also switches the manual pump off)."""
    control = _signed_in_client(ctx).toggle_auto()
    typer.secho(control.get("status_text") or "Control updated.", fg=typer.colors.GREEN)
    render_control(control)


@app.command("manual")
def manual_command(ctx: typer.Context) -> None:
    """Toggle the manual pump; rejected while auto mode is on."""
    control = _signed_in_client(ctx).toggle_manual()
    typer.secho(control.get("status_text") or "Control updated.", fg=typer.colors.GREEN)
    render_control(control)


@app.command("forecast")
def forecast_command(ctx: typer.Context) -> None:
    """Show the daily min/max temperature forecast."""
    render_forecast(_get_state(ctx).client.get_forecast())


@app.command("history")
def history_command(ctx: typer.Context) -> None:
    """Show recent soil moisture samples."""
    render_history(_get_state(ctx).client.get_history())


@app.command("send-reading")
def send_reading_command(
    ctx: typer.Context,
    soil: Optional[float] = typer.Option(None, "--soil", help="Soil moisture (0-100)."),
    temperature: Optional[float] = typer.Option(None, "--temperature", help="Soil temperature in °C."),
    humidity: Optional[float] = typer.Option(None, "--humidity", help="Surrounding humidity (%)."),
    pump: Optional[str] = typer.Option(None, "--pump", help="Pump status reported by the rig (ON/OFF)."),
) -> None:
    """Post a reading as the irrigation rig would."""
    state = _get_state(ctx)
    ack = state.client.send_reading(
        temperature=temperature,
        humidity=humidity,
        soil=soil,
        pump_status=pump.upper() if pump else None,
    )
    typer.secho(f"Reading accepted. last_seen={ack.get('last_seen')}", fg=typer.colors.GREEN)
