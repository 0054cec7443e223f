from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from services.auth import (
    AuthError,
    AuthService,
    ClientAuth,
    build_default_auth,
    validate_credentials,
)
from services.charts import build_forecast_chart, build_gauge, build_history_chart, moisture_color
from services.control import ManualControlLocked
from services.dashboard import DashboardSession, build_default_session


logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

AUTH_MODES = ("signin", "signup")
REFRESH_SECONDS = 2


def get_session() -> DashboardSession:
    return build_default_session()


def get_auth() -> AuthService:
    return build_default_auth()


def get_client_auth(request: Request, auth: AuthService = Depends(get_auth)) -> ClientAuth:
    return ClientAuth(auth, request.session)


def _redirect(request: Request, name: str) -> RedirectResponse:
    return RedirectResponse(request.url_for(name), status_code=status.HTTP_303_SEE_OTHER)


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    session: DashboardSession = Depends(get_session),
    auth: ClientAuth = Depends(get_client_auth),
):
    user = auth.current_user
    if user is None:
        return _redirect(request, "ui_login")

    state = session.state
    readings = state.readings
    gauges = [
        build_gauge("Soil Moisture", readings.soil, color=moisture_color(readings.soil)),
        build_gauge("Soil Temperature", readings.temperature, unit="°C"),
        build_gauge("Surrounding Humidity", readings.humidity, unit="%"),
    ]
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "user": user,
            "state": state,
            "gauges": gauges,
            "history_chart": build_history_chart(state.history, session.tz),
            "forecast_chart": build_forecast_chart(state.forecast),
            "city": session.forecast_service.city,
            "refresh_seconds": REFRESH_SECONDS,
        },
    )


@router.post("/ui/control/auto", name="ui_toggle_auto")
async def ui_toggle_auto(
    request: Request,
    session: DashboardSession = Depends(get_session),
    auth: ClientAuth = Depends(get_client_auth),
) -> RedirectResponse:
    if auth.current_user is not None:
        session.toggle_auto()
    return _redirect(request, "ui_index")


@router.post("/ui/control/manual", name="ui_toggle_manual")
async def ui_toggle_manual(
    request: Request,
    session: DashboardSession = Depends(get_session),
    auth: ClientAuth = Depends(get_client_auth),
) -> RedirectResponse:
    if auth.current_user is not None:
        try:
            session.toggle_manual()
        except ManualControlLocked as exc:
            logger.debug("Ignoring manual toggle from the UI: %s", exc)
    return _redirect(request, "ui_index")


def _render_login(
    request: Request, mode: str, email: str = "", error: Optional[str] = None, status_code: int = 200
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "ui/login.html",
        {"mode": mode, "email": email, "error": error},
        status_code=status_code,
    )


@router.get("/ui/login", name="ui_login", response_class=HTMLResponse)
async def ui_login(request: Request, mode: str = "signin", auth: ClientAuth = Depends(get_client_auth)):
    if auth.current_user is not None:
        return _redirect(request, "ui_index")
    return _render_login(request, mode if mode in AUTH_MODES else "signin")


@router.post("/ui/login", name="ui_login_submit", response_class=HTMLResponse)
async def ui_login_submit(
    request: Request,
    mode: str = Form("signin"),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    auth: ClientAuth = Depends(get_client_auth),
):
    mode = mode if mode in AUTH_MODES else "signin"
    try:
        if mode == "signup":
            validate_credentials(email, password, confirm_password)
            auth.sign_up(email, password)
        else:
            validate_credentials(email, password)
            auth.sign_in(email, password)
    except AuthError as exc:
        return _render_login(
            request, mode, email=email, error=str(exc), status_code=status.HTTP_400_BAD_REQUEST
        )
    return _redirect(request, "ui_index")


@router.post("/ui/logout", name="ui_logout")
async def ui_logout(request: Request, auth: ClientAuth = Depends(get_client_auth)) -> RedirectResponse:
    auth.sign_out()
    return _redirect(request, "ui_login")
