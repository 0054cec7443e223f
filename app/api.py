"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.schemas import (
    ControlOut,
    CredentialsIn,
    DashboardOut,
    DeviceReadingAck,
    DeviceReadingIn,
    ForecastOut,
    HistoryPointOut,
    UserOut,
    dashboard_out,
    forecast_out,
    history_out,
)
from services.auth import (
    AuthError,
    AuthService,
    ClientAuth,
    User,
    build_default_auth,
    validate_credentials,
)
from services.control import ManualControlLocked
from services.dashboard import DashboardSession, build_default_session
from services.ingest import DeviceIngest
from settings import get_settings

router = APIRouter()


def get_session() -> DashboardSession:
    return build_default_session()


def get_auth() -> AuthService:
    return build_default_auth()


def get_client_auth(request: Request, auth: AuthService = Depends(get_auth)) -> ClientAuth:
    return ClientAuth(auth, request.session)


def require_user(auth: ClientAuth = Depends(get_client_auth)) -> User:
    user = auth.current_user
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in to change the pump controls.",
        )
    return user


def get_ingest(session: DashboardSession = Depends(get_session)) -> DeviceIngest:
    return DeviceIngest(session.store, history_retention=get_settings().history_retention)


@router.get(
    "/dashboard",
    response_model=DashboardOut,
    summary="Live sensors, controls, liveness, history and forecast.",
)
async def get_dashboard(session: DashboardSession = Depends(get_session)) -> DashboardOut:
    return dashboard_out(session.state, session.tz)


@router.get(
    "/history",
    response_model=List[HistoryPointOut],
    summary="Most recent soil moisture samples, oldest first.",
)
async def get_history(session: DashboardSession = Depends(get_session)) -> List[HistoryPointOut]:
    return history_out(session.state, session.tz)


@router.get("/forecast", response_model=ForecastOut, summary="Daily min/max temperatures.")
async def get_forecast(session: DashboardSession = Depends(get_session)) -> ForecastOut:
    return forecast_out(session.state)


def _control_out(session: DashboardSession) -> ControlOut:
    state = session.state
    return ControlOut(
        auto=state.control.auto,
        manual_pump=state.control.manual_pump,
        status_text=state.status_text,
    )


@router.post("/control/auto", response_model=ControlOut, summary="Toggle auto mode.")
async def toggle_auto(
    session: DashboardSession = Depends(get_session),
    _user: User = Depends(require_user),
) -> ControlOut:
    session.toggle_auto()
    return _control_out(session)


@router.post(
    "/control/manual",
    response_model=ControlOut,
    summary="Toggle the manual pump (only while auto mode is off).",
)
async def toggle_manual(
    session: DashboardSession = Depends(get_session),
    _user: User = Depends(require_user),
) -> ControlOut:
    try:
        session.toggle_manual()
    except ManualControlLocked as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return _control_out(session)


@router.post(
    "/device/readings",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=DeviceReadingAck,
    summary="Ingest a reading from the irrigation rig.",
)
async def post_reading(
    reading: DeviceReadingIn,
    ingest: DeviceIngest = Depends(get_ingest),
) -> DeviceReadingAck:
    stamp = ingest.record(
        temperature=reading.temperature,
        humidity=reading.humidity,
        soil=reading.soil,
        pump_status=reading.pump_status,
    )
    return DeviceReadingAck(last_seen=stamp)


@router.post(
    "/auth/signup",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and sign in.",
)
async def sign_up(credentials: CredentialsIn, auth: ClientAuth = Depends(get_client_auth)) -> UserOut:
    try:
        validate_credentials(
            credentials.email, credentials.password, credentials.confirm_password
        )
        user = auth.sign_up(credentials.email, credentials.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return UserOut(uid=user.uid, email=user.email)


@router.post("/auth/signin", response_model=UserOut, summary="Sign in with email and password.")
async def sign_in(credentials: CredentialsIn, auth: ClientAuth = Depends(get_client_auth)) -> UserOut:
    try:
        validate_credentials(credentials.email, credentials.password)
        user = auth.sign_in(credentials.email, credentials.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return UserOut(uid=user.uid, email=user.email)


@router.post("/auth/signout", status_code=status.HTTP_204_NO_CONTENT, summary="Sign out.")
async def sign_out(auth: ClientAuth = Depends(get_client_auth)) -> None:
    auth.sign_out()


@router.get("/auth/user", response_model=UserOut, summary="Currently signed-in user.")
async def current_user(auth: ClientAuth = Depends(get_client_auth)) -> UserOut:
    user = auth.current_user
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No user is signed in.")
    return UserOut(uid=user.uid, email=user.email)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard and /health for status."}

