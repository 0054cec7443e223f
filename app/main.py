from __future__ import annotations
import logging
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.dashboard import build_default_session
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    session = build_default_session()
    try:
        await session.start()
        yield
    finally:
        await session.close()
        build_default_session.cache_clear()


def _session_secret() -> str:
    secret = get_settings().session_secret
    if secret is None:
        logger.warning("SESSION_SECRET is not set; sign-ins will not survive a restart")
        secret = secrets.token_urlsafe(32)
    return secret


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Smart Irrigation Dashboard",
        description="Live sensor gauges, history, forecast and pump controls for an irrigation rig.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(SessionMiddleware, secret_key=_session_secret(), same_site="lax")
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
