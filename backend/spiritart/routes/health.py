"""
SpiritArt Backend: Liveness & Health Routes
============================================

What:  `GET /` (plain-text liveness banner) and `GET /health` (dependency
       status for monitors).

Status levels:
    healthy     database reachable, AI provider reachable
    degraded    database reachable, AI provider down or not configured
    unhealthy   database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from spiritart import __version__
from spiritart.database import get_engine
from spiritart.schemas.common import HealthResponse
from spiritart.services.openai_service import OpenAIService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

BANNER = "SpiritArt Alchemy API is running"

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Liveness banner")
async def root() -> str:
    return BANNER


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """
    Probe the database (`SELECT 1`) and the AI provider (`models.list()`).

    Neither probe consumes generation quota or writes anything.
    """
    db_status = "connected"
    ai_status = "available"
    overall = "healthy"

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    clients = getattr(request.app.state, "clients", None)
    if clients is None or clients.openai is None:
        ai_status = "not_configured"
        overall = "degraded" if overall == "healthy" else overall
    elif not await OpenAIService(clients.openai).health_check():
        ai_status = "unavailable"
        overall = "degraded" if overall == "healthy" else overall

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        ai_provider=ai_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
