"""
SpiritArt Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Who:   uvicorn (`uvicorn spiritart.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Access Log → GZip → CORS      │
    │                                                          │
    │  Routes:                                                 │
    │   /  /health   /api/user/*   /api/create-order           │
    │   /api/verify-payment   /api/upload-image   /uploads/*   │
    │                                                          │
    │  Exception Handlers:                                     │
    │   Validation→400  NotFound→404  Upstream→500             │
    │   AIUnavailable→503  Database→500  Unknown→500           │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Check required settings; exit on missing database or Razorpay
       secrets, warn on a missing OpenAI key
    3. Build provider clients into app.state.clients
    4. Create tables when running on SQLite (PostgreSQL uses Alembic)

    Shutdown:
    1. Close provider clients
    2. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from spiritart import __version__
from spiritart.clients import build_clients, close_clients
from spiritart.config import settings
from spiritart.database import create_all, dispose_engine
from spiritart.exceptions import (
    AIServiceUnavailableError,
    DatabaseError,
    NotFoundError,
    SpiritArtError,
    UpstreamServiceError,
    ValidationError,
)
from spiritart.middleware.logging import RequestLoggingMiddleware
from spiritart.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from spiritart.routes import health, images, payments, uploads, users
from spiritart.services.upload_storage import build_upload_storage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2025-01-15T12:00:00 [INFO] spiritart.services.payment_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("SpiritArt Backend %s starting up...", __version__)

    errors, warnings = settings.check_required()
    for warning in warnings:
        logger.warning("Configuration warning: %s", warning)
    if errors:
        for error in errors:
            logger.error("Configuration error: %s", error)
        logger.error("Fix the configuration and restart the server.")
        raise SystemExit(1)

    app.state.clients = build_clients(settings)

    if settings.database_url.startswith("sqlite"):
        await create_all()
        logger.info("SQLite database initialized from models")

    logger.info("Upload storage: %s", settings.upload_storage)
    logger.info("Server running on port %d", settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("SpiritArt Backend shutting down...")
    await close_clients(getattr(app.state, "clients", None))
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _current_request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_body(exc: SpiritArtError, rid: str) -> Dict[str, Any]:
    """`{error, code, details?, request_id}`; `details` never in production."""
    body: Dict[str, Any] = {"error": exc.message, "code": exc.code}
    if settings.expose_error_details and exc.context:
        body["details"] = exc.context
    body["request_id"] = rid
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

    Handler hierarchy (most specific wins):
        ValidationError             → 400
        RequestValidationError      → 400 (FastAPI body/form parsing)
        NotFoundError               → 404
        UpstreamServiceError        → 500 (provider message passed through)
        AIServiceUnavailableError   → 503
        DatabaseError               → 500 (generic message only)
        SpiritArtError (base)       → exc.status_code
        Exception (fallback)        → 500 (exception text passed through)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = _current_request_id(request)
        logger.warning("[%s] Validation error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, rid))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = _current_request_id(request)
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "form"))
        message = f"Invalid value for {location}" if location else "Invalid request"
        logger.warning("[%s] Request validation error: %s", rid, errors)
        body: Dict[str, Any] = {"error": message, "code": "validation_error"}
        if settings.expose_error_details:
            body["details"] = {"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in errors
            ]}
        body["request_id"] = rid
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = _current_request_id(request)
        logger.info("[%s] Not found: %s", rid, exc.context)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, rid))

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream_error(request: Request, exc: UpstreamServiceError):
        rid = _current_request_id(request)
        logger.error("[%s] Upstream error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, rid))

    @app.exception_handler(AIServiceUnavailableError)
    async def handle_ai_unavailable(request: Request, exc: AIServiceUnavailableError):
        rid = _current_request_id(request)
        logger.warning("[%s] AI provider not configured", rid)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, rid))

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = _current_request_id(request)
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, rid))

    @app.exception_handler(SpiritArtError)
    async def handle_app_error(request: Request, exc: SpiritArtError):
        rid = _current_request_id(request)
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, rid))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _current_request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        body: Dict[str, Any] = {
            "error": str(exc) or "An unknown error occurred",
            "code": "server_error",
        }
        if settings.expose_error_details:
            body["details"] = {"error_type": type(exc).__name__}
        body["request_id"] = rid
        # Served by ServerErrorMiddleware, outside RequestIDMiddleware
        headers = {REQUEST_ID_HEADER: rid} if rid else None
        return JSONResponse(status_code=500, content=body, headers=headers)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="SpiritArt Alchemy API",
        description=(
            "Credit-metered Studio Ghibli style image transformation. "
            "Buy credits through Razorpay, upload a photo, get it back reimagined."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Upload storage lives as long as the app (the memory strategy holds
    # state), so it is built here rather than per request.
    app.state.upload_storage = build_upload_storage(settings.upload_storage, settings.upload_dir)

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_origins_list != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(payments.router)
    app.include_router(images.router)
    app.include_router(uploads.router)

    return app


app = create_app()
