"""
OneSim Backend: FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       the lifespan builds the process-scoped services and stores them on
       `app.state`.
Who:   uvicorn (`onesim.main:app`, or `python -m onesim`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐            │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │            │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘            │
    │                                                         │
    │  app.state (built in lifespan):                         │
    │    database · broadcaster · file_relay · password_hasher│
    │                                                         │
    │  Routes:                                                │
    │    /api/* users, cases, patients · /register · /process │
    │    /health · WS /ws (alias /)                           │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Build the Database; create tables when DB_CREATE_TABLES is set
    3. Probe the database and log the outcome (startup continues either way)
    4. Build the broadcaster, password hasher and file relay

    Shutdown:
    1. Close open real-time connections
    2. Close the relay's HTTP client
    3. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from onesim import __version__
from onesim.config import Settings, settings
from onesim.database import Database
from onesim.exceptions import (
    FileStorageError,
    OneSimError,
    RelayError,
    StorageError,
    ValidationError,
)
from onesim.middleware.logging import RequestLoggingMiddleware
from onesim.middleware.request_id import RequestIDMiddleware, request_id_var
from onesim.routes import cases, health, patients, realtime, relay, users
from onesim.services.broadcaster import NotificationBroadcaster
from onesim.services.file_relay import FileRelay
from onesim.services.password_hasher import PasswordHasher

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure the root logger on stdout.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the process-scoped services on startup and release them on shutdown.

    A database that is down at startup is logged, not fatal: the server
    still starts and reports it through /health and per-request errors.
    """
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("OneSim Backend starting up...")

    database = Database(app_settings)
    try:
        if app_settings.db_create_tables:
            await database.create_tables()
            logger.info("Database tables ensured")
        await database.ping()
        logger.info("Connected to the database successfully!")
    except Exception as e:
        logger.error("Error connecting to the database: %s", str(e))

    app.state.database = database
    app.state.broadcaster = NotificationBroadcaster(
        send_timeout=app_settings.broadcast_send_timeout_seconds
    )
    app.state.password_hasher = PasswordHasher(rounds=app_settings.bcrypt_rounds)
    app.state.file_relay = FileRelay(
        client=httpx.AsyncClient(timeout=httpx.Timeout(app_settings.relay_timeout_seconds)),
        target_url=app_settings.comparison_service_url,
        upload_dir=app_settings.upload_dir,
    )

    logger.info("Server ready at http://%s:%d", app_settings.host, app_settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("OneSim Backend shutting down...")
    await app.state.broadcaster.close_all()
    await app.state.file_relay.aclose()
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, code: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": error,
        "code": code,
        "request_id": request_id_var.get(""),
    }
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses with one body shape.

    Handler hierarchy:
        ValidationError          → 400, with field context
        RelayError               → 500, with the comparison service payload
        StorageError             → 500, generic message (driver text logged only)
        FileStorageError         → 500
        OneSimError (base)       → the class's status_code
        RequestValidationError   → 400 (malformed JSON or wrong types)
        StarletteHTTPException   → its own status (e.g. unknown route)
        Exception (fallback)     → 500, stack trace logged server-side only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code, exc.context or None),
        )

    @app.exception_handler(RelayError)
    async def handle_relay_error(request: Request, exc: RelayError):
        logger.error(
            "[%s] Relay error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code, jsonable_encoder(exc.details)),
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] Storage error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code),
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code),
        )

    @app.exception_handler(OneSimError)
    async def handle_onesim_error(request: Request, exc: OneSimError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Malformed request: %s", request_id_var.get(""), exc.errors())
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "Invalid request body.",
                "validation_error",
                jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), "http_error"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "An unexpected error occurred. Please try again later.",
                "internal_server_error",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to run with; the module-level `settings`
                      when omitted. Tests pass their own.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="OneSim API",
        description=(
            "Backend for the OneSimulation clinical-case training platform: "
            "accounts, case assignments, patient records, answers, and "
            "real-time assignment notifications."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(cases.router)
    app.include_router(patients.router)
    app.include_router(relay.router)
    app.include_router(health.router)
    app.include_router(realtime.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn imports `onesim.main:app`
app = create_app()
