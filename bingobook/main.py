"""
BingoBook Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn bingobook.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                     FastAPI App                         │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐           │
    │  │ Req ID   │→│ Logging  │→│ GZip │→│ CORS │           │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘           │
    │                                                         │
    │  Routes:                                                │
    │  ┌────────────────┐ ┌───────────────┐ ┌─────────────┐  │
    │  │ entries        │ │ /timesheets/* │ │ GET /health │  │
    │  └────────────────┘ └───────────────┘ └─────────────┘  │
    │                                                         │
    │  Exception Handlers:                                    │
    │  ┌──────────────────────────────────────────────────┐  │
    │  │ ValidationError→400 │ NotFound→404 │ Storage→500 │  │
    │  └──────────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration
    3. Open the database and create missing tables/triggers
    4. Create the image storage directory

    Shutdown:
    1. Dispose the database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from bingobook import __version__
from bingobook.config import settings
from bingobook.database import Database
from bingobook.exceptions import (
    BingoBookError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from bingobook.middleware.logging import RequestLoggingMiddleware
from bingobook.middleware.request_id import RequestIDMiddleware, request_id_var
from bingobook.routes import entries, health, timesheets

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    Access lines come from the "bingobook.access" logger (see
    bingobook.middleware.logging), so uvicorn's own access log is quieted.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle.

    A Database passed to create_app() is used as-is (tests); otherwise one
    is built from settings.database_url and owned by the lifespan.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("BingoBook Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database(settings.database_url)
        await app.state.database.create_schema()
    logger.info("Database: %s", app.state.database.engine.url.render_as_string(hide_password=True))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("BingoBook Backend shutting down...")
    if owns_database:
        await app.state.database.dispose()
        app.state.database = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request (malformed body/path/query)
        NotFoundError           → 404 Not Found
        StorageError            → 500 (DatabaseError, FileStorageError)
        BingoBookError (base)   → 500
        Exception (fallback)    → 500

    Storage handlers log `exc.context` (engine/OS message) server-side and
    return only `exc.message`.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Malformed request: %s", request_id_var.get(""), exc.errors())
        return _error_response(
            400,
            "validation_error",
            "Request payload is missing fields or has the wrong types",
            {"errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(BingoBookError)
    async def handle_application_error(request: Request, exc: BingoBookError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Pre-built Database to serve from. When omitted the lifespan
                  opens one from settings and disposes it at shutdown.
    """
    app = FastAPI(
        title="BingoBook API",
        description=(
            "Record-keeping backend: people entries with images, and per-entry "
            "sign-in/sign-out timesheets."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
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
    app.include_router(entries.router)
    app.include_router(timesheets.router)
    app.include_router(health.router)

    return app


app = create_app()
