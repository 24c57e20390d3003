"""
Training Record Backend: FastAPI Application Factory
=====================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() wires settings, the store engine, the
       services, middleware, exception handlers and routes.
Who:   uvicorn imports the module-level `app` (uvicorn app.main:app);
       tests call create_app() with their own settings and engine.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌────────────┐  │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS/OPTS  │  │
    │  └──────────┘ └──────────┘ └──────┘ └────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌───────────────────────────────┐ │
    │  │ GET /health  │ │ /{...}/<handler> (9 handlers) │ │
    │  └──────────────┘ └───────────────────────────────┘ │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌───────────────────────────────────────────────┐  │
    │  │ Validation→400 │ NotFound→404 │ Database→500  │  │
    │  └───────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate settings, log the store target
    Shutdown: dispose the engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from app import __version__
from app.config import Settings, settings
from app.database import build_engine, build_session_factory, dispose_engine
from app.exceptions import (
    DatabaseError,
    NotFoundError,
    TrainingRecordError,
    ValidationError,
)
from app.middleware.cors import CORSPreflightMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, training_record
from app.routes.envelope import error_response
from app.services.record_service import RecordService
from app.services.reference_service import ReferenceService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  logging, configuration check, banner.
    Shutdown: engine disposal.

    A failed configuration check is logged but does not stop the server;
    /health then reports the store as unreachable.
    """
    config: Settings = app.state.settings

    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("Training Record Backend %s starting up...", __version__)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info("Store: %s", config.store_url.render_as_string(hide_password=True))
    logger.info("Unknown menu policy: %s", config.unknown_menu_policy)
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Training Record Backend shutting down...")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to the error envelope.

    Handler hierarchy:
        ValidationError         → 400 {error, details}
        NotFoundError           → 404 {error: "Not Found"}
        DatabaseError           → 500 {error: "<stage>: <store message>", stage}
        TrainingRecordError     → 500 {error}
        Exception (fallback)    → 500 generic message, stack trace logged only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning(
            "[%s] Validation error (%s): %s", rid, exc.field or "-", exc.message
        )
        return error_response(
            request, 400, exc.message, request_id=rid, details=exc.context
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return error_response(request, 404, exc.message, request_id=rid)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(
            request, 500, exc.message, request_id=rid, stage=exc.stage
        )

    @app.exception_handler(TrainingRecordError)
    async def handle_app_error(request: Request, exc: TrainingRecordError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(request, 500, exc.message, request_id=rid)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            request,
            500,
            "An unexpected error occurred. Please try again or contact support.",
            request_id=rid,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to use (defaults to the module-level singleton)
        engine: Pre-built engine (tests); built from config when omitted

    The engine, session factory and services are created here, once, and
    stored on app.state; handlers never read the environment.
    """
    config = config or settings
    engine = engine or build_engine(config)

    app = FastAPI(
        title="Training Record API",
        description=(
            "Body parts, exercise menus and workout records for the training "
            "tracker client. Dispatches on the last path segment."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Store and services ────────────────────────────────────────────────
    app.state.settings = config
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    references = ReferenceService(timeout=config.store_timeout_seconds)
    app.state.reference_service = references
    app.state.record_service = RecordService(
        references,
        unknown_menu_policy=config.unknown_menu_policy,
        timeout=config.store_timeout_seconds,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(CORSPreflightMiddleware, headers=config.cors_headers)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    # health first: the training record router matches every path
    app.include_router(health.router)
    app.include_router(training_record.router)

    return app


app = create_app()
