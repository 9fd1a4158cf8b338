"""
NoteDigest Backend: FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the app, registers middleware, the exception
       handler and routers, and constructs the AIGateway that handlers
       receive through dependencies.
Who:   uvicorn (uvicorn notedigest.main:app) and the API tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  [Request ID] → [Access Log]           │
    │                                                     │
    │  Routes:      /api/notes...  /api/ai...  /health    │
    │                                                     │
    │  Errors:      NoteDigestError → its status_code     │
    │               anything else   → 500                 │
    │                                                     │
    │  app.state.ai_gateway: AIGateway (lazy LLM client)  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, report missing configuration (non-fatal)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from notedigest import __version__
from notedigest.config import settings
from notedigest.database import dispose_engine
from notedigest.exceptions import NoteDigestError
from notedigest.middleware.logging import RequestLoggingMiddleware
from notedigest.middleware.request_id import RequestIDMiddleware, request_id_var
from notedigest.routes import ai, health, notes
from notedigest.services.ai_gateway import AIGateway

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout; noisy third-party loggers raised to WARNING."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("NoteDigest Backend %s starting up (model=%s)", __version__, settings.gemini_model)

    # A missing API key only disables AI features; notes and /health keep working
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", e)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("NoteDigest Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps every NoteDigestError to `{"error", "message", "details", "request_id"}`
    with the exception's own status_code.

    5xx details stay in the server log; the client gets the message only.
    """

    @app.exception_handler(NoteDigestError)
    async def handle_app_error(request: Request, exc: NoteDigestError):
        rid = request_id_var.get("")
        server_side = exc.status_code >= 500

        if server_side:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, exc.code, exc.message)

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.code,
                "message": exc.message,
                "details": None if server_side else (exc.context or None),
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "details": None,
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(ai_gateway: Optional[AIGateway] = None) -> FastAPI:
    """
    Assemble the application.

    Args:
        ai_gateway: Gateway to inject into handlers. Defaults to one that
                    builds a GeminiService from settings on first use.
    """
    app = FastAPI(
        title="NoteDigest API",
        description=(
            "Note-taking backend with archive lifecycle and on-demand AI "
            "summaries and tags powered by Google Gemini."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.ai_gateway = ai_gateway or AIGateway()

    # Last added runs first: RequestID wraps the access log
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(ai.router)
    app.include_router(health.router)

    return app


app = create_app()
