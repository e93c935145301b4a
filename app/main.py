"""
DevOps Learning API: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires settings, the document store, middleware,
       exception handlers and routers, and returns the app.
Who:   uvicorn (uvicorn app.main:app, or the devops-learning-api script).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  [Request ID] → [Access Logging]       │
    │                                                     │
    │  Routes:                                            │
    │   GET /  GET /health  GET /api/hello  GET /api/stats│
    │   GET|POST /api/users   GET|PUT|DELETE /api/users/id│
    │                                                     │
    │  Exception Handlers:                                │
    │   ValidationError→400  NotFound→404  Store→500      │
    │   unmatched route→404  anything else→500            │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, connect the store, ensure the email index
    Shutdown: disconnect the store
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import Settings, settings as default_settings
from app.database import build_store, close_store, open_store
from app.exceptions import (
    DevOpsAPIError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.routes import health, stats, users
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once, at startup, before anything logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    # force=True: replaces handlers uvicorn may have installed before startup
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request lines come from RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings
    store: DocumentStore = app.state.store

    setup_logging(config.log_level)
    logger.info("DevOps Learning API %s starting (%s mode)", __version__, config.environment)

    if await open_store(store):
        logger.info("Connected to MongoDB")

    logger.info("Server is running on port %d", config.port)
    logger.info("Health check available at: http://localhost:%d/health", config.port)

    yield

    logger.info("Shutting down...")
    await close_store(store)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _envelope(message: str, error: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    content: Dict[str, Any] = {"success": False, "message": message}
    content.update(extra)
    if error is not None:
        content["error"] = error
    return content


def _server_error_text(request: Request, detail: str) -> str:
    if request.app.state.settings.is_production:
        return GENERIC_ERROR
    return detail


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """
    Last resort: anything not handled by a typed handler.

    Registered for Exception, and also given to RequestIDMiddleware so the
    500 is rendered inside the middleware chain and carries X-Request-ID.
    """
    logger.error("[%s] Unexpected error: %s", _request_id(request), exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=_envelope(
            "Something went wrong!", _server_error_text(request, str(exc) or type(exc).__name__)
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to envelopes and status codes.

    Handler hierarchy:
        ValidationError         → 400 (detail always returned)
        RequestValidationError  → 400 (malformed JSON body)
        NotFoundError           → 404
        HTTPException 404/405   → 404 "Route not found"
        StoreError              → 500 (detail hidden in production)
        DevOpsAPIError (base)   → 500
        Exception (fallback)    → 500 "Something went wrong!"
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.error_text)
        return JSONResponse(
            status_code=400,
            content=_envelope(exc.message, exc.error_text),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        detail = "; ".join(str(err.get("msg", "")) for err in exc.errors()) or "Invalid request"
        logger.warning("[%s] Malformed request: %s", _request_id(request), detail)
        return JSONResponse(
            status_code=400,
            content=_envelope("Invalid request body", detail),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_envelope(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Unknown path and known path with an unsupported method are both "no route"
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content=_envelope("Route not found"))
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logger.error(
            "[%s] Store error: %s | %s | Context: %s",
            _request_id(request), exc.message, exc.error_text, exc.context,
        )
        extra = {}
        if "database" in exc.context:
            extra["data"] = {"database": exc.context["database"]}
        return JSONResponse(
            status_code=500,
            content=_envelope(exc.message, _server_error_text(request, exc.error_text), **extra),
        )

    @app.exception_handler(DevOpsAPIError)
    async def handle_app_error(request: Request, exc: DevOpsAPIError):
        logger.error("[%s] Application error: %s", _request_id(request), exc.error_text)
        return JSONResponse(
            status_code=500,
            content=_envelope(exc.message, _server_error_text(request, exc.error_text)),
        )

    app.add_exception_handler(Exception, handle_unexpected_error)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        settings: Configuration; defaults to the environment-loaded settings.
        store:    Document store client; defaults to a MongoStore built from
                  settings. The store is connected by the lifespan.
    """
    config = settings or default_settings

    app = FastAPI(
        title="DevOps Learning API",
        description="Health/status endpoints and CRUD over users stored in MongoDB.",
        version=__version__,
        lifespan=lifespan,
    )
    # What: Per-app settings and store client, read by handlers via request.app.state
    # Tests pass their own store here instead of patching module globals
    app.state.settings = config
    app.state.store = store if store is not None else build_store(config)

    # Last added runs first: RequestID wraps Logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware, on_error=handle_unexpected_error)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(stats.router)
    app.include_router(users.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    config: Settings = app.state.settings
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
