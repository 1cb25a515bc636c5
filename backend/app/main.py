"""
Shutterfeed Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers,
       then validates the route table before anything is served.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite.

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │                                                           │
    │  Middleware: RateLimit → RequestID → AccessLog → GZip → CORS
    │                                                           │
    │  Routers:                                                 │
    │    /api/auth   /api/users   /api/photos   /api/comments   │
    │    /api/activities   /api/files   /health                 │
    │                                                           │
    │  Exception Handlers:                                      │
    │    ValidationError→400  AuthenticationError→401           │
    │    AuthorizationError→403  NotFoundError→404              │
    │    RateLimitExceeded→429  FileStorage/Database→500        │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → storage directory
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Iterable, Iterator, Set, Tuple

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.routing import compile_path

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    FileStorageError,
    NotFoundError,
    RateLimitExceededError,
    ShutterfeedError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import activities, auth, comments, files, health, photos, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2026-10-18T12:00:00 [INFO] app.services.comment_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Shutterfeed Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health can report; the log says what to fix.
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Shutterfeed Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: dict = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the application's exceptions to JSON error responses.

        ValidationError         → 400 validation_error (with details)
        AuthenticationError     → 401 authentication_error
        AuthorizationError      → 403 authorization_error
        NotFoundError           → 404 not_found
        RateLimitExceededError  → 429 rate_limit_exceeded
        FileStorageError        → 500 server_error
        DatabaseError           → 500 server_error (generic message)
        ShutterfeedError        → 500 server_error
        Exception               → 500 internal_server_error

    Only 400s echo their context back; 500s log it server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("authentication_error", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        logger.info("[%s] Forbidden: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=403,
            content=_error_body("authorization_error", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(ShutterfeedError)
    async def handle_application_error(request: Request, exc: ShutterfeedError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Route Table Validation
# ══════════════════════════════════════════════════════════════════════════

def _walk_routes(routes: Iterable[Any], prefix: str = "") -> Iterator[Tuple[Any, str]]:
    """
    Yield (route, full path) for every leaf route.

    Newer FastAPI releases keep an included router as one entry without a
    `path`; its routes sit behind `.routes` or `.router.routes` and its
    include prefix is prepended here.
    """
    for route in routes:
        path = getattr(route, "path", None)
        if path is not None:
            yield route, prefix + path
            continue
        nested = getattr(route, "routes", None)
        if nested is None:
            nested = getattr(getattr(route, "router", None), "routes", None)
        if nested:
            yield from _walk_routes(nested, prefix + (getattr(route, "prefix", None) or ""))


def validate_routes(app: FastAPI) -> None:
    """
    Fail startup on a broken route table.

    Every path is compiled again (unknown converters or malformed
    parameters raise) and each (method, path) pair must be unique; a
    duplicate would silently shadow the handler registered second.

    Raises:
        RuntimeError: naming the offending path
    """
    seen: Set[Tuple[str, str]] = set()
    for route, path in _walk_routes(app.routes):
        try:
            compile_path(path)
        except (AssertionError, ValueError) as e:
            raise RuntimeError(f"Invalid route path '{path}': {e}") from e

        for method in sorted(getattr(route, "methods", None) or ()):
            key = (method, path)
            if key in seen:
                raise RuntimeError(f"Duplicate route registered: {method} {path}")
            seen.add(key)

    logger.debug("Validated %d route(s)", len(seen))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Shutterfeed API",
        description=(
            "Photo sharing: upload photos, restrict who can see them, comment "
            "with @mentions, like, tag and favorite, and follow the activity feed."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → AccessLog → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(photos.router)
    app.include_router(comments.router)
    app.include_router(activities.router)
    app.include_router(files.router)
    app.include_router(health.router)

    validate_routes(app)
    return app


# uvicorn imports `app.main:app`
app = create_app()
