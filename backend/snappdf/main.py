"""
SnapPDF Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn snappdf.main:app).
When:  Once at server startup.

Application Architecture:
    ┌───────────────────────────────────────────────────────────────┐
    │                        FastAPI App                            │
    │                                                               │
    │  Middleware Chain:                                            │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐                  │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │                  │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘                  │
    │                                                               │
    │  Routes:                                                      │
    │  /api/auth/*   /api/user/profile   /api/upload[/management]   │
    │  /api/files[/{id}/status]          /health                    │
    │                                                               │
    │  app.state (built in lifespan):                               │
    │  engine, session_factory, redis, s3, sqs, http_client         │
    └───────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration (logged, not fatal)
    3. Build clients; ping Redis with retry
    Shutdown:
    1. Close the httpx client and Redis connection pool
    2. Dispose the database engine
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from snappdf import __version__
from snappdf.clients import (
    build_http_client,
    build_redis,
    build_s3_client,
    build_sqs_client,
    connect_redis,
)
from snappdf.config import settings
from snappdf.database import build_engine, build_session_factory, dispose_engine
from snappdf.exceptions import SnapPDFError
from snappdf.middleware.logging import RequestLoggingMiddleware
from snappdf.middleware.request_id import RequestIDMiddleware, request_id_var
from snappdf.routes import auth, files, health, upload, user

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that log every call at DEBUG/INFO
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "botocore", "boto3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("SnapPDF Backend starting up (environment=%s)...", settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: /health still answers and the affected routes fail loudly
        logger.error("Configuration error: %s", str(e))

    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.redis = build_redis(settings)
    app.state.s3 = build_s3_client(settings)
    app.state.sqs = build_sqs_client(settings)
    app.state.http_client = build_http_client(settings)

    await connect_redis(app.state.redis, settings)

    logger.info("S3 bucket: %s", settings.aws_s3_bucket)
    logger.info("OCR queue: %s", settings.aws_sqs_ocr_queue_url or "<not configured>")
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("SnapPDF Backend shutting down...")
    await app.state.http_client.aclose()
    await app.state.redis.aclose()
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(code: str, message: str, exc: BaseException, details=None) -> dict:
    body = {
        "success": False,
        "error": code,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    if not settings.is_production:
        body["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        SnapPDFError            → exc.status_code, exc.code
        RequestValidationError  → 400 VALIDATION_ERROR
        Exception (fallback)    → 500 INTERNAL_ERROR

    Every response carries {success: false, error, message, request_id}.
    `details` is added for 4xx only; `stack` only outside production.
    """

    @app.exception_handler(SnapPDFError)
    async def handle_snappdf_error(request: Request, exc: SnapPDFError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
            details = None
        else:
            logger.warning("[%s] %s: %s", rid, exc.code, exc.message)
            details = exc.context

        headers = {}
        if exc.code == "INVALID_CREDENTIALS":
            headers["WWW-Authenticate"] = "Basic"

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, exc, details),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Request validation failed: %s", rid, exc.errors())
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                exc,
                {"errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                    for err in exc.errors()
                ]},
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        # Runs in ServerErrorMiddleware, so RequestIDMiddleware never sees this response
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "INTERNAL_ERROR",
                "An unexpected error occurred. Please try again or contact support.",
                exc,
            ),
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="SnapPDF API",
        description=(
            "Upload images, get searchable PDFs. Google sign-in, duplicate-aware "
            "batch upload to S3 and OCR job dispatch over SQS."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(user.router)
    app.include_router(upload.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
