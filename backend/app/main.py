"""
Portcullis Backend - FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain (outermost first):                     │
    │  CORS → GZip → Request ID → Logging → Security Headers   │
    │       → Error Handler → Rate Limit                       │
    │                                                          │
    │  Routes:                                                 │
    │  /users (CRUD, /me)   /auth (google, callback, login)    │
    │  /health   /docs   /api-specs   /llms.txt                │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging (request IDs on every line)
    2. Start the rate-limit sweep task
    Shutdown:
    1. Cancel the sweep task
    2. Dispose the database engine (close pooled connections)
"""

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.middleware.error_handler import ErrorHandlerMiddleware, register_error_handlers
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import (
    RateLimitMiddleware,
    api_rate_limiter,
    auth_rate_limiter,
    sweep_periodically,
)
from app.middleware.request_id import RequestIDFilter, RequestIDMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.routes import auth, docs, health, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s

    DEBUG is only honoured in development; elsewhere the floor is INFO.
    The test suite stays quiet because nothing calls this outside the
    lifespan.
    """
    level = getattr(logging, settings.log_level, logging.INFO)
    if level < logging.INFO and not settings.is_development:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDFilter())

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Portcullis %s starting (%s)", __version__, settings.node_env)

    sweeper = asyncio.create_task(
        sweep_periodically(
            (auth_rate_limiter, api_rate_limiter),
            settings.rate_limit_sweep_interval,
        )
    )

    if not settings.google_oauth_configured:
        logger.warning("GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET unset: /auth/google disabled")

    logger.info("Server ready on port %d", settings.port)
    logger.info("API docs: %s/docs", settings.base_url)
    logger.info("Health check: %s/health", settings.base_url)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Portcullis shutting down...")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Portcullis API",
        description="User accounts with password and Google sign-in.",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/api-specs",
        servers=[{"url": settings.base_url}],
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost. The error handler must stay outside the rate
    # limiter so a 429 becomes an envelope, and inside security headers and
    # logging so those see the envelope.
    # Everything added after ErrorHandlerMiddleware runs outside it and must
    # not raise: a failure there gets Starlette's plain-text 500.
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_error_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(auth.router)
    app.include_router(docs.router)

    return app


app = create_app()
