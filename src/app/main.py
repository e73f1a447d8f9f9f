"""FastAPI application factory.

Creates the app with rate limiting, logging and metrics middleware, CORS,
Sentry, lifespan events for database initialization and store wiring,
the health routes and the v1 API router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.app.config import Environment, get_settings
from src.app.core.database import close_db, get_session, init_db
from src.app.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.app.core.redis import FixedWindowRateLimiter, close_redis, get_redis_pool
from src.app.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.app.api.middleware.rate_limit import RateLimitMiddleware
from src.app.api.v1 import health
from src.app.api.v1.router import router as v1_router
from src.app.syndicate.repository import SyndicateRepository

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB, store and Sentry on startup, close on shutdown."""
    settings = get_settings()
    configure_structlog()

    # Migrations own the schema outside development
    if settings.ENVIRONMENT == Environment.development:
        await init_db()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    app.state.syndicate_store = SyndicateRepository(session_factory=get_session)
    log.info("app.started", environment=settings.ENVIRONMENT.value)

    yield

    app.state.syndicate_store = None
    await close_db()
    await close_redis()
    log.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Syndicate+ API",
        version="0.1.0",
        description="Co-investment syndicate platform for corporate-finance firms",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    # Rate limiting (inner -- runs after logging so 429s are logged)
    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=FixedWindowRateLimiter(
                get_redis_pool(), settings.RATE_LIMIT_WINDOW_SECONDS
            ),
            auth_limit=settings.AUTH_RATE_LIMIT,
            api_limit=settings.API_RATE_LIMIT,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(health.router)
    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
