"""Per-client rate limiting for the v1 API.

Two budgets per client IP, counted in fixed windows:
- auth: /api/v1/auth/* (login, register, refresh)
- api: every other /api/v1/* route

Health and metrics endpoints are never limited. Requests over budget get
429 with Retry-After; Redis outages let traffic through.
"""

from __future__ import annotations

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.app.core.redis import FixedWindowRateLimiter

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/v1/"
AUTH_PREFIX = "/api/v1/auth/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed their request budget.

    Args:
        app: ASGI application.
        limiter: Shared FixedWindowRateLimiter.
        auth_limit: Requests per window on auth routes.
        api_limit: Requests per window on other API routes.
    """

    def __init__(
        self,
        app,
        limiter: FixedWindowRateLimiter,
        auth_limit: int,
        api_limit: int,
    ) -> None:
        super().__init__(app)
        self._limiter = limiter
        self._auth_limit = auth_limit
        self._api_limit = api_limit

    def _scope_for(self, path: str) -> tuple[str, int] | None:
        if path.startswith(AUTH_PREFIX):
            return "auth", self._auth_limit
        if path.startswith(API_PREFIX):
            return "api", self._api_limit
        return None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        scope = self._scope_for(request.url.path)
        if scope is None or request.method == "OPTIONS":
            return await call_next(request)

        name, limit = scope
        client_id = request.client.host if request.client else "unknown"
        result = await self._limiter.hit(name, client_id, limit)

        if not result.allowed:
            logger.warning(
                "rate_limit.exceeded",
                scope=name,
                client=client_id,
                path=request.url.path,
            )
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests, please try again later"},
                headers={
                    "Retry-After": str(result.reset_in),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
