"""API middleware package."""

from src.app.api.middleware.logging import LoggingMiddleware
from src.app.api.middleware.rate_limit import RateLimitMiddleware

__all__ = ["LoggingMiddleware", "RateLimitMiddleware"]
