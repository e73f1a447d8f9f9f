"""Translate domain errors into HTTP responses."""

from __future__ import annotations

import structlog
from fastapi import HTTPException

from src.app.syndicate.errors import AuthenticationError, SyndicateError

logger = structlog.get_logger(__name__)


def to_http_exception(exc: SyndicateError) -> HTTPException:
    """Map a SyndicateError onto an HTTPException with the same message."""
    if exc.status_code >= 500:
        logger.error("api.upstream_error", error=exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return HTTPException(status_code=exc.status_code, detail=exc.message, headers=headers)
