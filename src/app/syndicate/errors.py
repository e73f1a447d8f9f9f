"""Typed domain errors for the syndicate core.

Services raise these; the HTTP layer maps ``status_code`` onto the response.
"""

from __future__ import annotations


class SyndicateError(Exception):
    """Base class for all domain errors raised by the syndicate core."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(SyndicateError):
    """Deal, firm, or invitation does not exist (or is not visible to the caller)."""

    status_code = 404


class AccessDeniedError(SyndicateError):
    """Caller lacks ownership or the role required for the operation."""

    status_code = 403


class ValidationError(SyndicateError):
    """Malformed or semantically invalid input."""

    status_code = 400


class ConflictError(SyndicateError):
    """Operation conflicts with the current state (duplicate, already responded)."""

    status_code = 409


class UpstreamError(SyndicateError):
    """Persistent store or transaction failure."""

    status_code = 500


class AuthenticationError(SyndicateError):
    """Credentials or token do not identify a firm."""

    status_code = 401
