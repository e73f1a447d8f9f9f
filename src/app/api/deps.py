"""FastAPI dependency injection for the syndicate store and the calling firm.

These dependencies are used in endpoint function signatures to inject the
store wired up in the application lifespan and the authenticated firm.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from src.app.api.errors import to_http_exception
from src.app.core.security import verify_token
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.firms import FirmService
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import FirmRead, FirmRole


def get_store(request: Request) -> SyndicateStore:
    """Retrieve the SyndicateStore from app.state, 503 if not available."""
    store = getattr(request.app.state, "syndicate_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Syndicate store not initialized",
        )
    return store


async def get_current_firm(
    request: Request,
    store: SyndicateStore = Depends(get_store),
) -> FirmRead:
    """Resolve the calling firm from the Bearer access token.

    Raises:
        HTTPException(401): Missing or invalid token, or the firm is gone.
        HTTPException(403): The firm is suspended or inactive.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(auth_header[7:], token_type="access")
    try:
        return await FirmService(store).get_active_firm(payload["sub"])
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc


async def require_admin(firm: FirmRead = Depends(get_current_firm)) -> FirmRead:
    """Allow admin and superadmin firms only."""
    if not firm.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return firm


async def require_superadmin(firm: FirmRead = Depends(get_current_firm)) -> FirmRead:
    """Allow superadmin firms only."""
    if firm.role != FirmRole.SUPERADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superadmin access required",
        )
    return firm
