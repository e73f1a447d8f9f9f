"""Firm profile endpoints.

A firm edits only its own profile; any authenticated firm may read the
public profile of another (used when building a syndicate).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.app.api.deps import get_current_firm, get_store
from src.app.api.errors import to_http_exception
from src.app.schemas.syndicate import FirmResponse, ProfileUpdateRequest
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.firms import FirmService
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import FirmRead

router = APIRouter(prefix="/firms", tags=["firms"])


@router.get("/all", response_model=list[FirmResponse])
async def list_firms(
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> list[FirmResponse]:
    """List every firm's public profile."""
    firms = await FirmService(store).list_firms()
    return [FirmResponse.from_domain(f) for f in firms]


@router.get("/profile/{firm_id}", response_model=FirmResponse)
async def get_profile(
    firm_id: str,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> FirmResponse:
    """Get a firm's public profile."""
    try:
        target = await FirmService(store).get_profile(firm_id)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return FirmResponse.from_domain(target)


@router.put("/profile", response_model=FirmResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> FirmResponse:
    """Update the authenticated firm's matching profile."""
    try:
        updated = await FirmService(store).update_profile(firm.id, body.to_domain())
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return FirmResponse.from_domain(updated)
