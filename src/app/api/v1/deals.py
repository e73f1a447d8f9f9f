"""REST API endpoints for deals.

Owners create and edit deals; syndicate members may read them. Invited
deals are the ones an owner selected the caller for while building a
syndicate.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.app.api.deps import get_current_firm, get_store
from src.app.api.errors import to_http_exception
from src.app.schemas.syndicate import DealCreateRequest, DealResponse, DealUpdateRequest
from src.app.syndicate.deals import DealService
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import FirmRead

router = APIRouter(prefix="/deals", tags=["deals"])


@router.post("", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    body: DealCreateRequest,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> DealResponse:
    """Create a deal owned by the calling firm."""
    try:
        deal = await DealService(store).create_deal(firm.id, body.to_domain())
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return DealResponse.from_domain(deal)


@router.get("/mine", response_model=list[DealResponse])
async def list_my_deals(
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> list[DealResponse]:
    """List deals owned by the calling firm, newest first."""
    deals = await DealService(store).list_my_deals(firm.id)
    return [DealResponse.from_domain(d) for d in deals]


@router.get("/invited", response_model=list[DealResponse])
async def list_invited_deals(
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> list[DealResponse]:
    """List deals whose owners selected the calling firm."""
    deals = await DealService(store).list_invited_deals(firm.id)
    return [DealResponse.from_domain(d) for d in deals]


@router.get("/{deal_id}", response_model=DealResponse)
async def get_deal(
    deal_id: str,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> DealResponse:
    """Get a deal the caller owns or is a syndicate member of."""
    try:
        deal = await DealService(store).get_deal(deal_id, firm.id)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return DealResponse.from_domain(deal)


@router.put("/{deal_id}", response_model=DealResponse)
async def update_deal(
    deal_id: str,
    body: DealUpdateRequest,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> DealResponse:
    """Update descriptive fields or status of a deal the caller owns."""
    try:
        deal = await DealService(store).update_deal(deal_id, firm.id, body.to_domain())
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return DealResponse.from_domain(deal)
