"""Public "register interest" endpoint (no authentication)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.app.api.deps import get_store
from src.app.api.errors import to_http_exception
from src.app.schemas.common import MessageResponse
from src.app.schemas.syndicate import InterestRequest
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.interest import register_interest
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import InterestCreate

router = APIRouter(prefix="/interest", tags=["interest"])


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: InterestRequest,
    store: SyndicateStore = Depends(get_store),
) -> MessageResponse:
    """Record a prospective member's interest."""
    data = InterestCreate(
        name=body.name,
        email=body.email,
        company=body.company,
        message=body.message,
    )
    try:
        await register_interest(store, data)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return MessageResponse(message="Thank you for registering your interest")
