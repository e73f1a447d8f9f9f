"""Invitation endpoints: send, respond, and list received/sent."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.app.api.deps import get_current_firm, get_store
from src.app.api.errors import to_http_exception
from src.app.schemas.syndicate import (
    InvitationActionResponse,
    InvitationResponse,
    InvitationViewResponse,
    RespondInvitationRequest,
    SendInvitationRequest,
)
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.invitations import InvitationLifecycle
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import FirmRead, InvitationStatus

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post(
    "/send",
    response_model=InvitationActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_invitation(
    body: SendInvitationRequest,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> InvitationActionResponse:
    """Invite a firm into the syndicate of a deal the caller owns."""
    try:
        invitation, target = await InvitationLifecycle(store).send_invitation(
            body.deal_id, firm.id, body.firm_id, body.message
        )
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc

    return InvitationActionResponse(
        message=f"Invitation sent to {target.firm_name}",
        invitation=InvitationResponse.from_domain(invitation),
    )


@router.get("/received", response_model=list[InvitationViewResponse])
async def list_received(
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> list[InvitationViewResponse]:
    """Invitations sent to the caller, with deal and sender details."""
    views = await InvitationLifecycle(store).list_received(firm.id)
    return [InvitationViewResponse.from_view(v) for v in views]


@router.get("/sent", response_model=list[InvitationViewResponse])
async def list_sent(
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> list[InvitationViewResponse]:
    """Invitations the caller sent, with deal and recipient details."""
    views = await InvitationLifecycle(store).list_sent(firm.id)
    return [InvitationViewResponse.from_view(v) for v in views]


@router.post("/respond", response_model=InvitationActionResponse)
async def respond_to_invitation(
    body: RespondInvitationRequest,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> InvitationActionResponse:
    """Accept or decline an invitation sent to the caller."""
    try:
        invitation = await InvitationLifecycle(store).respond_to_invitation(
            body.invitation_id, firm.id, body.response, body.nda_signed
        )
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc

    verb = "accepted" if invitation.status == InvitationStatus.ACCEPTED else "declined"
    return InvitationActionResponse(
        message=f"Invitation {verb}",
        invitation=InvitationResponse.from_domain(invitation),
    )
