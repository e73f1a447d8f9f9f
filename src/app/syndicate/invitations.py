"""Invitation lifecycle -- send, respond, list.

An invitation starts pending and moves exactly once, to accepted or
declined. Acceptance with a signed NDA makes the invitee a syndicate member
of the deal and records the NDA; acceptance without one is a valid terminal
state with no further effect.

Pending checks are done twice: here, for a clear error message, and in
the store. Responses go through a conditional update and sends hit a
partial unique index, so racing requests can never both be applied.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from src.app.core.monitoring import invitation_responses_total, invitations_sent_total
from src.app.syndicate.errors import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import (
    DealRead,
    DealRef,
    FirmRead,
    FirmRef,
    InvitationCreate,
    InvitationFilter,
    InvitationRead,
    InvitationStatus,
    InvitationView,
)

logger = structlog.get_logger(__name__)

# ── Transition Rules ────────────────────────────────────────────────────────

VALID_TRANSITIONS: dict[InvitationStatus, set[InvitationStatus]] = {
    InvitationStatus.PENDING: {InvitationStatus.ACCEPTED, InvitationStatus.DECLINED},
    InvitationStatus.ACCEPTED: set(),  # Terminal
    InvitationStatus.DECLINED: set(),  # Terminal
}


class InvalidInvitationTransitionError(ConflictError):
    """Raised when an invitation is moved out of a terminal state."""

    def __init__(self, from_status: InvitationStatus, to_status: InvitationStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invitation already {from_status.value}")


def validate_invitation_transition(
    from_status: InvitationStatus, to_status: InvitationStatus
) -> None:
    """Validate that an invitation status transition is allowed.

    Raises:
        InvalidInvitationTransitionError: If the transition is not allowed.
    """
    if to_status not in VALID_TRANSITIONS.get(from_status, set()):
        raise InvalidInvitationTransitionError(from_status, to_status)


def parse_response(response: str) -> InvitationStatus:
    """Map a raw response value onto a terminal status.

    Raises:
        ValidationError: If the value is not "accepted" or "declined".
    """
    try:
        status = InvitationStatus(response)
    except ValueError:
        status = None
    if status not in (InvitationStatus.ACCEPTED, InvitationStatus.DECLINED):
        raise ValidationError("Response must be 'accepted' or 'declined'")
    return status


# ── Lifecycle ───────────────────────────────────────────────────────────────


class InvitationLifecycle:
    """Invitation state machine over a SyndicateStore.

    Args:
        store: SyndicateStore implementation.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        store: SyndicateStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def send_invitation(
        self,
        deal_id: str,
        from_firm_id: str,
        to_firm_id: str,
        message: str | None = None,
    ) -> tuple[InvitationRead, FirmRead]:
        """Invite ``to_firm_id`` into the syndicate of a deal the sender owns.

        Returns:
            Tuple of (created invitation, invited firm).

        Raises:
            NotFoundError: If the deal or the target firm does not exist.
            AccessDeniedError: If the sender does not own the deal.
            ValidationError: If a firm invites itself.
            ConflictError: If a pending invitation already exists for the
                pair, or the target is already a syndicate member.
        """
        deal = await self._store.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal not found")
        if deal.owner_firm_id != from_firm_id:
            raise AccessDeniedError("Access denied")

        target = await self._store.get_firm(to_firm_id)
        if target is None:
            raise NotFoundError("Firm not found")
        if target.id == from_firm_id:
            raise ValidationError("Cannot invite your own firm")
        if target.id in deal.syndicate_members:
            raise ConflictError("Firm is already a syndicate member")

        pending = await self._store.list_invitations(
            InvitationFilter(
                deal_id=deal.id,
                to_firm_id=target.id,
                status=InvitationStatus.PENDING,
            )
        )
        if pending:
            raise ConflictError("A pending invitation already exists for this firm")

        invitation = await self._store.create_invitation(
            InvitationCreate(
                deal_id=deal.id,
                from_firm_id=from_firm_id,
                to_firm_id=target.id,
                message=message,
            )
        )
        invitations_sent_total.inc()
        logger.info(
            "invitation.sent",
            invitation_id=invitation.id,
            deal_id=deal.id,
            to_firm_id=target.id,
        )
        return invitation, target

    async def respond_to_invitation(
        self,
        invitation_id: str,
        responder_firm_id: str,
        response: str,
        nda_signed: bool = False,
    ) -> InvitationRead:
        """Record the invitee's answer.

        Raises:
            NotFoundError: If the invitation does not exist or was not sent
                to the responder.
            ValidationError: If ``response`` is not accepted/declined.
            ConflictError: If the invitation has already been answered.
        """
        invitation = await self._store.get_invitation(invitation_id)
        if invitation is None or invitation.to_firm_id != responder_firm_id:
            raise NotFoundError("Invitation not found")

        target_status = parse_response(response)
        validate_invitation_transition(invitation.status, target_status)

        sign_nda = target_status == InvitationStatus.ACCEPTED and nda_signed
        updated = await self._store.record_invitation_response(
            invitation.id,
            target_status,
            responded_at=self._clock(),
            sign_nda=sign_nda,
        )
        if updated is None:
            # Lost the race against a concurrent response
            raise ConflictError("Invitation already responded to")

        invitation_responses_total.labels(
            status=target_status.value, nda_signed=str(sign_nda).lower()
        ).inc()
        logger.info(
            "invitation.responded",
            invitation_id=updated.id,
            deal_id=updated.deal_id,
            status=updated.status.value,
            nda_signed=sign_nda,
        )
        if sign_nda:
            logger.info(
                "syndicate.member_added",
                deal_id=updated.deal_id,
                firm_id=responder_firm_id,
            )
        return updated

    # ── Views ───────────────────────────────────────────────────────────────

    async def list_received(self, firm_id: str) -> list[InvitationView]:
        """Invitations sent to ``firm_id``, with deal and sender details."""
        invitations = await self._store.list_invitations(InvitationFilter(to_firm_id=firm_id))
        return await self._views(invitations, counterpart="from")

    async def list_sent(self, firm_id: str) -> list[InvitationView]:
        """Invitations sent by ``firm_id``, with deal and recipient details."""
        invitations = await self._store.list_invitations(InvitationFilter(from_firm_id=firm_id))
        return await self._views(invitations, counterpart="to")

    async def _views(
        self, invitations: list[InvitationRead], counterpart: str
    ) -> list[InvitationView]:
        deals: dict[str, DealRead | None] = {}
        firms: dict[str, FirmRead | None] = {}

        views: list[InvitationView] = []
        for invitation in invitations:
            if invitation.deal_id not in deals:
                deals[invitation.deal_id] = await self._store.get_deal(invitation.deal_id)
            deal = deals[invitation.deal_id]

            firm_id = invitation.from_firm_id if counterpart == "from" else invitation.to_firm_id
            if firm_id not in firms:
                firms[firm_id] = await self._store.get_firm(firm_id)
            firm = firms[firm_id]
            firm_ref = FirmRef(id=firm.id, name=firm.firm_name) if firm else None

            views.append(
                InvitationView(
                    invitation=invitation,
                    deal=DealRef(id=deal.id, name=deal.deal_name, sector=deal.sector)
                    if deal
                    else None,
                    from_firm=firm_ref if counterpart == "from" else None,
                    to_firm=firm_ref if counterpart == "to" else None,
                )
            )
        return views
