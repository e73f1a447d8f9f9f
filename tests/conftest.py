"""Test fixtures for the Syndicate+ API and services.

Provides:
- InMemorySyndicateStore: dict-backed SyndicateStore test double
- A FastAPI app with the v1 router and the store on app.state
- Async HTTP client for API testing
- Firm/deal factories and Bearer headers minted with real JWTs
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import bcrypt
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.app.core.security import create_access_token, token_claims_for
from src.app.syndicate.errors import ConflictError
from src.app.syndicate.schemas import (
    DealCreate,
    DealFilter,
    DealRead,
    DealSizeRange,
    DealStatus,
    DealUpdate,
    FirmActivity,
    FirmCounts,
    FirmCreate,
    FirmCredentials,
    FirmFilter,
    FirmProfile,
    FirmRead,
    FirmRole,
    FirmStatus,
    FirmSummary,
    InterestCreate,
    InterestRead,
    InvitationCreate,
    InvitationFact,
    InvitationFilter,
    InvitationRead,
    InvitationStatus,
    NDARead,
    PlatformCounts,
)

DEFAULT_PASSWORD = "correct-horse-9"


# ── In-Memory Test Double ────────────────────────────────────────────────────


def _canonical(value: str) -> str | None:
    """Normalise a UUID spelling the way PostgreSQL does; None if malformed."""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None


class InMemorySyndicateStore:
    """In-memory SyndicateStore for testing without a database.

    Timestamps come from a counter so "newest first" ordering is
    deterministic even when records are created within the same instant.
    Ids are resolved like UUID columns, so any spelling of an id finds the
    row, and a second pending invitation for the same pair is rejected.
    """

    def __init__(self) -> None:
        self._firms: dict[str, FirmRead] = {}
        self._password_hashes: dict[str, str] = {}
        self._deals: dict[str, DealRead] = {}
        self._invitations: dict[str, InvitationRead] = {}
        self._ndas: dict[tuple[str, str], NDARead] = {}
        self._interest: list[InterestRead] = []
        # Anchored just before the real clock so analytics windows include new rows
        self._epoch = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=1)
        self._tick = 0

    def _now(self) -> datetime:
        self._tick += 1
        return self._epoch + timedelta(seconds=self._tick)

    # Firms

    async def create_firm(
        self,
        data: FirmCreate,
        password_hash: str,
        role: FirmRole = FirmRole.USER,
        profile: FirmProfile | None = None,
    ) -> FirmRead:
        email = data.email.lower()
        if any(f.email == email for f in self._firms.values()):
            raise ConflictError("Firm already registered with this email")
        now = self._now()
        firm = FirmRead(
            id=str(uuid.uuid4()),
            firm_name=data.firm_name,
            email=email,
            role=role,
            status=FirmStatus.ACTIVE,
            profile=profile or FirmProfile(contact_person=data.contact_person),
            created_at=now,
            updated_at=now,
        )
        self._firms[firm.id] = firm
        self._password_hashes[firm.id] = password_hash
        return firm

    async def get_firm(self, firm_id: str) -> FirmRead | None:
        return self._firms.get(_canonical(firm_id))

    async def get_firm_credentials(self, email: str) -> FirmCredentials | None:
        for firm in self._firms.values():
            if firm.email == email.lower():
                return FirmCredentials(firm=firm, password_hash=self._password_hashes[firm.id])
        return None

    def _filter_firms(self, filters: FirmFilter | None) -> list[FirmRead]:
        firms = list(self._firms.values())
        if filters is None:
            return firms
        if filters.search:
            needle = filters.search.lower()
            firms = [
                f for f in firms
                if needle in f.firm_name.lower() or needle in f.email.lower()
            ]
        if filters.status is not None:
            firms = [f for f in firms if f.status == filters.status]
        if filters.role is not None:
            firms = [f for f in firms if f.role == filters.role]
        if filters.exclude_firm_id is not None:
            firms = [f for f in firms if f.id != filters.exclude_firm_id]
        return firms

    async def list_firms(self, filters: FirmFilter | None = None) -> list[FirmRead]:
        return sorted(self._filter_firms(filters), key=lambda f: f.created_at)

    async def list_firm_summaries(
        self, filters: FirmFilter | None, offset: int, limit: int
    ) -> tuple[list[FirmSummary], int]:
        firms = sorted(self._filter_firms(filters), key=lambda f: f.created_at, reverse=True)
        page = firms[offset:offset + limit]
        summaries = [
            FirmSummary(firm=f, counts=await self.get_firm_counts(f.id)) for f in page
        ]
        return summaries, len(firms)

    async def get_firm_counts(self, firm_id: str) -> FirmCounts:
        return FirmCounts(
            deals=sum(1 for d in self._deals.values() if d.owner_firm_id == firm_id),
            sent_invitations=sum(
                1 for i in self._invitations.values() if i.from_firm_id == firm_id
            ),
            received_invitations=sum(
                1 for i in self._invitations.values() if i.to_firm_id == firm_id
            ),
            ndas=sum(1 for n in self._ndas.values() if n.firm_id == firm_id),
        )

    def _update_firm(self, firm_id: str, **values) -> FirmRead | None:
        firm_id = _canonical(firm_id)
        firm = self._firms.get(firm_id)
        if firm is None:
            return None
        updated = firm.model_copy(update={**values, "updated_at": self._now()})
        self._firms[firm_id] = updated
        return updated

    async def update_firm_profile(self, firm_id: str, profile: FirmProfile) -> FirmRead | None:
        return self._update_firm(firm_id, profile=profile)

    async def update_firm_status(self, firm_id: str, status: FirmStatus) -> FirmRead | None:
        return self._update_firm(firm_id, status=status)

    async def update_firm_role(self, firm_id: str, role: FirmRole) -> FirmRead | None:
        return self._update_firm(firm_id, role=role)

    async def update_firm_password(self, firm_id: str, password_hash: str) -> FirmRead | None:
        firm_id = _canonical(firm_id)
        if firm_id not in self._firms:
            return None
        self._password_hashes[firm_id] = password_hash
        return self._update_firm(firm_id)

    async def delete_firm(self, firm_id: str) -> bool:
        firm_id = _canonical(firm_id)
        if self._firms.pop(firm_id, None) is None:
            return False
        self._password_hashes.pop(firm_id, None)

        owned = {d.id for d in self._deals.values() if d.owner_firm_id == firm_id}
        for deal_id in owned:
            del self._deals[deal_id]
        self._invitations = {
            k: i for k, i in self._invitations.items()
            if firm_id not in (i.from_firm_id, i.to_firm_id) and i.deal_id not in owned
        }
        self._ndas = {
            k: n for k, n in self._ndas.items()
            if n.firm_id != firm_id and n.deal_id not in owned
        }
        for deal in list(self._deals.values()):
            self._deals[deal.id] = deal.model_copy(
                update={
                    "syndicate_members": [m for m in deal.syndicate_members if m != firm_id],
                    "invited_firms": [m for m in deal.invited_firms if m != firm_id],
                }
            )
        return True

    # Deals

    async def create_deal(self, owner_firm_id: str, data: DealCreate) -> DealRead:
        now = self._now()
        deal = DealRead(
            id=str(uuid.uuid4()),
            owner_firm_id=owner_firm_id,
            **data.model_dump(),
            status=DealStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        self._deals[deal.id] = deal
        return deal

    async def get_deal(self, deal_id: str) -> DealRead | None:
        return self._deals.get(_canonical(deal_id))

    async def list_deals(self, filters: DealFilter | None = None) -> list[DealRead]:
        deals = list(self._deals.values())
        if filters is not None:
            if filters.owner_firm_id is not None:
                deals = [d for d in deals if d.owner_firm_id == filters.owner_firm_id]
            if filters.invited_firm_id is not None:
                deals = [d for d in deals if filters.invited_firm_id in d.invited_firms]
            if filters.created_since is not None:
                deals = [d for d in deals if d.created_at >= filters.created_since]
        return sorted(deals, key=lambda d: d.created_at, reverse=True)

    async def update_deal(self, deal_id: str, data: DealUpdate) -> DealRead | None:
        deal_id = _canonical(deal_id)
        deal = self._deals.get(deal_id)
        if deal is None:
            return None
        updated = deal.model_copy(
            update={**data.model_dump(exclude_none=True), "updated_at": self._now()}
        )
        self._deals[deal_id] = updated
        return updated

    async def set_invited_firms(
        self, deal_id: str, firm_ids: list[str], status: DealStatus
    ) -> DealRead | None:
        deal_id = _canonical(deal_id)
        deal = self._deals.get(deal_id)
        if deal is None:
            return None
        updated = deal.model_copy(
            update={"invited_firms": list(firm_ids), "status": status, "updated_at": self._now()}
        )
        self._deals[deal_id] = updated
        return updated

    # Invitations and NDAs

    async def create_invitation(self, data: InvitationCreate) -> InvitationRead:
        if any(
            i.deal_id == data.deal_id
            and i.to_firm_id == data.to_firm_id
            and i.status == InvitationStatus.PENDING
            for i in self._invitations.values()
        ):
            raise ConflictError("A pending invitation already exists for this firm")
        invitation = InvitationRead(
            id=str(uuid.uuid4()),
            **data.model_dump(),
            status=InvitationStatus.PENDING,
            created_at=self._now(),
        )
        self._invitations[invitation.id] = invitation
        return invitation

    async def get_invitation(self, invitation_id: str) -> InvitationRead | None:
        return self._invitations.get(_canonical(invitation_id))

    async def list_invitations(self, filters: InvitationFilter) -> list[InvitationRead]:
        invitations = list(self._invitations.values())
        for field_name in ("deal_id", "from_firm_id", "to_firm_id", "status"):
            value = getattr(filters, field_name)
            if value is not None:
                invitations = [i for i in invitations if getattr(i, field_name) == value]
        return sorted(invitations, key=lambda i: i.created_at, reverse=True)

    async def record_invitation_response(
        self,
        invitation_id: str,
        status: InvitationStatus,
        responded_at: datetime,
        sign_nda: bool,
    ) -> InvitationRead | None:
        invitation = self._invitations.get(invitation_id)
        if invitation is None or invitation.status != InvitationStatus.PENDING:
            return None
        updated = invitation.model_copy(update={"status": status, "responded_at": responded_at})
        self._invitations[invitation_id] = updated

        if status == InvitationStatus.ACCEPTED and sign_nda:
            deal = self._deals.get(updated.deal_id)
            if deal is not None:
                if updated.to_firm_id not in deal.syndicate_members:
                    self._deals[deal.id] = deal.model_copy(
                        update={"syndicate_members": [*deal.syndicate_members, updated.to_firm_id]}
                    )
                self._ndas.setdefault(
                    (deal.id, updated.to_firm_id),
                    NDARead(
                        id=str(uuid.uuid4()),
                        deal_id=deal.id,
                        firm_id=updated.to_firm_id,
                        signed_at=responded_at,
                    ),
                )
        return updated

    async def list_ndas(
        self, deal_id: str | None = None, firm_id: str | None = None
    ) -> list[NDARead]:
        ndas = list(self._ndas.values())
        if deal_id is not None:
            ndas = [n for n in ndas if n.deal_id == deal_id]
        if firm_id is not None:
            ndas = [n for n in ndas if n.firm_id == firm_id]
        return ndas

    # Admin and public forms

    async def get_platform_counts(self) -> PlatformCounts:
        firms = list(self._firms.values())
        deals = list(self._deals.values())
        invitations = list(self._invitations.values())
        return PlatformCounts(
            total_firms=len(firms),
            active_firms=sum(1 for f in firms if f.status == FirmStatus.ACTIVE),
            suspended_firms=sum(1 for f in firms if f.status == FirmStatus.SUSPENDED),
            total_deals=len(deals),
            draft_deals=sum(1 for d in deals if d.status == DealStatus.DRAFT),
            total_invitations=len(invitations),
            accepted_invitations=sum(
                1 for i in invitations if i.status == InvitationStatus.ACCEPTED
            ),
            declined_invitations=sum(
                1 for i in invitations if i.status == InvitationStatus.DECLINED
            ),
            total_ndas=len(self._ndas),
        )

    async def list_invitation_facts(
        self, created_since: datetime | None = None
    ) -> list[InvitationFact]:
        facts = []
        for invitation in sorted(self._invitations.values(), key=lambda i: i.created_at):
            if created_since is not None and invitation.created_at < created_since:
                continue
            deal = self._deals[invitation.deal_id]
            facts.append(
                InvitationFact(
                    invitation_id=invitation.id,
                    status=invitation.status,
                    created_at=invitation.created_at,
                    responded_at=invitation.responded_at,
                    sector=deal.sector,
                    jurisdiction=deal.jurisdiction,
                    target_amount=deal.target_amount,
                )
            )
        return facts

    async def list_firm_activity(self) -> list[FirmActivity]:
        entries = []
        for firm in sorted(self._firms.values(), key=lambda f: f.created_at):
            counts = await self.get_firm_counts(firm.id)
            if counts.deals or counts.sent_invitations or counts.received_invitations:
                entries.append(
                    FirmActivity(
                        firm_id=firm.id,
                        firm_name=firm.firm_name,
                        email=firm.email,
                        deals_created=counts.deals,
                        invitations_sent=counts.sent_invitations,
                        invitations_received=counts.received_invitations,
                    )
                )
        return entries

    async def create_interest_registration(self, data: InterestCreate) -> InterestRead:
        registration = InterestRead(
            id=str(uuid.uuid4()),
            name=data.name,
            email=data.email.lower(),
            company=data.company,
            message=data.message,
            created_at=self._now(),
        )
        self._interest.append(registration)
        return registration

    async def list_interest_registrations(self) -> list[InterestRead]:
        return sorted(self._interest, key=lambda r: r.created_at, reverse=True)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> InMemorySyndicateStore:
    return InMemorySyndicateStore()


@pytest.fixture
def make_firm(store):
    """Factory creating a firm directly in the store.

    Uses a low bcrypt cost so login tests stay fast.
    """

    async def _make(
        firm_name: str = "Acme Capital",
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: FirmRole = FirmRole.USER,
        status: FirmStatus = FirmStatus.ACTIVE,
        jurisdictions: list[str] | None = None,
        sector_focus: list[str] | None = None,
        deal_size: tuple[float, float] | None = None,
        recent_transactions: list[str] | None = None,
    ) -> FirmRead:
        email = email or f"{uuid.uuid4().hex[:10]}@example.com"
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4))
        profile = FirmProfile(
            jurisdictions=jurisdictions or [],
            sector_focus=sector_focus or [],
            typical_deal_size=DealSizeRange(min=deal_size[0], max=deal_size[1])
            if deal_size
            else None,
            recent_transactions=recent_transactions or [],
        )
        firm = await store.create_firm(
            FirmCreate(firm_name=firm_name, email=email, password=password),
            password_hash=password_hash.decode("utf-8"),
            role=role,
            profile=profile,
        )
        if status != FirmStatus.ACTIVE:
            firm = await store.update_firm_status(firm.id, status)
        return firm

    return _make


@pytest.fixture
def make_deal(store):
    """Factory creating a deal owned by ``owner`` directly in the store."""

    async def _make(
        owner: FirmRead,
        deal_name: str = "Project Falcon",
        sector: str = "Fintech",
        jurisdiction: str = "UK",
        deal_type: str = "Series B",
        target_amount: float = 2_000_000,
    ) -> DealRead:
        return await store.create_deal(
            owner.id,
            DealCreate(
                deal_name=deal_name,
                sector=sector,
                jurisdiction=jurisdiction,
                deal_type=deal_type,
                target_amount=target_amount,
            ),
        )

    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers with a real access token for ``firm``."""

    def _headers(firm: FirmRead) -> dict[str, str]:
        token = create_access_token(token_claims_for(firm.id, firm.email, firm.role.value))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def app(store) -> FastAPI:
    """Minimal app with the v1 router and the in-memory store wired in."""
    from src.app.api.v1.router import router as v1_router

    application = FastAPI()
    application.include_router(v1_router)
    application.state.syndicate_store = store
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
