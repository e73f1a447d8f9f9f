"""Syndicate store -- async CRUD for firms, deals, invitations and NDAs.

Provides the SyndicateStore protocol that every service depends on, and
SyndicateRepository, its PostgreSQL implementation using the
session_factory callable pattern. Handles serialization between Pydantic
schemas and SQLAlchemy models.

IDs cross this boundary as UUID strings. A malformed id never matches a
row, so lookups return None rather than raising.

The invitation response path is the only multi-row write: invitation
status, deal membership and NDA creation commit or roll back together.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Protocol

import structlog
from sqlalchemy import String, delete, func, literal, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.syndicate.errors import ConflictError, UpstreamError
from src.app.syndicate.models import (
    DealModel,
    FirmModel,
    InterestRegistrationModel,
    InvitationModel,
    NDAModel,
)
from src.app.syndicate.schemas import (
    DealCreate,
    DealFilter,
    DealRead,
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

logger = structlog.get_logger(__name__)


# ── Store Protocol ──────────────────────────────────────────────────────────


class SyndicateStore(Protocol):
    """Persistence operations the syndicate services rely on.

    Implemented by SyndicateRepository (PostgreSQL) and by the in-memory
    test double in the test suite.
    """

    # Firms
    async def create_firm(
        self,
        data: FirmCreate,
        password_hash: str,
        role: FirmRole = FirmRole.USER,
        profile: FirmProfile | None = None,
    ) -> FirmRead: ...
    async def get_firm(self, firm_id: str) -> FirmRead | None: ...
    async def get_firm_credentials(self, email: str) -> FirmCredentials | None: ...
    async def list_firms(self, filters: FirmFilter | None = None) -> list[FirmRead]: ...
    async def list_firm_summaries(
        self, filters: FirmFilter | None, offset: int, limit: int
    ) -> tuple[list[FirmSummary], int]: ...
    async def get_firm_counts(self, firm_id: str) -> FirmCounts: ...
    async def update_firm_profile(self, firm_id: str, profile: FirmProfile) -> FirmRead | None: ...
    async def update_firm_status(self, firm_id: str, status: FirmStatus) -> FirmRead | None: ...
    async def update_firm_role(self, firm_id: str, role: FirmRole) -> FirmRead | None: ...
    async def update_firm_password(self, firm_id: str, password_hash: str) -> FirmRead | None: ...
    async def delete_firm(self, firm_id: str) -> bool: ...

    # Deals
    async def create_deal(self, owner_firm_id: str, data: DealCreate) -> DealRead: ...
    async def get_deal(self, deal_id: str) -> DealRead | None: ...
    async def list_deals(self, filters: DealFilter | None = None) -> list[DealRead]: ...
    async def update_deal(self, deal_id: str, data: DealUpdate) -> DealRead | None: ...
    async def set_invited_firms(
        self, deal_id: str, firm_ids: list[str], status: DealStatus
    ) -> DealRead | None: ...

    # Invitations and NDAs
    async def create_invitation(self, data: InvitationCreate) -> InvitationRead: ...
    async def get_invitation(self, invitation_id: str) -> InvitationRead | None: ...
    async def list_invitations(self, filters: InvitationFilter) -> list[InvitationRead]: ...
    async def record_invitation_response(
        self,
        invitation_id: str,
        status: InvitationStatus,
        responded_at: datetime,
        sign_nda: bool,
    ) -> InvitationRead | None: ...
    async def list_ndas(
        self, deal_id: str | None = None, firm_id: str | None = None
    ) -> list[NDARead]: ...

    # Admin and public forms
    async def get_platform_counts(self) -> PlatformCounts: ...
    async def list_invitation_facts(
        self, created_since: datetime | None = None
    ) -> list[InvitationFact]: ...
    async def list_firm_activity(self) -> list[FirmActivity]: ...
    async def create_interest_registration(self, data: InterestCreate) -> InterestRead: ...
    async def list_interest_registrations(self) -> list[InterestRead]: ...


# ── Serialization Helpers ───────────────────────────────────────────────────


def _to_uuid(value: str) -> uuid.UUID | None:
    """Parse a UUID string; None for anything malformed."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _model_to_firm(model: FirmModel) -> FirmRead:
    """Convert FirmModel to FirmRead schema."""
    return FirmRead(
        id=str(model.id),
        firm_name=model.firm_name,
        email=model.email,
        role=FirmRole(model.role),
        status=FirmStatus(model.status),
        profile=FirmProfile.model_validate(model.profile or {}),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _model_to_deal(model: DealModel) -> DealRead:
    """Convert DealModel to DealRead schema."""
    return DealRead(
        id=str(model.id),
        owner_firm_id=str(model.owner_firm_id),
        deal_name=model.deal_name,
        sector=model.sector,
        jurisdiction=model.jurisdiction,
        deal_type=model.deal_type,
        target_amount=model.target_amount,
        description=model.description,
        target_investor_profile=model.target_investor_profile,
        status=DealStatus(model.status),
        syndicate_members=list(model.syndicate_members or []),
        invited_firms=list(model.invited_firms or []),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _model_to_invitation(model: InvitationModel) -> InvitationRead:
    """Convert InvitationModel to InvitationRead schema."""
    return InvitationRead(
        id=str(model.id),
        deal_id=str(model.deal_id),
        from_firm_id=str(model.from_firm_id),
        to_firm_id=str(model.to_firm_id),
        message=model.message,
        status=InvitationStatus(model.status),
        created_at=model.created_at,
        responded_at=model.responded_at,
    )


def _model_to_nda(model: NDAModel) -> NDARead:
    return NDARead(
        id=str(model.id),
        deal_id=str(model.deal_id),
        firm_id=str(model.firm_id),
        signed_at=model.signed_at,
    )


def _model_to_interest(model: InterestRegistrationModel) -> InterestRead:
    return InterestRead(
        id=str(model.id),
        name=model.name,
        email=model.email,
        company=model.company,
        message=model.message,
        created_at=model.created_at,
    )


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Surface database failures as UpstreamError; the caller decides on retries."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("store.operation_failed", operation=operation, error=str(exc))
        raise UpstreamError(f"Database operation failed: {operation}") from exc


# ── Repository ──────────────────────────────────────────────────────────────


class SyndicateRepository:
    """PostgreSQL implementation of SyndicateStore.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    # ── Firms ───────────────────────────────────────────────────────────────

    async def create_firm(
        self,
        data: FirmCreate,
        password_hash: str,
        role: FirmRole = FirmRole.USER,
        profile: FirmProfile | None = None,
    ) -> FirmRead:
        """Create a firm account.

        Raises:
            ConflictError: If the email is already registered.
        """
        profile = profile or FirmProfile(contact_person=data.contact_person)
        with _store_errors("create_firm"):
            async for session in self._session_factory():
                model = FirmModel(
                    firm_name=data.firm_name,
                    email=data.email.lower(),
                    password_hash=password_hash,
                    role=role.value,
                    status=FirmStatus.ACTIVE.value,
                    profile=profile.model_dump(mode="json"),
                )
                session.add(model)
                try:
                    await session.commit()
                except IntegrityError as exc:
                    await session.rollback()
                    raise ConflictError("Firm already registered with this email") from exc
                await session.refresh(model)
                return _model_to_firm(model)

    async def get_firm(self, firm_id: str) -> FirmRead | None:
        firm_uuid = _to_uuid(firm_id)
        if firm_uuid is None:
            return None
        with _store_errors("get_firm"):
            async for session in self._session_factory():
                model = await session.get(FirmModel, firm_uuid)
                if model is None:
                    return None
                return _model_to_firm(model)

    async def get_firm_credentials(self, email: str) -> FirmCredentials | None:
        """Look up a firm by login email, including its password hash."""
        with _store_errors("get_firm_credentials"):
            async for session in self._session_factory():
                stmt = select(FirmModel).where(FirmModel.email == email.lower())
                result = await session.execute(stmt)
                model = result.scalar_one_or_none()
                if model is None:
                    return None
                return FirmCredentials(
                    firm=_model_to_firm(model), password_hash=model.password_hash
                )

    def _firm_query(self, filters: FirmFilter | None):
        stmt = select(FirmModel)
        if filters is None:
            return stmt
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(
                or_(
                    FirmModel.firm_name.ilike(pattern),
                    FirmModel.email.ilike(pattern),
                )
            )
        if filters.status is not None:
            stmt = stmt.where(FirmModel.status == filters.status.value)
        if filters.role is not None:
            stmt = stmt.where(FirmModel.role == filters.role.value)
        if filters.exclude_firm_id is not None:
            excluded = _to_uuid(filters.exclude_firm_id)
            if excluded is not None:
                stmt = stmt.where(FirmModel.id != excluded)
        return stmt

    async def list_firms(self, filters: FirmFilter | None = None) -> list[FirmRead]:
        """List firms oldest first, with optional filters."""
        with _store_errors("list_firms"):
            async for session in self._session_factory():
                stmt = self._firm_query(filters).order_by(
                    FirmModel.created_at, FirmModel.id
                )
                result = await session.execute(stmt)
                return [_model_to_firm(m) for m in result.scalars().all()]

    async def list_firm_summaries(
        self, filters: FirmFilter | None, offset: int, limit: int
    ) -> tuple[list[FirmSummary], int]:
        """One page of firms (newest first) with their related-record counts.

        Returns:
            Tuple of (summaries, total matching firms).
        """
        with _store_errors("list_firm_summaries"):
            async for session in self._session_factory():
                base = self._firm_query(filters)
                total = await session.scalar(
                    select(func.count()).select_from(base.subquery())
                )
                stmt = (
                    base.order_by(FirmModel.created_at.desc(), FirmModel.id)
                    .offset(offset)
                    .limit(limit)
                )
                models = (await session.execute(stmt)).scalars().all()
                ids = [m.id for m in models]
                deals = await self._grouped_counts(session, DealModel.owner_firm_id, ids)
                sent = await self._grouped_counts(session, InvitationModel.from_firm_id, ids)
                received = await self._grouped_counts(session, InvitationModel.to_firm_id, ids)
                ndas = await self._grouped_counts(session, NDAModel.firm_id, ids)
                summaries = [
                    FirmSummary(
                        firm=_model_to_firm(m),
                        counts=FirmCounts(
                            deals=deals.get(m.id, 0),
                            sent_invitations=sent.get(m.id, 0),
                            received_invitations=received.get(m.id, 0),
                            ndas=ndas.get(m.id, 0),
                        ),
                    )
                    for m in models
                ]
                return summaries, int(total or 0)

    @staticmethod
    async def _grouped_counts(session: AsyncSession, column, ids: list[uuid.UUID]) -> dict:
        if not ids:
            return {}
        stmt = (
            select(column, func.count())
            .where(column.in_(ids))
            .group_by(column)
        )
        result = await session.execute(stmt)
        return {row[0]: int(row[1]) for row in result.all()}

    async def get_firm_counts(self, firm_id: str) -> FirmCounts:
        firm_uuid = _to_uuid(firm_id)
        if firm_uuid is None:
            return FirmCounts()
        with _store_errors("get_firm_counts"):
            async for session in self._session_factory():
                ids = [firm_uuid]
                deals = await self._grouped_counts(session, DealModel.owner_firm_id, ids)
                sent = await self._grouped_counts(session, InvitationModel.from_firm_id, ids)
                received = await self._grouped_counts(session, InvitationModel.to_firm_id, ids)
                ndas = await self._grouped_counts(session, NDAModel.firm_id, ids)
                return FirmCounts(
                    deals=deals.get(firm_uuid, 0),
                    sent_invitations=sent.get(firm_uuid, 0),
                    received_invitations=received.get(firm_uuid, 0),
                    ndas=ndas.get(firm_uuid, 0),
                )

    async def _update_firm(self, firm_id: str, operation: str, **values) -> FirmRead | None:
        firm_uuid = _to_uuid(firm_id)
        if firm_uuid is None:
            return None
        with _store_errors(operation):
            async for session in self._session_factory():
                model = await session.get(FirmModel, firm_uuid)
                if model is None:
                    return None
                for key, value in values.items():
                    setattr(model, key, value)
                model.updated_at = datetime.now(timezone.utc)
                await session.commit()
                await session.refresh(model)
                return _model_to_firm(model)

    async def update_firm_profile(self, firm_id: str, profile: FirmProfile) -> FirmRead | None:
        return await self._update_firm(
            firm_id, "update_firm_profile", profile=profile.model_dump(mode="json")
        )

    async def update_firm_status(self, firm_id: str, status: FirmStatus) -> FirmRead | None:
        return await self._update_firm(firm_id, "update_firm_status", status=status.value)

    async def update_firm_role(self, firm_id: str, role: FirmRole) -> FirmRead | None:
        return await self._update_firm(firm_id, "update_firm_role", role=role.value)

    async def update_firm_password(self, firm_id: str, password_hash: str) -> FirmRead | None:
        return await self._update_firm(
            firm_id, "update_firm_password", password_hash=password_hash
        )

    async def delete_firm(self, firm_id: str) -> bool:
        """Hard-delete a firm.

        Owned deals, invitations and NDAs go with it through ON DELETE
        CASCADE; the firm id is also removed from other deals' membership
        lists in the same transaction.
        """
        firm_uuid = _to_uuid(firm_id)
        if firm_uuid is None:
            return False
        member = literal(str(firm_uuid), String)
        with _store_errors("delete_firm"):
            async for session in self._session_factory():
                async with session.begin():
                    result = await session.execute(
                        delete(FirmModel).where(FirmModel.id == firm_uuid)
                    )
                    if result.rowcount == 0:
                        return False
                    await session.execute(
                        update(DealModel)
                        .where(DealModel.syndicate_members.contains([str(firm_uuid)]))
                        .values(syndicate_members=DealModel.syndicate_members.op("-")(member))
                    )
                    await session.execute(
                        update(DealModel)
                        .where(DealModel.invited_firms.contains([str(firm_uuid)]))
                        .values(invited_firms=DealModel.invited_firms.op("-")(member))
                    )
                return True

    # ── Deals ───────────────────────────────────────────────────────────────

    async def create_deal(self, owner_firm_id: str, data: DealCreate) -> DealRead:
        with _store_errors("create_deal"):
            async for session in self._session_factory():
                model = DealModel(
                    owner_firm_id=uuid.UUID(owner_firm_id),
                    deal_name=data.deal_name,
                    sector=data.sector,
                    jurisdiction=data.jurisdiction,
                    deal_type=data.deal_type,
                    target_amount=data.target_amount,
                    description=data.description,
                    target_investor_profile=data.target_investor_profile,
                    status=DealStatus.DRAFT.value,
                    syndicate_members=[],
                    invited_firms=[],
                )
                session.add(model)
                await session.commit()
                await session.refresh(model)
                return _model_to_deal(model)

    async def get_deal(self, deal_id: str) -> DealRead | None:
        deal_uuid = _to_uuid(deal_id)
        if deal_uuid is None:
            return None
        with _store_errors("get_deal"):
            async for session in self._session_factory():
                model = await session.get(DealModel, deal_uuid)
                if model is None:
                    return None
                return _model_to_deal(model)

    async def list_deals(self, filters: DealFilter | None = None) -> list[DealRead]:
        """List deals newest first, with optional owner, invited-firm and age filters."""
        with _store_errors("list_deals"):
            async for session in self._session_factory():
                stmt = select(DealModel)
                if filters is not None:
                    if filters.owner_firm_id is not None:
                        owner = _to_uuid(filters.owner_firm_id)
                        if owner is None:
                            return []
                        stmt = stmt.where(DealModel.owner_firm_id == owner)
                    if filters.invited_firm_id is not None:
                        stmt = stmt.where(
                            DealModel.invited_firms.contains([filters.invited_firm_id])
                        )
                    if filters.created_since is not None:
                        stmt = stmt.where(DealModel.created_at >= filters.created_since)
                stmt = stmt.order_by(DealModel.created_at.desc())
                result = await session.execute(stmt)
                return [_model_to_deal(m) for m in result.scalars().all()]

    async def update_deal(self, deal_id: str, data: DealUpdate) -> DealRead | None:
        """Apply the non-None fields of ``data``; None if the deal is missing."""
        deal_uuid = _to_uuid(deal_id)
        if deal_uuid is None:
            return None
        with _store_errors("update_deal"):
            async for session in self._session_factory():
                model = await session.get(DealModel, deal_uuid)
                if model is None:
                    return None

                update_data = data.model_dump(exclude_none=True)
                for key, value in update_data.items():
                    if key == "status":
                        value = DealStatus(value).value
                    setattr(model, key, value)

                model.updated_at = datetime.now(timezone.utc)
                await session.commit()
                await session.refresh(model)
                return _model_to_deal(model)

    async def set_invited_firms(
        self, deal_id: str, firm_ids: list[str], status: DealStatus
    ) -> DealRead | None:
        deal_uuid = _to_uuid(deal_id)
        if deal_uuid is None:
            return None
        with _store_errors("set_invited_firms"):
            async for session in self._session_factory():
                model = await session.get(DealModel, deal_uuid)
                if model is None:
                    return None
                model.invited_firms = list(firm_ids)
                model.status = status.value
                model.updated_at = datetime.now(timezone.utc)
                await session.commit()
                await session.refresh(model)
                return _model_to_deal(model)

    # ── Invitations ─────────────────────────────────────────────────────────

    async def create_invitation(self, data: InvitationCreate) -> InvitationRead:
        """Insert a pending invitation.

        Raises:
            ConflictError: If the pair already has a pending invitation.
        """
        with _store_errors("create_invitation"):
            async for session in self._session_factory():
                model = InvitationModel(
                    deal_id=uuid.UUID(data.deal_id),
                    from_firm_id=uuid.UUID(data.from_firm_id),
                    to_firm_id=uuid.UUID(data.to_firm_id),
                    message=data.message,
                    status=InvitationStatus.PENDING.value,
                )
                session.add(model)
                try:
                    await session.commit()
                except IntegrityError as exc:
                    await session.rollback()
                    raise ConflictError(
                        "A pending invitation already exists for this firm"
                    ) from exc
                await session.refresh(model)
                return _model_to_invitation(model)

    async def get_invitation(self, invitation_id: str) -> InvitationRead | None:
        invitation_uuid = _to_uuid(invitation_id)
        if invitation_uuid is None:
            return None
        with _store_errors("get_invitation"):
            async for session in self._session_factory():
                model = await session.get(InvitationModel, invitation_uuid)
                if model is None:
                    return None
                return _model_to_invitation(model)

    async def list_invitations(self, filters: InvitationFilter) -> list[InvitationRead]:
        """List invitations newest first."""
        with _store_errors("list_invitations"):
            async for session in self._session_factory():
                stmt = select(InvitationModel)
                for field_name in ("deal_id", "from_firm_id", "to_firm_id"):
                    value = getattr(filters, field_name)
                    if value is None:
                        continue
                    parsed = _to_uuid(value)
                    if parsed is None:
                        return []
                    stmt = stmt.where(getattr(InvitationModel, field_name) == parsed)
                if filters.status is not None:
                    stmt = stmt.where(InvitationModel.status == filters.status.value)
                stmt = stmt.order_by(InvitationModel.created_at.desc())
                result = await session.execute(stmt)
                return [_model_to_invitation(m) for m in result.scalars().all()]

    async def record_invitation_response(
        self,
        invitation_id: str,
        status: InvitationStatus,
        responded_at: datetime,
        sign_nda: bool,
    ) -> InvitationRead | None:
        """Move a pending invitation to ``status`` in one transaction.

        The update only matches while the invitation is still pending, so of
        two racing responses exactly one wins. When ``sign_nda`` is set on an
        acceptance, the deal row is locked, the responder is unioned into its
        syndicate members and an NDA row is inserted (a no-op if one already
        exists for the pair).

        Returns:
            The updated invitation, or None if it was missing or no longer
            pending.
        """
        invitation_uuid = _to_uuid(invitation_id)
        if invitation_uuid is None:
            return None
        with _store_errors("record_invitation_response"):
            async for session in self._session_factory():
                async with session.begin():
                    stmt = (
                        update(InvitationModel)
                        .where(
                            InvitationModel.id == invitation_uuid,
                            InvitationModel.status == InvitationStatus.PENDING.value,
                        )
                        .values(status=status.value, responded_at=responded_at)
                        .returning(InvitationModel)
                    )
                    model = (await session.execute(stmt)).scalar_one_or_none()
                    if model is None:
                        return None

                    if status == InvitationStatus.ACCEPTED and sign_nda:
                        await self._add_syndicate_member(
                            session, model.deal_id, model.to_firm_id, responded_at
                        )
                    invitation = _model_to_invitation(model)
                return invitation

    @staticmethod
    async def _add_syndicate_member(
        session: AsyncSession,
        deal_id: uuid.UUID,
        firm_id: uuid.UUID,
        signed_at: datetime,
    ) -> None:
        deal_stmt = select(DealModel).where(DealModel.id == deal_id).with_for_update()
        deal = (await session.execute(deal_stmt)).scalar_one_or_none()
        if deal is None:
            return

        member = str(firm_id)
        members = list(deal.syndicate_members or [])
        if member not in members:
            deal.syndicate_members = [*members, member]
            deal.updated_at = datetime.now(timezone.utc)

        nda_stmt = (
            pg_insert(NDAModel)
            .values(deal_id=deal_id, firm_id=firm_id, signed_at=signed_at)
            .on_conflict_do_nothing(constraint="uq_nda_deal_firm")
        )
        await session.execute(nda_stmt)

    # ── NDAs ────────────────────────────────────────────────────────────────

    async def list_ndas(
        self, deal_id: str | None = None, firm_id: str | None = None
    ) -> list[NDARead]:
        with _store_errors("list_ndas"):
            async for session in self._session_factory():
                stmt = select(NDAModel)
                for column, value in ((NDAModel.deal_id, deal_id), (NDAModel.firm_id, firm_id)):
                    if value is None:
                        continue
                    parsed = _to_uuid(value)
                    if parsed is None:
                        return []
                    stmt = stmt.where(column == parsed)
                result = await session.execute(stmt.order_by(NDAModel.signed_at))
                return [_model_to_nda(m) for m in result.scalars().all()]

    # ── Admin ───────────────────────────────────────────────────────────────

    async def get_platform_counts(self) -> PlatformCounts:
        """Collect the raw counts behind the admin statistics."""
        with _store_errors("get_platform_counts"):
            async for session in self._session_factory():
                firm_status = dict(
                    (await session.execute(
                        select(FirmModel.status, func.count()).group_by(FirmModel.status)
                    )).all()
                )
                deal_status = dict(
                    (await session.execute(
                        select(DealModel.status, func.count()).group_by(DealModel.status)
                    )).all()
                )
                invitation_status = dict(
                    (await session.execute(
                        select(InvitationModel.status, func.count()).group_by(
                            InvitationModel.status
                        )
                    )).all()
                )
                total_ndas = await session.scalar(select(func.count()).select_from(NDAModel))
                return PlatformCounts(
                    total_firms=sum(firm_status.values()),
                    active_firms=firm_status.get(FirmStatus.ACTIVE.value, 0),
                    suspended_firms=firm_status.get(FirmStatus.SUSPENDED.value, 0),
                    total_deals=sum(deal_status.values()),
                    draft_deals=deal_status.get(DealStatus.DRAFT.value, 0),
                    total_invitations=sum(invitation_status.values()),
                    accepted_invitations=invitation_status.get(
                        InvitationStatus.ACCEPTED.value, 0
                    ),
                    declined_invitations=invitation_status.get(
                        InvitationStatus.DECLINED.value, 0
                    ),
                    total_ndas=int(total_ndas or 0),
                )

    async def list_invitation_facts(
        self, created_since: datetime | None = None
    ) -> list[InvitationFact]:
        """Invitations joined with their deal's sector, jurisdiction and size, oldest first."""
        with _store_errors("list_invitation_facts"):
            async for session in self._session_factory():
                stmt = select(
                    InvitationModel.id,
                    InvitationModel.status,
                    InvitationModel.created_at,
                    InvitationModel.responded_at,
                    DealModel.sector,
                    DealModel.jurisdiction,
                    DealModel.target_amount,
                ).join(DealModel, DealModel.id == InvitationModel.deal_id)
                if created_since is not None:
                    stmt = stmt.where(InvitationModel.created_at >= created_since)
                stmt = stmt.order_by(InvitationModel.created_at, InvitationModel.id)
                rows = (await session.execute(stmt)).all()
                return [
                    InvitationFact(
                        invitation_id=str(row.id),
                        status=InvitationStatus(row.status),
                        created_at=row.created_at,
                        responded_at=row.responded_at,
                        sector=row.sector,
                        jurisdiction=row.jurisdiction,
                        target_amount=row.target_amount,
                    )
                    for row in rows
                ]

    async def list_firm_activity(self) -> list[FirmActivity]:
        """Deal and invitation counts for every firm with any activity, oldest firm first."""

        def count_by(column):
            return (
                select(column.label("firm_id"), func.count().label("total"))
                .group_by(column)
                .subquery()
            )

        deals = count_by(DealModel.owner_firm_id)
        sent = count_by(InvitationModel.from_firm_id)
        received = count_by(InvitationModel.to_firm_id)

        with _store_errors("list_firm_activity"):
            async for session in self._session_factory():
                stmt = (
                    select(
                        FirmModel.id,
                        FirmModel.firm_name,
                        FirmModel.email,
                        func.coalesce(deals.c.total, 0).label("deals_created"),
                        func.coalesce(sent.c.total, 0).label("invitations_sent"),
                        func.coalesce(received.c.total, 0).label("invitations_received"),
                    )
                    .outerjoin(deals, deals.c.firm_id == FirmModel.id)
                    .outerjoin(sent, sent.c.firm_id == FirmModel.id)
                    .outerjoin(received, received.c.firm_id == FirmModel.id)
                    .where(
                        or_(
                            deals.c.total.is_not(None),
                            sent.c.total.is_not(None),
                            received.c.total.is_not(None),
                        )
                    )
                    .order_by(FirmModel.created_at, FirmModel.id)
                )
                rows = (await session.execute(stmt)).all()
                return [
                    FirmActivity(
                        firm_id=str(row.id),
                        firm_name=row.firm_name,
                        email=row.email,
                        deals_created=int(row.deals_created),
                        invitations_sent=int(row.invitations_sent),
                        invitations_received=int(row.invitations_received),
                    )
                    for row in rows
                ]

    # ── Interest Registrations ──────────────────────────────────────────────

    async def create_interest_registration(self, data: InterestCreate) -> InterestRead:
        with _store_errors("create_interest_registration"):
            async for session in self._session_factory():
                model = InterestRegistrationModel(
                    name=data.name,
                    email=data.email.lower(),
                    company=data.company,
                    message=data.message,
                )
                session.add(model)
                await session.commit()
                await session.refresh(model)
                return _model_to_interest(model)

    async def list_interest_registrations(self) -> list[InterestRead]:
        with _store_errors("list_interest_registrations"):
            async for session in self._session_factory():
                stmt = select(InterestRegistrationModel).order_by(
                    InterestRegistrationModel.created_at.desc()
                )
                result = await session.execute(stmt)
                return [_model_to_interest(m) for m in result.scalars().all()]
