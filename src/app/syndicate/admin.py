"""Admin console operations: member management, platform statistics and
analytics.

Role checks (admin vs superadmin) happen in the API dependencies; this
module enforces the rules that depend on the acting firm, such as never
suspending, demoting or deleting yourself.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from src.app.core.security import hash_password
from src.app.syndicate.analytics import (
    acceptance_rate,
    matching_performance,
    rank_firm_activity,
    summarize_deals,
    summarize_invitations,
    timeframe_start,
)
from src.app.syndicate.errors import ConflictError, NotFoundError, ValidationError
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import (
    AnalyticsTimeframe,
    DealAnalytics,
    DealFilter,
    DealStats,
    DealSizeRange,
    FirmActivityReport,
    FirmCreate,
    FirmDetail,
    FirmFilter,
    FirmPage,
    FirmProfile,
    FirmRead,
    FirmRole,
    FirmStats,
    FirmStatus,
    InterestRead,
    InvitationAnalytics,
    InvitationStats,
    MatchingPerformance,
    NDAStats,
    Pagination,
    PlatformStats,
)

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_ACTIVITY_LIMIT = 20


class AdminService:
    """Member management for admin and superadmin firms.

    Args:
        store: SyndicateStore implementation.
        clock: Returns the current time; analytics windows end here.
    """

    def __init__(
        self,
        store: SyndicateStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def list_firms(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        filters: FirmFilter | None = None,
    ) -> FirmPage:
        """One page of firms, newest first, with related-record counts."""
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        summaries, total = await self._store.list_firm_summaries(
            filters, offset=(page - 1) * limit, limit=limit
        )
        return FirmPage(
            firms=summaries,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )

    async def get_firm_detail(self, firm_id: str) -> FirmDetail:
        firm = await self._target(firm_id)
        deals = await self._store.list_deals(DealFilter(owner_firm_id=firm.id))
        counts = await self._store.get_firm_counts(firm.id)
        return FirmDetail(firm=firm, deals=deals, counts=counts)

    async def _target(self, firm_id: str) -> FirmRead:
        firm = await self._store.get_firm(firm_id)
        if firm is None:
            raise NotFoundError("Firm not found")
        return firm

    async def update_status(
        self, actor: FirmRead, firm_id: str, status: FirmStatus
    ) -> FirmRead:
        """Activate, suspend or deactivate a firm.

        The target is resolved before the self-check so any spelling of the
        admin's own id is caught.

        Raises:
            ValidationError: If the admin tries to deactivate their own firm.
            NotFoundError: If the firm does not exist.
        """
        target = await self._target(firm_id)
        if target.id == actor.id and status != FirmStatus.ACTIVE:
            raise ValidationError("Cannot change your own status")
        updated = await self._store.update_firm_status(target.id, status)
        if updated is None:
            raise NotFoundError("Firm not found")
        logger.info(
            "admin.firm_status_updated",
            actor_id=actor.id,
            firm_id=target.id,
            status=status.value,
        )
        return updated

    async def update_role(self, actor: FirmRead, firm_id: str, role: FirmRole) -> FirmRead:
        target = await self._target(firm_id)
        if target.id == actor.id:
            raise ValidationError("Cannot change your own role")
        updated = await self._store.update_firm_role(target.id, role)
        if updated is None:
            raise NotFoundError("Firm not found")
        logger.info(
            "admin.firm_role_updated",
            actor_id=actor.id,
            firm_id=target.id,
            role=role.value,
        )
        return updated

    async def delete_firm(self, actor: FirmRead, firm_id: str) -> FirmRead:
        """Hard-delete a firm and everything it owns.

        Returns:
            The firm as it was before deletion.
        """
        firm = await self._target(firm_id)
        if firm.id == actor.id:
            raise ValidationError("Cannot delete your own account")
        if not await self._store.delete_firm(firm.id):
            raise NotFoundError("Firm not found")
        logger.warning("admin.firm_deleted", actor_id=actor.id, firm_id=firm.id)
        return firm

    async def create_admin(self, actor: FirmRead, data: FirmCreate, role: FirmRole) -> FirmRead:
        """Create a new admin or superadmin account.

        Raises:
            ValidationError: If ``role`` is not an admin role.
            ConflictError: If the email is already registered.
        """
        if role not in (FirmRole.ADMIN, FirmRole.SUPERADMIN):
            raise ValidationError("Invalid admin role")
        if await self._store.get_firm_credentials(data.email) is not None:
            raise ConflictError("Firm already registered with this email")
        firm = await self._store.create_firm(
            data,
            password_hash=hash_password(data.password),
            role=role,
            profile=FirmProfile(
                contact_person=data.contact_person,
                typical_deal_size=DealSizeRange(min=0, max=0),
            ),
        )
        logger.info("admin.admin_created", actor_id=actor.id, firm_id=firm.id, role=role.value)
        return firm

    async def stats(self) -> PlatformStats:
        counts = await self._store.get_platform_counts()
        pending = (
            counts.total_invitations
            - counts.accepted_invitations
            - counts.declined_invitations
        )
        return PlatformStats(
            firms=FirmStats(
                total=counts.total_firms,
                active=counts.active_firms,
                suspended=counts.suspended_firms,
                inactive=counts.total_firms - counts.active_firms - counts.suspended_firms,
            ),
            deals=DealStats(
                total=counts.total_deals,
                active=counts.total_deals - counts.draft_deals,
                draft=counts.draft_deals,
            ),
            invitations=InvitationStats(
                total=counts.total_invitations,
                accepted=counts.accepted_invitations,
                declined=counts.declined_invitations,
                pending=pending,
                acceptance_rate=acceptance_rate(
                    counts.accepted_invitations, counts.total_invitations
                ),
            ),
            ndas=NDAStats(total=counts.total_ndas),
        )

    async def list_interest_registrations(self) -> list[InterestRead]:
        return await self._store.list_interest_registrations()

    # ── Analytics ───────────────────────────────────────────────────────────

    async def deal_analytics(
        self, timeframe: AnalyticsTimeframe = AnalyticsTimeframe.MONTH
    ) -> DealAnalytics:
        since = timeframe_start(timeframe, self._clock())
        deals = await self._store.list_deals(DealFilter(created_since=since))
        return summarize_deals(timeframe, deals)

    async def invitation_analytics(
        self, timeframe: AnalyticsTimeframe = AnalyticsTimeframe.MONTH
    ) -> InvitationAnalytics:
        since = timeframe_start(timeframe, self._clock())
        facts = await self._store.list_invitation_facts(created_since=since)
        return summarize_invitations(timeframe, facts)

    async def firm_activity(self, limit: int = DEFAULT_ACTIVITY_LIMIT) -> FirmActivityReport:
        entries = await self._store.list_firm_activity()
        return rank_firm_activity(entries, limit=min(max(limit, 1), MAX_PAGE_SIZE))

    async def matching_performance(self) -> MatchingPerformance:
        """Acceptance-based matching accuracy over every invitation ever sent."""
        facts = await self._store.list_invitation_facts()
        return matching_performance(facts)
