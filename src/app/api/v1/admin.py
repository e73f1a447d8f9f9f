"""Admin console API: member management, platform statistics, analytics
and the interest list.

Every endpoint requires an active admin or superadmin firm. Role changes,
admin creation and deletes require superadmin.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from src.app.api.deps import get_store, require_admin, require_superadmin
from src.app.api.errors import to_http_exception
from src.app.schemas.syndicate import (
    AdminFirmDetailResponse,
    AdminFirmListResponse,
    AdminFirmResponse,
    CreateAdminRequest,
    DealAnalyticsResponse,
    DeleteFirmResponse,
    FirmActionResponse,
    FirmActivityReportResponse,
    FirmResponse,
    InterestResponse,
    InvitationAnalyticsResponse,
    MatchingPerformanceResponse,
    PaginationResponse,
    PlatformStatsResponse,
    RoleUpdateRequest,
    StatusUpdateRequest,
)
from src.app.syndicate.admin import (
    DEFAULT_ACTIVITY_LIMIT,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AdminService,
)
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import (
    AnalyticsTimeframe,
    FirmCreate,
    FirmFilter,
    FirmRead,
    FirmRole,
    FirmStatus,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/firms", response_model=AdminFirmListResponse)
async def list_firms(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None, description="Match firm name or email"),
    firm_status: FirmStatus | None = Query(default=None, alias="status"),
    role: FirmRole | None = Query(default=None),
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> AdminFirmListResponse:
    """List firms with pagination and optional search/status/role filters."""
    filters = FirmFilter(search=search or None, status=firm_status, role=role)
    result = await AdminService(store).list_firms(page=page, limit=limit, filters=filters)
    return AdminFirmListResponse(
        firms=[AdminFirmResponse.from_summary(s) for s in result.firms],
        pagination=PaginationResponse.model_validate(result.pagination.model_dump()),
    )


@router.get("/firms/{firm_id}", response_model=AdminFirmDetailResponse)
async def get_firm(
    firm_id: str,
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> AdminFirmDetailResponse:
    """Firm details with owned deals and related-record counts."""
    try:
        detail = await AdminService(store).get_firm_detail(firm_id)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return AdminFirmDetailResponse.from_detail(detail)


@router.patch("/firms/{firm_id}/status", response_model=FirmActionResponse)
async def update_firm_status(
    firm_id: str,
    body: StatusUpdateRequest,
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> FirmActionResponse:
    """Activate, suspend or deactivate a firm."""
    try:
        firm = await AdminService(store).update_status(admin, firm_id, body.status)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return FirmActionResponse(
        message=f"Firm status updated to {body.status.value}",
        firm=FirmResponse.from_domain(firm),
    )


@router.patch("/firms/{firm_id}/role", response_model=FirmActionResponse)
async def update_firm_role(
    firm_id: str,
    body: RoleUpdateRequest,
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_superadmin),
) -> FirmActionResponse:
    """Change a firm's platform role (superadmin only)."""
    try:
        firm = await AdminService(store).update_role(admin, firm_id, body.role)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return FirmActionResponse(
        message=f"Firm role updated to {body.role.value}",
        firm=FirmResponse.from_domain(firm),
    )


@router.delete("/firms/{firm_id}", response_model=DeleteFirmResponse)
async def delete_firm(
    firm_id: str,
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_superadmin),
) -> DeleteFirmResponse:
    """Delete a firm and everything it owns (superadmin only)."""
    try:
        firm = await AdminService(store).delete_firm(admin, firm_id)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return DeleteFirmResponse(
        message=f'Firm "{firm.firm_name}" has been deleted',
        deleted_firm_id=firm.id,
    )


@router.post(
    "/create-admin",
    response_model=FirmActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_admin(
    body: CreateAdminRequest,
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_superadmin),
) -> FirmActionResponse:
    """Create an admin or superadmin account (superadmin only)."""
    data = FirmCreate(firm_name=body.firm_name, email=body.email, password=body.password)
    try:
        firm = await AdminService(store).create_admin(admin, data, body.role)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc
    return FirmActionResponse(
        message=f"{body.role.value.capitalize()} account created",
        firm=FirmResponse.from_domain(firm),
    )


@router.get("/stats", response_model=PlatformStatsResponse)
async def platform_stats(
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> PlatformStatsResponse:
    """Platform-wide counts and invitation acceptance rate."""
    stats = await AdminService(store).stats()
    return PlatformStatsResponse.model_validate(stats.model_dump())


@router.get("/interest", response_model=list[InterestResponse])
async def list_interest_registrations(
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> list[InterestResponse]:
    """Interest form submissions, newest first."""
    registrations = await AdminService(store).list_interest_registrations()
    return [InterestResponse.from_domain(r) for r in registrations]


# ── Analytics ───────────────────────────────────────────────────────────────


@router.get("/analytics/deals", response_model=DealAnalyticsResponse)
async def deal_analytics(
    timeframe: AnalyticsTimeframe = Query(default=AnalyticsTimeframe.MONTH),
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> DealAnalyticsResponse:
    """Deal volume, averages and status/sector/jurisdiction mix."""
    report = await AdminService(store).deal_analytics(timeframe)
    return DealAnalyticsResponse.from_domain(report)


@router.get("/analytics/invitations", response_model=InvitationAnalyticsResponse)
async def invitation_analytics(
    timeframe: AnalyticsTimeframe = Query(default=AnalyticsTimeframe.MONTH),
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> InvitationAnalyticsResponse:
    """Invitation outcomes, response time and acceptance by sector."""
    report = await AdminService(store).invitation_analytics(timeframe)
    return InvitationAnalyticsResponse.from_domain(report)


@router.get("/analytics/firms/activity", response_model=FirmActivityReportResponse)
async def firm_activity(
    limit: int = Query(default=DEFAULT_ACTIVITY_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> FirmActivityReportResponse:
    """Most active deal creators and inviters."""
    report = await AdminService(store).firm_activity(limit)
    return FirmActivityReportResponse.from_domain(report)


@router.get("/analytics/algorithm", response_model=MatchingPerformanceResponse)
async def matching_performance(
    store: SyndicateStore = Depends(get_store),
    admin: FirmRead = Depends(require_admin),
) -> MatchingPerformanceResponse:
    """Matching accuracy measured by invitation acceptance."""
    report = await AdminService(store).matching_performance()
    return MatchingPerformanceResponse.from_domain(report)
