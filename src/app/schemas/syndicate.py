"""HTTP request and response schemas for the syndicate endpoints.

Wire format is camelCase. Each response schema has a ``from_domain``
constructor so the route modules never hand-copy fields.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field, model_validator

from src.app.schemas.common import CamelModel
from src.app.syndicate.schemas import (
    AnalyticsTimeframe,
    DealAnalytics,
    DealCreate,
    DealRead,
    DealSizeRange,
    DealStatus,
    DealUpdate,
    FirmActivityReport,
    FirmDetail,
    FirmProfile,
    FirmProfileUpdate,
    FirmRead,
    FirmRole,
    FirmStatus,
    FirmSummary,
    InterestRead,
    InvitationAnalytics,
    InvitationRead,
    InvitationStatus,
    InvitationView,
    MatchingPerformance,
    Recommendation,
)


# ── Firms ───────────────────────────────────────────────────────────────────


class DealSizeBody(CamelModel):
    min: float = Field(default=0, ge=0)
    max: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> DealSizeBody:
        if self.min > self.max:
            raise ValueError("typicalDealSize.min must not exceed typicalDealSize.max")
        return self

    def to_domain(self) -> DealSizeRange:
        return DealSizeRange(min=self.min, max=self.max)


class ProfileResponse(CamelModel):
    contact_person: str | None = None
    jurisdictions: list[str] = Field(default_factory=list)
    sector_focus: list[str] = Field(default_factory=list)
    typical_deal_size: DealSizeBody | None = None
    recent_transactions: list[str] = Field(default_factory=list)
    description: str | None = None

    @classmethod
    def from_domain(cls, profile: FirmProfile) -> ProfileResponse:
        return cls.model_validate(profile.model_dump())


class ProfileUpdateRequest(CamelModel):
    """Partial profile update; omitted fields keep their current value."""

    contact_person: str | None = Field(default=None, max_length=200)
    jurisdictions: list[str] | None = None
    sector_focus: list[str] | None = None
    typical_deal_size: DealSizeBody | None = None
    recent_transactions: list[str] | None = None
    description: str | None = None

    def to_domain(self) -> FirmProfileUpdate:
        size = self.typical_deal_size
        return FirmProfileUpdate(
            contact_person=self.contact_person,
            jurisdictions=self.jurisdictions,
            sector_focus=self.sector_focus,
            typical_deal_size=size.to_domain() if size is not None else None,
            recent_transactions=self.recent_transactions,
            description=self.description,
        )


class FirmResponse(CamelModel):
    """Public view of a firm (never includes credentials)."""

    id: str
    firm_name: str
    email: str
    role: FirmRole
    status: FirmStatus
    profile: ProfileResponse
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, firm: FirmRead) -> FirmResponse:
        return cls(
            id=firm.id,
            firm_name=firm.firm_name,
            email=firm.email,
            role=firm.role,
            status=firm.status,
            profile=ProfileResponse.from_domain(firm.profile),
            created_at=firm.created_at,
            updated_at=firm.updated_at,
        )


# ── Deals ───────────────────────────────────────────────────────────────────


class DealCreateRequest(CamelModel):
    deal_name: str = Field(..., min_length=1, max_length=300)
    sector: str = Field(..., min_length=1, max_length=200)
    jurisdiction: str = Field(..., min_length=1, max_length=200)
    deal_type: str = Field(..., min_length=1, max_length=200)
    target_amount: float = Field(..., gt=0)
    description: str | None = None
    target_investor_profile: str | None = None

    def to_domain(self) -> DealCreate:
        return DealCreate.model_validate(self.model_dump())


class DealUpdateRequest(CamelModel):
    deal_name: str | None = Field(default=None, min_length=1, max_length=300)
    sector: str | None = Field(default=None, min_length=1, max_length=200)
    jurisdiction: str | None = Field(default=None, min_length=1, max_length=200)
    deal_type: str | None = Field(default=None, min_length=1, max_length=200)
    target_amount: float | None = Field(default=None, gt=0)
    description: str | None = None
    target_investor_profile: str | None = None
    status: DealStatus | None = None

    def to_domain(self) -> DealUpdate:
        return DealUpdate.model_validate(self.model_dump(exclude_unset=True))


class DealResponse(CamelModel):
    id: str
    owner_firm_id: str
    deal_name: str
    sector: str
    jurisdiction: str
    deal_type: str
    target_amount: float
    description: str | None = None
    target_investor_profile: str | None = None
    status: DealStatus
    syndicate_members: list[str] = Field(default_factory=list)
    invited_firms: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, deal: DealRead) -> DealResponse:
        return cls.model_validate(deal.model_dump())


# ── Syndicate ───────────────────────────────────────────────────────────────


class RecommendRequest(CamelModel):
    deal_id: str
    syndicate_size: int | None = None


class DealSummaryResponse(CamelModel):
    id: str
    name: str
    sector: str
    target_amount: float


class RecommendationResponse(CamelModel):
    firm_id: str
    firm_name: str
    score: int
    reasons: list[str]
    profile: ProfileResponse

    @classmethod
    def from_domain(cls, rec: Recommendation) -> RecommendationResponse:
        return cls(
            firm_id=rec.firm_id,
            firm_name=rec.firm_name,
            score=rec.score,
            reasons=list(rec.reasons),
            profile=ProfileResponse.from_domain(rec.profile),
        )


class RecommendResponse(CamelModel):
    deal: DealSummaryResponse
    recommendations: list[RecommendationResponse]


class BuildSyndicateRequest(CamelModel):
    deal_id: str
    selected_firms: list[str] = Field(default_factory=list)


class BuildSyndicateResponse(CamelModel):
    message: str
    deal: DealResponse


# ── Invitations ─────────────────────────────────────────────────────────────


class SendInvitationRequest(CamelModel):
    deal_id: str
    firm_id: str
    message: str | None = Field(default=None, max_length=5000)


class RespondInvitationRequest(CamelModel):
    invitation_id: str
    response: str
    nda_signed: bool = False


class InvitationResponse(CamelModel):
    id: str
    deal_id: str
    from_firm_id: str
    to_firm_id: str
    message: str | None = None
    status: InvitationStatus
    created_at: datetime | None = None
    responded_at: datetime | None = None

    @classmethod
    def from_domain(cls, invitation: InvitationRead) -> InvitationResponse:
        return cls.model_validate(invitation.model_dump())


class InvitationActionResponse(CamelModel):
    message: str
    invitation: InvitationResponse


class DealRefResponse(CamelModel):
    id: str
    deal_name: str
    sector: str | None = None


class FirmRefResponse(CamelModel):
    id: str
    firm_name: str


class InvitationViewResponse(InvitationResponse):
    """Invitation enriched with its deal and the counterpart firm."""

    deal: DealRefResponse | None = None
    from_firm: FirmRefResponse | None = None
    to_firm: FirmRefResponse | None = None

    @classmethod
    def from_view(cls, view: InvitationView) -> InvitationViewResponse:
        return cls(
            **view.invitation.model_dump(),
            deal=DealRefResponse(
                id=view.deal.id, deal_name=view.deal.name, sector=view.deal.sector
            )
            if view.deal
            else None,
            from_firm=FirmRefResponse(id=view.from_firm.id, firm_name=view.from_firm.name)
            if view.from_firm
            else None,
            to_firm=FirmRefResponse(id=view.to_firm.id, firm_name=view.to_firm.name)
            if view.to_firm
            else None,
        )


# ── Admin ───────────────────────────────────────────────────────────────────


class FirmCountsResponse(CamelModel):
    deals: int = 0
    sent_invitations: int = 0
    received_invitations: int = 0
    ndas: int = 0


class AdminFirmResponse(FirmResponse):
    counts: FirmCountsResponse

    @classmethod
    def from_summary(cls, summary: FirmSummary) -> AdminFirmResponse:
        base = FirmResponse.from_domain(summary.firm)
        return cls(
            **base.model_dump(),
            counts=FirmCountsResponse.model_validate(summary.counts.model_dump()),
        )


class PaginationResponse(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AdminFirmListResponse(CamelModel):
    firms: list[AdminFirmResponse]
    pagination: PaginationResponse


class AdminFirmDetailResponse(AdminFirmResponse):
    deals: list[DealResponse] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: FirmDetail) -> AdminFirmDetailResponse:
        summary = AdminFirmResponse.from_summary(
            FirmSummary(firm=detail.firm, counts=detail.counts)
        )
        return cls(
            **summary.model_dump(),
            deals=[DealResponse.from_domain(d) for d in detail.deals],
        )


class StatusUpdateRequest(CamelModel):
    status: FirmStatus


class RoleUpdateRequest(CamelModel):
    role: FirmRole


class CreateAdminRequest(CamelModel):
    firm_name: str = Field(..., min_length=1, max_length=300)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: FirmRole = FirmRole.ADMIN


class FirmActionResponse(CamelModel):
    message: str
    firm: FirmResponse


class DeleteFirmResponse(CamelModel):
    message: str
    deleted_firm_id: str


class FirmStatsResponse(CamelModel):
    total: int
    active: int
    suspended: int
    inactive: int


class DealStatsResponse(CamelModel):
    total: int
    active: int
    draft: int


class InvitationStatsResponse(CamelModel):
    total: int
    accepted: int
    declined: int
    pending: int
    acceptance_rate: float


class NDAStatsResponse(CamelModel):
    total: int


class PlatformStatsResponse(CamelModel):
    firms: FirmStatsResponse
    deals: DealStatsResponse
    invitations: InvitationStatsResponse
    ndas: NDAStatsResponse


# ── Analytics ───────────────────────────────────────────────────────────────


class DealAnalyticsSummaryResponse(CamelModel):
    total_deals: int
    total_volume: float
    average_deal_size: float
    average_syndicate_size: float


class DealBreakdownResponse(CamelModel):
    by_status: dict[str, int]
    by_sector: dict[str, int]
    by_jurisdiction: dict[str, int]


class RecentDealResponse(CamelModel):
    id: str
    deal_name: str
    target_amount: float
    sector: str
    status: DealStatus
    syndicate_size: int
    created_at: datetime | None = None


class DealAnalyticsResponse(CamelModel):
    timeframe: AnalyticsTimeframe
    summary: DealAnalyticsSummaryResponse
    breakdown: DealBreakdownResponse
    recent_deals: list[RecentDealResponse]

    @classmethod
    def from_domain(cls, report: DealAnalytics) -> DealAnalyticsResponse:
        return cls.model_validate(report.model_dump())


class InvitationAnalyticsSummaryResponse(CamelModel):
    total: int
    accepted: int
    declined: int
    pending: int
    acceptance_rate: float
    avg_response_time_hours: float


class SectorAcceptanceResponse(CamelModel):
    sector: str
    total: int
    accepted: int
    acceptance_rate: float


class InvitationAnalyticsResponse(CamelModel):
    timeframe: AnalyticsTimeframe
    summary: InvitationAnalyticsSummaryResponse
    by_sector: list[SectorAcceptanceResponse]

    @classmethod
    def from_domain(cls, report: InvitationAnalytics) -> InvitationAnalyticsResponse:
        return cls.model_validate(report.model_dump())


class FirmActivityResponse(CamelModel):
    firm_id: str
    firm_name: str
    email: str
    deals_created: int
    invitations_sent: int
    invitations_received: int


class FirmActivityReportResponse(CamelModel):
    top_deal_creators: list[FirmActivityResponse]
    top_inviters: list[FirmActivityResponse]

    @classmethod
    def from_domain(cls, report: FirmActivityReport) -> FirmActivityReportResponse:
        return cls.model_validate(report.model_dump())


class MatchingOverallResponse(CamelModel):
    accuracy: float
    total_invitations: int
    accepted_invitations: int


class SectorAccuracyResponse(CamelModel):
    sector: str
    accuracy: float
    sample_size: int


class SizeBandAccuracyResponse(CamelModel):
    band: str
    accuracy: float
    sample_size: int


class MatchingInsightResponse(CamelModel):
    level: str
    message: str


class MatchingPerformanceResponse(CamelModel):
    overall: MatchingOverallResponse
    by_sector: list[SectorAccuracyResponse]
    by_deal_size: list[SizeBandAccuracyResponse]
    insights: list[MatchingInsightResponse]

    @classmethod
    def from_domain(cls, report: MatchingPerformance) -> MatchingPerformanceResponse:
        return cls.model_validate(report.model_dump())


# ── Interest ────────────────────────────────────────────────────────────────


class InterestRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    company: str = Field(..., min_length=1, max_length=300)
    message: str | None = Field(default=None, max_length=5000)


class InterestResponse(CamelModel):
    id: str
    name: str
    email: str
    company: str
    message: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, registration: InterestRead) -> InterestResponse:
        return cls.model_validate(registration.model_dump())
