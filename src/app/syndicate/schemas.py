"""Pydantic schemas for the syndicate domain -- firms, deals, invitations, NDAs.

Defines all structured types shared by the services, the repository and the
HTTP layer:
- Enums: FirmRole, FirmStatus, DealStatus, InvitationStatus
- Firm profile: DealSizeRange, FirmProfile, FirmProfileUpdate
- Firms: FirmCreate, FirmRead, FirmCredentials, FirmFilter, FirmCounts, FirmSummary
- Deals: DealCreate, DealUpdate, DealRead, DealFilter
- Invitations: InvitationCreate, InvitationRead, InvitationFilter, InvitationView
- NDAs: NDARead
- Matching output: Recommendation
- Admin: FirmPage, FirmDetail, PlatformCounts, PlatformStats
- Analytics: AnalyticsTimeframe, InvitationFact, FirmActivity and the report models
- Interest form: InterestCreate, InterestRead

Domain schemas are snake_case; the API layer owns the camelCase wire format.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


# ── Enums ───────────────────────────────────────────────────────────────────


class FirmRole(str, Enum):
    """Platform role of a firm account."""

    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class FirmStatus(str, Enum):
    """Account status, changed only through the admin console."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class DealStatus(str, Enum):
    """Informal deal lifecycle: draft -> syndicate_building -> active/closed."""

    DRAFT = "draft"
    SYNDICATE_BUILDING = "syndicate_building"
    ACTIVE = "active"
    CLOSED = "closed"


class InvitationStatus(str, Enum):
    """Invitation state: pending until the invitee answers, then terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


def _unique_strings(values: list[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate while preserving first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        item = value.strip()
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


# ── Firm Profile ────────────────────────────────────────────────────────────


class DealSizeRange(BaseModel):
    """Typical ticket size a firm invests in."""

    min: float = Field(default=0.0, ge=0)
    max: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> DealSizeRange:
        if self.min > self.max:
            raise ValueError("typical deal size min must not exceed max")
        return self


class FirmProfile(BaseModel):
    """Matching profile owned and edited by the firm itself."""

    contact_person: str | None = None
    jurisdictions: list[str] = Field(default_factory=list)
    sector_focus: list[str] = Field(default_factory=list)
    typical_deal_size: DealSizeRange | None = None
    recent_transactions: list[str] = Field(default_factory=list)
    description: str | None = None

    @field_validator("jurisdictions", "sector_focus")
    @classmethod
    def _as_set(cls, values: list[str]) -> list[str]:
        return _unique_strings(values)


class FirmProfileUpdate(BaseModel):
    """Partial profile update; None means keep the current value."""

    contact_person: str | None = None
    jurisdictions: list[str] | None = None
    sector_focus: list[str] | None = None
    typical_deal_size: DealSizeRange | None = None
    recent_transactions: list[str] | None = None
    description: str | None = None

    def apply_to(self, profile: FirmProfile) -> FirmProfile:
        """Return a new, re-validated profile with the provided fields applied."""
        merged = profile.model_dump()
        merged.update(self.model_dump(exclude_none=True))
        return FirmProfile.model_validate(merged)


# ── Firms ───────────────────────────────────────────────────────────────────


class FirmCreate(BaseModel):
    """Registration payload for a new firm."""

    firm_name: str = Field(min_length=1, max_length=300)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    contact_person: str | None = None


class FirmRead(BaseModel):
    """Firm as seen by the rest of the system (never carries the password hash)."""

    id: str
    firm_name: str
    email: str
    role: FirmRole = FirmRole.USER
    status: FirmStatus = FirmStatus.ACTIVE
    profile: FirmProfile = Field(default_factory=FirmProfile)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in (FirmRole.ADMIN, FirmRole.SUPERADMIN)

    @property
    def is_active(self) -> bool:
        return self.status == FirmStatus.ACTIVE


class FirmCredentials(BaseModel):
    """Firm plus its stored password hash, used only by the login flow."""

    firm: FirmRead
    password_hash: str


class FirmFilter(BaseModel):
    """Filters for listing firms."""

    search: str | None = None
    status: FirmStatus | None = None
    role: FirmRole | None = None
    exclude_firm_id: str | None = None


class FirmCounts(BaseModel):
    """Related-record counts shown in the admin console."""

    deals: int = 0
    sent_invitations: int = 0
    received_invitations: int = 0
    ndas: int = 0


class FirmSummary(BaseModel):
    """Firm with its related-record counts."""

    firm: FirmRead
    counts: FirmCounts = Field(default_factory=FirmCounts)


# ── Deals ───────────────────────────────────────────────────────────────────


class DealCreate(BaseModel):
    """Schema for creating a deal."""

    deal_name: str = Field(min_length=1, max_length=300)
    sector: str = Field(min_length=1, max_length=200)
    jurisdiction: str = Field(min_length=1, max_length=200)
    deal_type: str = Field(min_length=1, max_length=200)
    target_amount: float = Field(gt=0)
    description: str | None = None
    target_investor_profile: str | None = None


class DealUpdate(BaseModel):
    """Owner-editable deal fields (membership lists are never writable here)."""

    deal_name: str | None = Field(default=None, min_length=1, max_length=300)
    sector: str | None = Field(default=None, min_length=1, max_length=200)
    jurisdiction: str | None = Field(default=None, min_length=1, max_length=200)
    deal_type: str | None = Field(default=None, min_length=1, max_length=200)
    target_amount: float | None = Field(default=None, gt=0)
    description: str | None = None
    target_investor_profile: str | None = None
    status: DealStatus | None = None


class DealRead(BaseModel):
    """Schema for reading a deal (includes all persisted fields)."""

    id: str
    owner_firm_id: str
    deal_name: str
    sector: str
    jurisdiction: str
    deal_type: str
    target_amount: float
    description: str | None = None
    target_investor_profile: str | None = None
    status: DealStatus = DealStatus.DRAFT
    syndicate_members: list[str] = Field(default_factory=list)
    invited_firms: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_visible_to(self, firm_id: str) -> bool:
        """Owner and syndicate members may read the deal."""
        return firm_id == self.owner_firm_id or firm_id in self.syndicate_members


class DealFilter(BaseModel):
    """Filters for listing deals."""

    owner_firm_id: str | None = None
    invited_firm_id: str | None = None
    created_since: datetime | None = None


# ── Invitations ─────────────────────────────────────────────────────────────


class InvitationCreate(BaseModel):
    """Schema for creating an invitation."""

    deal_id: str
    from_firm_id: str
    to_firm_id: str
    message: str | None = None


class InvitationRead(BaseModel):
    """Schema for reading an invitation."""

    id: str
    deal_id: str
    from_firm_id: str
    to_firm_id: str
    message: str | None = None
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime | None = None
    responded_at: datetime | None = None


class InvitationFilter(BaseModel):
    """Filters for listing invitations."""

    deal_id: str | None = None
    from_firm_id: str | None = None
    to_firm_id: str | None = None
    status: InvitationStatus | None = None


class DealRef(BaseModel):
    id: str
    name: str
    sector: str | None = None


class FirmRef(BaseModel):
    id: str
    name: str


class InvitationView(BaseModel):
    """Invitation joined with its deal and the counterpart firm."""

    invitation: InvitationRead
    deal: DealRef | None = None
    from_firm: FirmRef | None = None
    to_firm: FirmRef | None = None


# ── NDAs ────────────────────────────────────────────────────────────────────


class NDARead(BaseModel):
    """Signed NDA for a (deal, firm) pair."""

    id: str
    deal_id: str
    firm_id: str
    signed_at: datetime | None = None


# ── Matching ────────────────────────────────────────────────────────────────


class Recommendation(BaseModel):
    """A scored syndicate candidate for a deal."""

    firm_id: str
    firm_name: str
    score: int
    reasons: list[str] = Field(default_factory=list)
    profile: FirmProfile = Field(default_factory=FirmProfile)


# ── Admin ───────────────────────────────────────────────────────────────────


class PlatformCounts(BaseModel):
    """Raw counts collected from the store."""

    total_firms: int = 0
    active_firms: int = 0
    suspended_firms: int = 0
    total_deals: int = 0
    draft_deals: int = 0
    total_invitations: int = 0
    accepted_invitations: int = 0
    declined_invitations: int = 0
    total_ndas: int = 0


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class FirmPage(BaseModel):
    """One page of the admin firm list."""

    firms: list[FirmSummary]
    pagination: Pagination


class FirmDetail(BaseModel):
    """Admin view of a single firm."""

    firm: FirmRead
    deals: list[DealRead] = Field(default_factory=list)
    counts: FirmCounts = Field(default_factory=FirmCounts)


class FirmStats(BaseModel):
    total: int
    active: int
    suspended: int
    inactive: int


class DealStats(BaseModel):
    total: int
    active: int
    draft: int


class InvitationStats(BaseModel):
    total: int
    accepted: int
    declined: int
    pending: int
    acceptance_rate: float


class NDAStats(BaseModel):
    total: int


class PlatformStats(BaseModel):
    """Platform-wide statistics for the admin dashboard."""

    firms: FirmStats
    deals: DealStats
    invitations: InvitationStats
    ndas: NDAStats


# ── Analytics ───────────────────────────────────────────────────────────────


class AnalyticsTimeframe(str, Enum):
    """Look-back window for the admin analytics reports."""

    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"


class InvitationFact(BaseModel):
    """Invitation joined with the deal fields analytics group by."""

    invitation_id: str
    status: InvitationStatus
    created_at: datetime
    responded_at: datetime | None = None
    sector: str
    jurisdiction: str
    target_amount: float


class FirmActivity(BaseModel):
    """Deal and invitation counts for one firm."""

    firm_id: str
    firm_name: str
    email: str
    deals_created: int = 0
    invitations_sent: int = 0
    invitations_received: int = 0


class DealAnalyticsSummary(BaseModel):
    total_deals: int
    total_volume: float
    average_deal_size: float
    average_syndicate_size: float


class DealBreakdown(BaseModel):
    by_status: dict[str, int] = Field(default_factory=dict)
    by_sector: dict[str, int] = Field(default_factory=dict)
    by_jurisdiction: dict[str, int] = Field(default_factory=dict)


class RecentDeal(BaseModel):
    id: str
    deal_name: str
    target_amount: float
    sector: str
    status: DealStatus
    syndicate_size: int
    created_at: datetime | None = None


class DealAnalytics(BaseModel):
    """Deal volume and mix over a timeframe."""

    timeframe: AnalyticsTimeframe
    summary: DealAnalyticsSummary
    breakdown: DealBreakdown
    recent_deals: list[RecentDeal] = Field(default_factory=list)


class InvitationAnalyticsSummary(BaseModel):
    total: int
    accepted: int
    declined: int
    pending: int
    acceptance_rate: float
    avg_response_time_hours: float


class SectorAcceptance(BaseModel):
    sector: str
    total: int
    accepted: int
    acceptance_rate: float


class InvitationAnalytics(BaseModel):
    """Invitation outcomes and response times over a timeframe."""

    timeframe: AnalyticsTimeframe
    summary: InvitationAnalyticsSummary
    by_sector: list[SectorAcceptance] = Field(default_factory=list)


class FirmActivityReport(BaseModel):
    """Most active deal creators and inviters."""

    top_deal_creators: list[FirmActivity] = Field(default_factory=list)
    top_inviters: list[FirmActivity] = Field(default_factory=list)


class MatchingOverall(BaseModel):
    accuracy: float
    total_invitations: int
    accepted_invitations: int


class SectorAccuracy(BaseModel):
    sector: str
    accuracy: float
    sample_size: int


class SizeBandAccuracy(BaseModel):
    band: str
    accuracy: float
    sample_size: int


class MatchingInsight(BaseModel):
    level: str  # warning, info or success
    message: str


class MatchingPerformance(BaseModel):
    """Invitation acceptance used as a proxy for matching accuracy."""

    overall: MatchingOverall
    by_sector: list[SectorAccuracy] = Field(default_factory=list)
    by_deal_size: list[SizeBandAccuracy] = Field(default_factory=list)
    insights: list[MatchingInsight] = Field(default_factory=list)


# ── Interest Registrations ──────────────────────────────────────────────────


class InterestCreate(BaseModel):
    """Public 'register interest' form."""

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    company: str = Field(min_length=1, max_length=300)
    message: str | None = None


class InterestRead(BaseModel):
    id: str
    name: str
    email: str
    company: str
    message: str | None = None
    created_at: datetime | None = None
