"""Admin analytics -- deal volume, invitation outcomes, firm activity and
matching accuracy.

Pure aggregation over rows the store returns; AdminService does the
fetching. Acceptance of sent invitations stands in for matching accuracy,
broken down by sector and by deal-size band.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from datetime import datetime, timedelta

from src.app.syndicate.schemas import (
    AnalyticsTimeframe,
    DealAnalytics,
    DealAnalyticsSummary,
    DealBreakdown,
    DealRead,
    FirmActivity,
    FirmActivityReport,
    InvitationAnalytics,
    InvitationAnalyticsSummary,
    InvitationFact,
    InvitationStatus,
    MatchingInsight,
    MatchingOverall,
    MatchingPerformance,
    RecentDeal,
    SectorAcceptance,
    SectorAccuracy,
    SizeBandAccuracy,
)

RECENT_DEALS_LIMIT = 10

# (label, inclusive lower bound, exclusive upper bound)
DEAL_SIZE_BANDS: tuple[tuple[str, float, float], ...] = (
    ("Under $1M", 0, 1_000_000),
    ("$1M - $5M", 1_000_000, 5_000_000),
    ("$5M - $10M", 5_000_000, 10_000_000),
    ("Over $10M", 10_000_000, math.inf),
)

LOW_ACCURACY_PERCENT = 50.0
HEALTHY_ACCURACY_PERCENT = 70.0
MIN_SECTOR_SAMPLE = 5

_TIMEFRAME_DAYS = {
    AnalyticsTimeframe.WEEK: 7,
    AnalyticsTimeframe.MONTH: 30,
    AnalyticsTimeframe.QUARTER: 90,
}


def acceptance_rate(accepted: int, total: int) -> float:
    """Accepted share of all invitations as a percentage, two decimals."""
    if total <= 0:
        return 0.0
    return round(accepted / total * 100, 2)


def timeframe_start(timeframe: AnalyticsTimeframe, now: datetime) -> datetime:
    """Start of the look-back window ending at ``now``."""
    if timeframe == AnalyticsTimeframe.YEAR:
        try:
            return now.replace(year=now.year - 1)
        except ValueError:
            # 29 February has no counterpart in the previous year
            return now.replace(year=now.year - 1, day=28)
    return now - timedelta(days=_TIMEFRAME_DAYS[timeframe])


# ── Deals ───────────────────────────────────────────────────────────────────


def summarize_deals(timeframe: AnalyticsTimeframe, deals: list[DealRead]) -> DealAnalytics:
    """Volume, averages and status/sector/jurisdiction mix.

    ``deals`` is expected newest first; the first ten become recent_deals.
    """
    total = len(deals)
    volume = sum(d.target_amount for d in deals)
    members = sum(len(d.syndicate_members) for d in deals)

    return DealAnalytics(
        timeframe=timeframe,
        summary=DealAnalyticsSummary(
            total_deals=total,
            total_volume=volume,
            average_deal_size=volume / total if total else 0.0,
            average_syndicate_size=round(members / total, 2) if total else 0.0,
        ),
        breakdown=DealBreakdown(
            by_status=dict(Counter(d.status.value for d in deals)),
            by_sector=dict(Counter(d.sector for d in deals)),
            by_jurisdiction=dict(Counter(d.jurisdiction for d in deals)),
        ),
        recent_deals=[
            RecentDeal(
                id=d.id,
                deal_name=d.deal_name,
                target_amount=d.target_amount,
                sector=d.sector,
                status=d.status,
                syndicate_size=len(d.syndicate_members),
                created_at=d.created_at,
            )
            for d in deals[:RECENT_DEALS_LIMIT]
        ],
    )


# ── Invitations ─────────────────────────────────────────────────────────────


def _tally_by_sector(facts: list[InvitationFact]) -> dict[str, tuple[int, int]]:
    """Map sector -> (invitations, accepted), in first-seen order."""
    tally: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for fact in facts:
        counts = tally[fact.sector]
        counts[0] += 1
        if fact.status == InvitationStatus.ACCEPTED:
            counts[1] += 1
    return {sector: (total, accepted) for sector, (total, accepted) in tally.items()}


def summarize_invitations(
    timeframe: AnalyticsTimeframe, facts: list[InvitationFact]
) -> InvitationAnalytics:
    """Outcome counts, acceptance rate, mean response time and per-sector rates."""
    statuses = Counter(f.status for f in facts)
    total = len(facts)
    accepted = statuses[InvitationStatus.ACCEPTED]

    response_hours = [
        (f.responded_at - f.created_at).total_seconds() / 3600
        for f in facts
        if f.responded_at is not None
    ]
    avg_hours = round(sum(response_hours) / len(response_hours), 1) if response_hours else 0.0

    by_sector = [
        SectorAcceptance(
            sector=sector,
            total=sector_total,
            accepted=sector_accepted,
            acceptance_rate=acceptance_rate(sector_accepted, sector_total),
        )
        for sector, (sector_total, sector_accepted) in _tally_by_sector(facts).items()
    ]
    by_sector.sort(key=lambda s: s.total, reverse=True)

    return InvitationAnalytics(
        timeframe=timeframe,
        summary=InvitationAnalyticsSummary(
            total=total,
            accepted=accepted,
            declined=statuses[InvitationStatus.DECLINED],
            pending=statuses[InvitationStatus.PENDING],
            acceptance_rate=acceptance_rate(accepted, total),
            avg_response_time_hours=avg_hours,
        ),
        by_sector=by_sector,
    )


# ── Firm Activity ───────────────────────────────────────────────────────────


def rank_firm_activity(entries: list[FirmActivity], limit: int) -> FirmActivityReport:
    """Top deal creators by deals created, top inviters by invitations sent."""
    creators = sorted(
        (e for e in entries if e.deals_created > 0),
        key=lambda e: e.deals_created,
        reverse=True,
    )
    inviters = sorted(
        (e for e in entries if e.invitations_sent or e.invitations_received),
        key=lambda e: e.invitations_sent,
        reverse=True,
    )
    return FirmActivityReport(top_deal_creators=creators[:limit], top_inviters=inviters[:limit])


# ── Matching Accuracy ───────────────────────────────────────────────────────


def matching_insights(sectors: list[SectorAccuracy]) -> list[MatchingInsight]:
    """Plain-language hints for tuning the matching weights."""
    insights: list[MatchingInsight] = []

    weak = [
        s.sector for s in sectors
        if s.accuracy < LOW_ACCURACY_PERCENT and s.sample_size > MIN_SECTOR_SAMPLE
    ]
    if weak:
        insights.append(
            MatchingInsight(
                level="warning",
                message=(
                    f"Low acceptance rate in sectors: {', '.join(weak)}. "
                    "Consider adjusting sector matching weights."
                ),
            )
        )

    sparse = [s.sector for s in sectors if s.sample_size < MIN_SECTOR_SAMPLE]
    if sparse:
        insights.append(
            MatchingInsight(
                level="info",
                message=(
                    f"Limited data for sectors: {', '.join(sparse)}. "
                    "More data needed for accurate assessment."
                ),
            )
        )

    if sectors:
        mean_accuracy = sum(s.accuracy for s in sectors) / len(sectors)
        if mean_accuracy > HEALTHY_ACCURACY_PERCENT:
            insights.append(
                MatchingInsight(
                    level="success",
                    message="Matching performing well with average acceptance rate above 70%.",
                )
            )
    return insights


def matching_performance(facts: list[InvitationFact]) -> MatchingPerformance:
    """Acceptance rates overall, per sector and per deal-size band."""
    total = len(facts)
    accepted = sum(1 for f in facts if f.status == InvitationStatus.ACCEPTED)

    sectors = [
        SectorAccuracy(
            sector=sector,
            accuracy=acceptance_rate(sector_accepted, sector_total),
            sample_size=sector_total,
        )
        for sector, (sector_total, sector_accepted) in _tally_by_sector(facts).items()
    ]
    sectors.sort(key=lambda s: s.sample_size, reverse=True)

    bands: list[SizeBandAccuracy] = []
    for label, low, high in DEAL_SIZE_BANDS:
        in_band = [f for f in facts if low <= f.target_amount < high]
        hits = sum(1 for f in in_band if f.status == InvitationStatus.ACCEPTED)
        bands.append(
            SizeBandAccuracy(
                band=label,
                accuracy=acceptance_rate(hits, len(in_band)),
                sample_size=len(in_band),
            )
        )

    return MatchingPerformance(
        overall=MatchingOverall(
            accuracy=acceptance_rate(accepted, total),
            total_invitations=total,
            accepted_invitations=accepted,
        ),
        by_sector=sectors,
        by_deal_size=bands,
        insights=matching_insights(sectors),
    )
