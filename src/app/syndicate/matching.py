"""Deal-to-firm compatibility scoring.

A fixed-weight linear scorer. Each rule contributes points and, when it
fires, one human-readable reason. Rules are evaluated in a fixed order so
the reasons list always reads jurisdiction, sector, deal size, track record.

The scorer is pure: no I/O, no randomness, and missing profile fields
simply contribute nothing.
"""

from __future__ import annotations

from typing import NamedTuple

from src.app.syndicate.schemas import DealRead, FirmProfile, FirmRead

# ── Weights ─────────────────────────────────────────────────────────────────

JURISDICTION_WEIGHT = 30
SECTOR_WEIGHT = 35
DEAL_SIZE_EXACT_WEIGHT = 25
DEAL_SIZE_NEAR_WEIGHT = 15
TRACK_RECORD_WEIGHT = 10

MAX_SCORE = (
    JURISDICTION_WEIGHT + SECTOR_WEIGHT + DEAL_SIZE_EXACT_WEIGHT + TRACK_RECORD_WEIGHT
)


class MatchScore(NamedTuple):
    """Compatibility score (0-100) and the reasons that produced it."""

    score: int
    reasons: list[str]


def _deal_size_points(profile: FirmProfile, target_amount: float) -> tuple[int, str | None]:
    size = profile.typical_deal_size
    if size is None:
        return 0, None
    if size.min <= target_amount <= size.max:
        return DEAL_SIZE_EXACT_WEIGHT, "Deal size matches typical investment range"
    # Near miss: below the ceiling and above half the floor
    if size.min * 0.5 < target_amount < size.max:
        return DEAL_SIZE_NEAR_WEIGHT, "Deal size within acceptable range"
    return 0, None


def score(deal: DealRead, firm: FirmRead) -> MatchScore:
    """Score how well ``firm`` fits as a syndicate partner for ``deal``.

    Args:
        deal: The deal being syndicated.
        firm: Candidate firm; only its profile is consulted.

    Returns:
        MatchScore with an integer score in [0, 100] and the reasons in
        evaluation order.
    """
    profile = firm.profile
    total = 0
    reasons: list[str] = []

    if deal.jurisdiction in profile.jurisdictions:
        total += JURISDICTION_WEIGHT
        reasons.append(f"Active in {deal.jurisdiction}")

    if deal.sector in profile.sector_focus:
        total += SECTOR_WEIGHT
        reasons.append(f"Specialized in {deal.sector} sector")

    points, reason = _deal_size_points(profile, deal.target_amount)
    if reason is not None:
        total += points
        reasons.append(reason)

    if profile.recent_transactions:
        total += TRACK_RECORD_WEIGHT
        reasons.append(f"{len(profile.recent_transactions)} recent transactions")

    return MatchScore(score=total, reasons=reasons)
