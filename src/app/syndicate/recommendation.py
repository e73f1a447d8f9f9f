"""Syndicate partner recommendation.

``recommend`` is the pure ranking step: score every eligible candidate,
order by score and keep the top N. ``SyndicateRecommender`` wraps it with
the store lookups and ownership checks the HTTP layer needs, and also owns
the "build syndicate" selection step.
"""

from __future__ import annotations

import structlog

from src.app.core.monitoring import syndicate_recommendations_total
from src.app.syndicate.errors import AccessDeniedError, NotFoundError
from src.app.syndicate.matching import score
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import (
    DealRead,
    DealStatus,
    FirmFilter,
    FirmRead,
    FirmStatus,
    Recommendation,
)

logger = structlog.get_logger(__name__)

DEFAULT_SYNDICATE_SIZE = 5


def recommend(
    deal: DealRead,
    candidates: list[FirmRead],
    desired_count: int | None = None,
) -> list[Recommendation]:
    """Rank candidate firms for ``deal`` and return the best ``desired_count``.

    The deal owner is never recommended, even if present in ``candidates``.
    Ties keep their input order. ``desired_count`` of None, zero or a
    negative number falls back to DEFAULT_SYNDICATE_SIZE.
    """
    if not desired_count or desired_count < 0:
        desired_count = DEFAULT_SYNDICATE_SIZE

    scored: list[Recommendation] = []
    for firm in candidates:
        if firm.id == deal.owner_firm_id:
            continue
        match = score(deal, firm)
        scored.append(
            Recommendation(
                firm_id=firm.id,
                firm_name=firm.firm_name,
                score=match.score,
                reasons=match.reasons,
                profile=firm.profile.model_copy(deep=True),
            )
        )

    ranked = sorted(scored, key=lambda r: r.score, reverse=True)
    return ranked[:desired_count]


class SyndicateRecommender:
    """Store-backed recommendation and syndicate selection for deal owners.

    Args:
        store: SyndicateStore implementation.
        default_size: Syndicate size used when the caller gives none.
    """

    def __init__(self, store: SyndicateStore, default_size: int = DEFAULT_SYNDICATE_SIZE) -> None:
        self._store = store
        self._default_size = default_size

    async def _owned_deal(self, deal_id: str, requester_firm_id: str) -> DealRead:
        deal = await self._store.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal not found")
        if deal.owner_firm_id != requester_firm_id:
            raise AccessDeniedError("Access denied")
        return deal

    async def recommend_for_deal(
        self,
        deal_id: str,
        requester_firm_id: str,
        syndicate_size: int | None = None,
    ) -> tuple[DealRead, list[Recommendation]]:
        """Recommend active partner firms for a deal the requester owns.

        Raises:
            NotFoundError: If the deal does not exist.
            AccessDeniedError: If the requester does not own the deal.
        """
        deal = await self._owned_deal(deal_id, requester_firm_id)

        candidates = await self._store.list_firms(
            FirmFilter(status=FirmStatus.ACTIVE, exclude_firm_id=deal.owner_firm_id)
        )
        size = syndicate_size if syndicate_size and syndicate_size > 0 else self._default_size
        recommendations = recommend(deal, candidates, size)

        syndicate_recommendations_total.inc()
        logger.info(
            "syndicate.recommended",
            deal_id=deal.id,
            candidates=len(candidates),
            returned=len(recommendations),
        )
        return deal, recommendations

    async def build_syndicate(
        self,
        deal_id: str,
        requester_firm_id: str,
        selected_firm_ids: list[str],
    ) -> DealRead:
        """Record the owner's selected partner firms on the deal.

        The selection is bookkeeping only; it does not send invitations. The
        owner and duplicate ids are dropped, and the deal moves to
        syndicate_building.

        Raises:
            NotFoundError: If the deal or any selected firm does not exist.
            AccessDeniedError: If the requester does not own the deal.
        """
        deal = await self._owned_deal(deal_id, requester_firm_id)

        selection: list[str] = []
        for firm_id in selected_firm_ids:
            firm = await self._store.get_firm(firm_id)
            if firm is None:
                raise NotFoundError(f"Firm not found: {firm_id}")
            # Compare stored ids; the request may spell a UUID differently
            if firm.id == deal.owner_firm_id or firm.id in selection:
                continue
            selection.append(firm.id)

        updated = await self._store.set_invited_firms(
            deal.id, selection, DealStatus.SYNDICATE_BUILDING
        )
        if updated is None:
            raise NotFoundError("Deal not found")

        logger.info("syndicate.built", deal_id=deal.id, invited=len(selection))
        return updated
