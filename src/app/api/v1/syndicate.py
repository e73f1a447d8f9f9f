"""Syndicate partner recommendation and selection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.app.api.deps import get_current_firm, get_store
from src.app.api.errors import to_http_exception
from src.app.config import get_settings
from src.app.schemas.syndicate import (
    BuildSyndicateRequest,
    BuildSyndicateResponse,
    DealResponse,
    DealSummaryResponse,
    RecommendationResponse,
    RecommendRequest,
    RecommendResponse,
)
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.recommendation import SyndicateRecommender
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import FirmRead

router = APIRouter(prefix="/syndicate", tags=["syndicate"])


def _recommender(store: SyndicateStore) -> SyndicateRecommender:
    return SyndicateRecommender(store, default_size=get_settings().DEFAULT_SYNDICATE_SIZE)


@router.post("/recommend", response_model=RecommendResponse)
async def recommend_partners(
    body: RecommendRequest,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> RecommendResponse:
    """Rank active firms as syndicate partners for a deal the caller owns."""
    try:
        deal, recommendations = await _recommender(store).recommend_for_deal(
            body.deal_id, firm.id, body.syndicate_size
        )
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc

    return RecommendResponse(
        deal=DealSummaryResponse(
            id=deal.id,
            name=deal.deal_name,
            sector=deal.sector,
            target_amount=deal.target_amount,
        ),
        recommendations=[RecommendationResponse.from_domain(r) for r in recommendations],
    )


@router.post("/build", response_model=BuildSyndicateResponse)
async def build_syndicate(
    body: BuildSyndicateRequest,
    store: SyndicateStore = Depends(get_store),
    firm: FirmRead = Depends(get_current_firm),
) -> BuildSyndicateResponse:
    """Record the owner's selected partner firms on the deal."""
    try:
        deal = await _recommender(store).build_syndicate(
            body.deal_id, firm.id, body.selected_firms
        )
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc

    return BuildSyndicateResponse(
        message="Syndicate created successfully",
        deal=DealResponse.from_domain(deal),
    )
