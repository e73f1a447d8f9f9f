"""Deal creation, listing and owner edits."""

from __future__ import annotations

import structlog

from src.app.syndicate.errors import AccessDeniedError, NotFoundError
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import DealCreate, DealFilter, DealRead, DealUpdate

logger = structlog.get_logger(__name__)


class DealService:
    """Deal operations scoped to the calling firm.

    Args:
        store: SyndicateStore implementation.
    """

    def __init__(self, store: SyndicateStore) -> None:
        self._store = store

    async def create_deal(self, owner_firm_id: str, data: DealCreate) -> DealRead:
        deal = await self._store.create_deal(owner_firm_id, data)
        logger.info("deal.created", deal_id=deal.id, owner_firm_id=owner_firm_id)
        return deal

    async def list_my_deals(self, firm_id: str) -> list[DealRead]:
        return await self._store.list_deals(DealFilter(owner_firm_id=firm_id))

    async def list_invited_deals(self, firm_id: str) -> list[DealRead]:
        """Deals whose owner selected ``firm_id`` while building the syndicate."""
        return await self._store.list_deals(DealFilter(invited_firm_id=firm_id))

    async def get_deal(self, deal_id: str, firm_id: str) -> DealRead:
        """Fetch a deal visible to ``firm_id`` (owner or syndicate member).

        Raises:
            NotFoundError: If the deal does not exist.
            AccessDeniedError: If the firm is neither owner nor member.
        """
        deal = await self._store.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal not found")
        if not deal.is_visible_to(firm_id):
            raise AccessDeniedError("Access denied")
        return deal

    async def update_deal(self, deal_id: str, firm_id: str, data: DealUpdate) -> DealRead:
        """Owner-only update of descriptive fields and status."""
        deal = await self._store.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal not found")
        if deal.owner_firm_id != firm_id:
            raise AccessDeniedError("Access denied")

        updated = await self._store.update_deal(deal_id, data)
        if updated is None:
            raise NotFoundError("Deal not found")
        logger.info(
            "deal.updated",
            deal_id=deal_id,
            fields=sorted(data.model_dump(exclude_none=True)),
        )
        return updated
