"""Public "register interest" submissions from prospective member firms."""

from __future__ import annotations

import structlog

from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import InterestCreate, InterestRead

logger = structlog.get_logger(__name__)


async def register_interest(store: SyndicateStore, data: InterestCreate) -> InterestRead:
    registration = await store.create_interest_registration(data)
    logger.info("interest.registered", registration_id=registration.id)
    return registration
