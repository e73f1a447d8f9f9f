"""Firm accounts: registration, authentication and profile management."""

from __future__ import annotations

import structlog

from src.app.core.security import hash_password, verify_password
from src.app.syndicate.errors import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
)
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import (
    DealSizeRange,
    FirmCreate,
    FirmFilter,
    FirmProfile,
    FirmProfileUpdate,
    FirmRead,
)

logger = structlog.get_logger(__name__)


class FirmService:
    """Firm registration, login checks and self-service profile edits.

    Args:
        store: SyndicateStore implementation.
    """

    def __init__(self, store: SyndicateStore) -> None:
        self._store = store

    async def register(self, data: FirmCreate) -> FirmRead:
        """Create a firm with an empty matching profile.

        Raises:
            ConflictError: If the email is already registered.
        """
        if await self._store.get_firm_credentials(data.email) is not None:
            raise ConflictError("Firm already registered with this email")

        profile = FirmProfile(
            contact_person=data.contact_person,
            typical_deal_size=DealSizeRange(min=0, max=0),
        )
        firm = await self._store.create_firm(
            data, password_hash=hash_password(data.password), profile=profile
        )
        logger.info("firm.registered", firm_id=firm.id)
        return firm

    async def authenticate(self, email: str, password: str) -> FirmRead:
        """Check login credentials.

        Raises:
            AuthenticationError: Unknown email or wrong password.
            AccessDeniedError: The firm is suspended or inactive.
        """
        credentials = await self._store.get_firm_credentials(email)
        if credentials is None or not verify_password(password, credentials.password_hash):
            logger.info("firm.login_failed")
            raise AuthenticationError("Invalid credentials")
        if not credentials.firm.is_active:
            raise AccessDeniedError("Account is not active")
        return credentials.firm

    async def get_active_firm(self, firm_id: str) -> FirmRead:
        """Resolve a token subject to an active firm.

        Raises:
            AuthenticationError: The firm no longer exists.
            AccessDeniedError: The firm is suspended or inactive.
        """
        firm = await self._store.get_firm(firm_id)
        if firm is None:
            raise AuthenticationError("Firm not found")
        if not firm.is_active:
            raise AccessDeniedError("Account is not active")
        return firm

    async def get_profile(self, firm_id: str) -> FirmRead:
        firm = await self._store.get_firm(firm_id)
        if firm is None:
            raise NotFoundError("Firm not found")
        return firm

    async def update_profile(self, firm_id: str, patch: FirmProfileUpdate) -> FirmRead:
        """Merge ``patch`` into the firm's profile; omitted fields keep their value."""
        firm = await self.get_profile(firm_id)
        profile = patch.apply_to(firm.profile)
        updated = await self._store.update_firm_profile(firm_id, profile)
        if updated is None:
            raise NotFoundError("Firm not found")
        logger.info("firm.profile_updated", firm_id=firm_id)
        return updated

    async def list_firms(self) -> list[FirmRead]:
        return await self._store.list_firms(FirmFilter())
