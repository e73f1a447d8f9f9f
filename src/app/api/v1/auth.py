"""Authentication API endpoints.

Provides firm registration, login, token refresh and current firm info.
All endpoints except register, login and refresh require a valid JWT token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.app.api.deps import get_current_firm, get_store
from src.app.api.errors import to_http_exception
from src.app.core.security import (
    create_access_token,
    create_refresh_token,
    token_claims_for,
    verify_token,
)
from src.app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenRefreshRequest,
    TokenResponse,
)
from src.app.schemas.syndicate import FirmResponse
from src.app.syndicate.errors import SyndicateError
from src.app.syndicate.firms import FirmService
from src.app.syndicate.repository import SyndicateStore
from src.app.syndicate.schemas import FirmCreate, FirmRead

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(firm: FirmRead) -> tuple[str, str]:
    claims = token_claims_for(firm.id, firm.email, firm.role.value)
    return create_access_token(claims), create_refresh_token(claims)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, store: SyndicateStore = Depends(get_store)):
    """Register a new firm and sign it in."""
    data = FirmCreate(
        firm_name=body.firm_name,
        email=body.email,
        password=body.password,
        contact_person=body.contact_person,
    )
    try:
        firm = await FirmService(store).register(data)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc

    access_token, refresh_token = _issue_tokens(firm)
    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        firm=FirmResponse.from_domain(firm),
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, store: SyndicateStore = Depends(get_store)):
    """Authenticate a firm and return JWT tokens."""
    try:
        firm = await FirmService(store).authenticate(body.email, body.password)
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc

    access_token, refresh_token = _issue_tokens(firm)
    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        firm=FirmResponse.from_domain(firm),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(body: TokenRefreshRequest, store: SyndicateStore = Depends(get_store)):
    """Exchange a valid refresh token for a new token pair."""
    payload = verify_token(body.refresh_token, token_type="refresh")

    # Firm must still exist and be active
    try:
        firm = await FirmService(store).get_active_firm(payload["sub"])
    except SyndicateError as exc:
        raise to_http_exception(exc) from exc

    access_token, new_refresh_token = _issue_tokens(firm)
    return TokenResponse(access_token=access_token, refresh_token=new_refresh_token)


@router.get("/me", response_model=FirmResponse)
async def get_me(firm: FirmRead = Depends(get_current_firm)):
    """Return the authenticated firm."""
    return FirmResponse.from_domain(firm)
