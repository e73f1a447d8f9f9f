"""Pydantic schemas for authentication API endpoints."""

from __future__ import annotations

from pydantic import EmailStr, Field

from src.app.schemas.common import CamelModel
from src.app.schemas.syndicate import FirmResponse


class RegisterRequest(CamelModel):
    """Request schema for firm registration."""

    firm_name: str = Field(..., min_length=1, max_length=300, description="Registered firm name")
    email: EmailStr = Field(..., description="Login email address")
    password: str = Field(..., min_length=8, max_length=128, description="At least 8 characters")
    contact_person: str | None = Field(default=None, max_length=200)


class LoginRequest(CamelModel):
    """Request schema for firm login."""

    email: EmailStr = Field(..., description="Login email address")
    password: str = Field(..., min_length=1, description="Account password")


class TokenRefreshRequest(CamelModel):
    """Request schema to refresh an access token."""

    refresh_token: str = Field(..., description="Valid refresh token")


class TokenResponse(CamelModel):
    """Response schema with access and refresh tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(TokenResponse):
    """Tokens plus the authenticated firm, returned by register and login."""

    firm: FirmResponse
