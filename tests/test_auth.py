"""Authentication and authorization tests.

Tests registration, JWT login, token refresh, protected endpoints and
the account-status gate applied to every authenticated request.
"""

from __future__ import annotations

from datetime import timedelta

from jose import jwt

from src.app.config import get_settings
from src.app.core.security import create_access_token, create_refresh_token, token_claims_for
from src.app.syndicate.schemas import FirmStatus

PASSWORD = "s3cure-password"


# ── Registration ─────────────────────────────────────────────────────────────


async def test_register_returns_tokens_and_firm(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "firmName": "Harbour Corporate Finance",
            "email": "Deals@HarbourCF.com",
            "password": PASSWORD,
            "contactPerson": "Jane Doe",
        },
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["tokenType"] == "bearer"
    assert data["firm"]["firmName"] == "Harbour Corporate Finance"
    assert data["firm"]["email"] == "deals@harbourcf.com"
    assert data["firm"]["role"] == "user"
    assert data["firm"]["status"] == "active"
    assert data["firm"]["profile"]["contactPerson"] == "Jane Doe"
    assert data["firm"]["profile"]["typicalDealSize"] == {"min": 0, "max": 0}
    assert "password" not in data["firm"]

    settings = get_settings()
    payload = jwt.decode(
        data["accessToken"], settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
    )
    assert payload["sub"] == data["firm"]["id"]
    assert payload["type"] == "access"


async def test_register_duplicate_email_conflicts(client, make_firm):
    await make_firm(email="taken@example.com")
    response = await client.post(
        "/api/v1/auth/register",
        json={"firmName": "Copycat", "email": "TAKEN@example.com", "password": PASSWORD},
    )
    assert response.status_code == 409


async def test_register_validates_payload(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={"firmName": "Short", "email": "not-an-email", "password": "short"},
    )
    assert response.status_code == 422


# ── Login ────────────────────────────────────────────────────────────────────


async def test_login_valid_credentials(client, make_firm):
    firm = await make_firm(email="login@example.com", password=PASSWORD)
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "login@example.com", "password": PASSWORD},
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["firm"]["id"] == firm.id
    assert "accessToken" in data
    assert "refreshToken" in data


async def test_login_invalid_credentials(client, make_firm):
    await make_firm(email="login@example.com", password=PASSWORD)
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "login@example.com", "password": "wrong-password"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


async def test_login_nonexistent_firm(client):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@example.com", "password": PASSWORD},
    )
    assert response.status_code == 401


async def test_login_suspended_firm_forbidden(client, make_firm):
    await make_firm(email="paused@example.com", password=PASSWORD, status=FirmStatus.SUSPENDED)
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "paused@example.com", "password": PASSWORD},
    )
    assert response.status_code == 403


# ── Protected Endpoints ──────────────────────────────────────────────────────


async def test_me_returns_current_firm(client, make_firm, auth_headers):
    firm = await make_firm("Current Firm")
    response = await client.get("/api/v1/auth/me", headers=auth_headers(firm))
    assert response.status_code == 200, response.text
    assert response.json()["firmName"] == "Current Firm"


async def test_access_without_token(client):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_access_with_garbage_token(client):
    response = await client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


async def test_expired_token_rejected(client, make_firm):
    firm = await make_firm()
    token = create_access_token(
        token_claims_for(firm.id, firm.email, firm.role.value),
        expires_delta=timedelta(seconds=-1),
    )
    response = await client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 401


async def test_refresh_token_not_accepted_as_access(client, make_firm):
    firm = await make_firm()
    token = create_refresh_token(token_claims_for(firm.id, firm.email, firm.role.value))
    response = await client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 401


async def test_suspended_firm_loses_access(client, make_firm, auth_headers, store):
    firm = await make_firm()
    headers = auth_headers(firm)
    await store.update_firm_status(firm.id, FirmStatus.SUSPENDED)

    response = await client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 403


async def test_deleted_firm_token_rejected(client, make_firm, auth_headers, store):
    firm = await make_firm()
    headers = auth_headers(firm)
    await store.delete_firm(firm.id)

    response = await client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401


# ── Token Refresh ────────────────────────────────────────────────────────────


async def test_refresh_issues_new_pair(client, make_firm):
    firm = await make_firm()
    refresh = create_refresh_token(token_claims_for(firm.id, firm.email, firm.role.value))

    response = await client.post("/api/v1/auth/refresh", json={"refreshToken": refresh})
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["accessToken"]
    assert data["refreshToken"]


async def test_refresh_rejects_access_token(client, make_firm):
    firm = await make_firm()
    access = create_access_token(token_claims_for(firm.id, firm.email, firm.role.value))

    response = await client.post("/api/v1/auth/refresh", json={"refreshToken": access})
    assert response.status_code == 401
