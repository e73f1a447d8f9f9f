"""Integration tests for deal management API endpoints.

Uses InMemorySyndicateStore and httpx AsyncClient against the v1 router.
Tests deal creation, owner/invited listings, visibility rules and owner
edits.
"""

from __future__ import annotations

import uuid

DEAL_BODY = {
    "dealName": "Project Falcon",
    "sector": "Fintech",
    "jurisdiction": "UK",
    "dealType": "Series B",
    "targetAmount": 2_000_000,
    "description": "Payments platform raise",
}


# ── Create ───────────────────────────────────────────────────────────────────


async def test_create_deal(client, make_firm, auth_headers):
    """POST /api/v1/deals -> 201 draft deal owned by the caller."""
    firm = await make_firm()

    response = await client.post("/api/v1/deals", headers=auth_headers(firm), json=DEAL_BODY)
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["dealName"] == "Project Falcon"
    assert data["ownerFirmId"] == firm.id
    assert data["status"] == "draft"
    assert data["syndicateMembers"] == []
    assert data["invitedFirms"] == []


async def test_create_deal_rejects_non_positive_amount(client, make_firm, auth_headers):
    firm = await make_firm()
    response = await client.post(
        "/api/v1/deals",
        headers=auth_headers(firm),
        json={**DEAL_BODY, "targetAmount": 0},
    )
    assert response.status_code == 422


async def test_create_deal_requires_fields(client, make_firm, auth_headers):
    firm = await make_firm()
    response = await client.post(
        "/api/v1/deals", headers=auth_headers(firm), json={"dealName": "Incomplete"}
    )
    assert response.status_code == 422


# ── List ─────────────────────────────────────────────────────────────────────


async def test_list_my_deals_newest_first(client, make_firm, make_deal, auth_headers):
    owner = await make_firm()
    other = await make_firm()
    await make_deal(owner, deal_name="First")
    await make_deal(owner, deal_name="Second")
    await make_deal(other, deal_name="Not mine")

    response = await client.get("/api/v1/deals/mine", headers=auth_headers(owner))
    assert response.status_code == 200
    assert [d["dealName"] for d in response.json()] == ["Second", "First"]


async def test_list_invited_deals(client, make_firm, make_deal, auth_headers, store):
    owner = await make_firm()
    invitee = await make_firm()
    deal = await make_deal(owner)
    await make_deal(owner, deal_name="Unrelated")
    await store.set_invited_firms(deal.id, [invitee.id], deal.status)

    response = await client.get("/api/v1/deals/invited", headers=auth_headers(invitee))
    assert response.status_code == 200
    assert [d["id"] for d in response.json()] == [deal.id]


# ── Get ──────────────────────────────────────────────────────────────────────


async def test_owner_can_read_deal(client, make_firm, make_deal, auth_headers):
    owner = await make_firm()
    deal = await make_deal(owner)

    response = await client.get(f"/api/v1/deals/{deal.id}", headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["id"] == deal.id


async def test_non_member_cannot_read_deal(client, make_firm, make_deal, auth_headers):
    owner = await make_firm()
    stranger = await make_firm()
    deal = await make_deal(owner)

    response = await client.get(f"/api/v1/deals/{deal.id}", headers=auth_headers(stranger))
    assert response.status_code == 403


async def test_invited_but_not_member_cannot_read_deal(
    client, make_firm, make_deal, auth_headers, store
):
    owner = await make_firm()
    invitee = await make_firm()
    deal = await make_deal(owner)
    await store.set_invited_firms(deal.id, [invitee.id], deal.status)

    response = await client.get(f"/api/v1/deals/{deal.id}", headers=auth_headers(invitee))
    assert response.status_code == 403


async def test_get_deal_not_found(client, make_firm, auth_headers):
    firm = await make_firm()
    response = await client.get(f"/api/v1/deals/{uuid.uuid4()}", headers=auth_headers(firm))
    assert response.status_code == 404


# ── Update ───────────────────────────────────────────────────────────────────


async def test_owner_updates_deal(client, make_firm, make_deal, auth_headers):
    owner = await make_firm()
    deal = await make_deal(owner)

    response = await client.put(
        f"/api/v1/deals/{deal.id}",
        headers=auth_headers(owner),
        json={"targetAmount": 3_500_000, "status": "active"},
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["targetAmount"] == 3_500_000
    assert data["status"] == "active"
    assert data["dealName"] == "Project Falcon"


async def test_non_owner_cannot_update_deal(client, make_firm, make_deal, auth_headers):
    owner = await make_firm()
    stranger = await make_firm()
    deal = await make_deal(owner)

    response = await client.put(
        f"/api/v1/deals/{deal.id}",
        headers=auth_headers(stranger),
        json={"dealName": "Hijacked"},
    )
    assert response.status_code == 403


async def test_update_ignores_membership_fields(client, make_firm, make_deal, auth_headers):
    owner = await make_firm()
    deal = await make_deal(owner)

    response = await client.put(
        f"/api/v1/deals/{deal.id}",
        headers=auth_headers(owner),
        json={"syndicateMembers": [str(uuid.uuid4())]},
    )
    assert response.status_code == 200
    assert response.json()["syndicateMembers"] == []
