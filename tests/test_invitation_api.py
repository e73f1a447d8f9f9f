"""Integration tests for invitation endpoints: send, respond, received, sent."""

from __future__ import annotations

import pytest_asyncio


@pytest_asyncio.fixture
async def parties(make_firm, make_deal):
    owner = await make_firm("Owner Advisory")
    invitee = await make_firm("Invitee Capital")
    deal = await make_deal(owner)
    return owner, invitee, deal


async def _send(client, auth_headers, owner, invitee, deal, message="Join our syndicate"):
    return await client.post(
        "/api/v1/invitations/send",
        headers=auth_headers(owner),
        json={"dealId": deal.id, "firmId": invitee.id, "message": message},
    )


# ── Send ─────────────────────────────────────────────────────────────────────


async def test_send_invitation(client, auth_headers, parties):
    owner, invitee, deal = parties

    response = await _send(client, auth_headers, owner, invitee, deal)
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["message"] == "Invitation sent to Invitee Capital"
    assert data["invitation"]["status"] == "pending"
    assert data["invitation"]["toFirmId"] == invitee.id


async def test_send_duplicate_pending_conflicts(client, auth_headers, parties):
    owner, invitee, deal = parties
    await _send(client, auth_headers, owner, invitee, deal)

    response = await _send(client, auth_headers, owner, invitee, deal)
    assert response.status_code == 409


async def test_send_to_self_rejected(client, auth_headers, parties):
    owner, _, deal = parties
    response = await _send(client, auth_headers, owner, owner, deal)
    assert response.status_code == 400


async def test_send_by_non_owner_forbidden(client, auth_headers, parties):
    _, invitee, deal = parties
    response = await _send(client, auth_headers, invitee, invitee, deal)
    assert response.status_code == 403


# ── Respond ──────────────────────────────────────────────────────────────────


async def test_accept_with_nda_grants_deal_access(client, auth_headers, parties, store):
    owner, invitee, deal = parties
    sent = await _send(client, auth_headers, owner, invitee, deal)
    invitation_id = sent.json()["invitation"]["id"]

    # Not a member yet
    denied = await client.get(f"/api/v1/deals/{deal.id}", headers=auth_headers(invitee))
    assert denied.status_code == 403

    response = await client.post(
        "/api/v1/invitations/respond",
        headers=auth_headers(invitee),
        json={"invitationId": invitation_id, "response": "accepted", "ndaSigned": True},
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["message"] == "Invitation accepted"
    assert data["invitation"]["status"] == "accepted"
    assert data["invitation"]["respondedAt"] is not None

    allowed = await client.get(f"/api/v1/deals/{deal.id}", headers=auth_headers(invitee))
    assert allowed.status_code == 200
    assert allowed.json()["syndicateMembers"] == [invitee.id]
    assert len(await store.list_ndas(deal_id=deal.id)) == 1


async def test_decline(client, auth_headers, parties):
    owner, invitee, deal = parties
    sent = await _send(client, auth_headers, owner, invitee, deal)

    response = await client.post(
        "/api/v1/invitations/respond",
        headers=auth_headers(invitee),
        json={"invitationId": sent.json()["invitation"]["id"], "response": "declined"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Invitation declined"


async def test_respond_twice_conflicts(client, auth_headers, parties):
    owner, invitee, deal = parties
    sent = await _send(client, auth_headers, owner, invitee, deal)
    body = {"invitationId": sent.json()["invitation"]["id"], "response": "declined"}

    first = await client.post("/api/v1/invitations/respond", headers=auth_headers(invitee), json=body)
    assert first.status_code == 200
    second = await client.post(
        "/api/v1/invitations/respond", headers=auth_headers(invitee), json=body
    )
    assert second.status_code == 409


async def test_respond_with_invalid_value(client, auth_headers, parties):
    owner, invitee, deal = parties
    sent = await _send(client, auth_headers, owner, invitee, deal)

    response = await client.post(
        "/api/v1/invitations/respond",
        headers=auth_headers(invitee),
        json={"invitationId": sent.json()["invitation"]["id"], "response": "maybe"},
    )
    assert response.status_code == 400


async def test_respond_to_someone_elses_invitation(client, auth_headers, parties):
    owner, invitee, deal = parties
    sent = await _send(client, auth_headers, owner, invitee, deal)

    response = await client.post(
        "/api/v1/invitations/respond",
        headers=auth_headers(owner),
        json={"invitationId": sent.json()["invitation"]["id"], "response": "accepted"},
    )
    assert response.status_code == 404


# ── Listings ─────────────────────────────────────────────────────────────────


async def test_received_and_sent_listings(client, auth_headers, parties):
    owner, invitee, deal = parties
    await _send(client, auth_headers, owner, invitee, deal)

    received = await client.get("/api/v1/invitations/received", headers=auth_headers(invitee))
    assert received.status_code == 200
    [item] = received.json()
    assert item["deal"] == {"id": deal.id, "dealName": "Project Falcon", "sector": "Fintech"}
    assert item["fromFirm"] == {"id": owner.id, "firmName": "Owner Advisory"}
    assert item["toFirm"] is None

    sent = await client.get("/api/v1/invitations/sent", headers=auth_headers(owner))
    assert sent.status_code == 200
    [item] = sent.json()
    assert item["toFirm"] == {"id": invitee.id, "firmName": "Invitee Capital"}
    assert item["message"] == "Join our syndicate"
