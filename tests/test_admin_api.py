"""Integration tests for the admin console API.

Covers the admin/superadmin gates, member listing with pagination and
filters, status and role changes, deletes with cascade, admin creation
and platform statistics.
"""

from __future__ import annotations

import uuid

import pytest

from src.app.syndicate.admin import acceptance_rate
from src.app.syndicate.schemas import FirmRole, FirmStatus, InvitationCreate, InvitationStatus


# ── Access Gates ─────────────────────────────────────────────────────────────


async def test_regular_firm_cannot_use_admin(client, make_firm, auth_headers):
    firm = await make_firm()
    response = await client.get("/api/v1/admin/firms", headers=auth_headers(firm))
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


async def test_admin_cannot_change_roles(client, make_firm, auth_headers):
    admin = await make_firm(role=FirmRole.ADMIN)
    target = await make_firm()
    response = await client.patch(
        f"/api/v1/admin/firms/{target.id}/role",
        headers=auth_headers(admin),
        json={"role": "admin"},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Superadmin access required"


# ── Listing ──────────────────────────────────────────────────────────────────


async def test_list_firms_paginates_newest_first(client, make_firm, auth_headers):
    admin = await make_firm("Admin Desk", role=FirmRole.ADMIN)
    for n in range(3):
        await make_firm(f"Member {n}")

    response = await client.get(
        "/api/v1/admin/firms", headers=auth_headers(admin), params={"page": 1, "limit": 2}
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert [f["firmName"] for f in data["firms"]] == ["Member 2", "Member 1"]
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 4, "totalPages": 2}


async def test_list_firms_filters(client, make_firm, auth_headers):
    admin = await make_firm("Admin Desk", role=FirmRole.ADMIN)
    await make_firm("Northbridge", email="hello@northbridge.com")
    await make_firm("Paused Ltd", status=FirmStatus.SUSPENDED)

    by_search = await client.get(
        "/api/v1/admin/firms", headers=auth_headers(admin), params={"search": "NORTH"}
    )
    assert [f["firmName"] for f in by_search.json()["firms"]] == ["Northbridge"]

    by_status = await client.get(
        "/api/v1/admin/firms", headers=auth_headers(admin), params={"status": "suspended"}
    )
    assert [f["firmName"] for f in by_status.json()["firms"]] == ["Paused Ltd"]

    by_role = await client.get(
        "/api/v1/admin/firms", headers=auth_headers(admin), params={"role": "admin"}
    )
    assert [f["firmName"] for f in by_role.json()["firms"]] == ["Admin Desk"]


async def test_firm_detail_includes_deals_and_counts(
    client, make_firm, make_deal, auth_headers
):
    admin = await make_firm(role=FirmRole.ADMIN)
    member = await make_firm("Member")
    await make_deal(member)

    response = await client.get(
        f"/api/v1/admin/firms/{member.id}", headers=auth_headers(admin)
    )
    assert response.status_code == 200
    data = response.json()
    assert data["counts"]["deals"] == 1
    assert len(data["deals"]) == 1

    missing = await client.get(
        f"/api/v1/admin/firms/{uuid.uuid4()}", headers=auth_headers(admin)
    )
    assert missing.status_code == 404


# ── Status and Role ──────────────────────────────────────────────────────────


async def test_suspend_firm(client, make_firm, auth_headers, store):
    admin = await make_firm(role=FirmRole.ADMIN)
    member = await make_firm()

    response = await client.patch(
        f"/api/v1/admin/firms/{member.id}/status",
        headers=auth_headers(admin),
        json={"status": "suspended"},
    )
    assert response.status_code == 200
    assert response.json()["firm"]["status"] == "suspended"
    assert (await store.get_firm(member.id)).status == FirmStatus.SUSPENDED


async def test_admin_cannot_suspend_self(client, make_firm, auth_headers):
    admin = await make_firm(role=FirmRole.ADMIN)
    response = await client.patch(
        f"/api/v1/admin/firms/{admin.id}/status",
        headers=auth_headers(admin),
        json={"status": "suspended"},
    )
    assert response.status_code == 400


async def test_superadmin_changes_role(client, make_firm, auth_headers):
    root = await make_firm(role=FirmRole.SUPERADMIN)
    member = await make_firm()

    response = await client.patch(
        f"/api/v1/admin/firms/{member.id}/role",
        headers=auth_headers(root),
        json={"role": "admin"},
    )
    assert response.status_code == 200
    assert response.json()["firm"]["role"] == "admin"

    own = await client.patch(
        f"/api/v1/admin/firms/{root.id}/role",
        headers=auth_headers(root),
        json={"role": "user"},
    )
    assert own.status_code == 400


# ── Delete ───────────────────────────────────────────────────────────────────


async def test_delete_firm_cascades(client, make_firm, make_deal, auth_headers, store):
    root = await make_firm(role=FirmRole.SUPERADMIN)
    doomed = await make_firm("Doomed")
    partner = await make_firm("Partner")
    owned = await make_deal(doomed)
    other_deal = await make_deal(partner)
    await store.set_invited_firms(other_deal.id, [doomed.id], other_deal.status)
    await store.create_invitation(
        InvitationCreate(deal_id=owned.id, from_firm_id=doomed.id, to_firm_id=partner.id)
    )

    response = await client.delete(
        f"/api/v1/admin/firms/{doomed.id}", headers=auth_headers(root)
    )
    assert response.status_code == 200, response.text
    assert response.json() == {
        "message": 'Firm "Doomed" has been deleted',
        "deletedFirmId": doomed.id,
    }
    assert await store.get_firm(doomed.id) is None
    assert await store.get_deal(owned.id) is None
    assert (await store.get_deal(other_deal.id)).invited_firms == []
    assert (await store.get_firm_counts(partner.id)).received_invitations == 0


async def test_superadmin_cannot_delete_self(client, make_firm, auth_headers):
    root = await make_firm(role=FirmRole.SUPERADMIN)
    response = await client.delete(f"/api/v1/admin/firms/{root.id}", headers=auth_headers(root))
    assert response.status_code == 400


@pytest.mark.parametrize(
    "method, suffix, body, detail",
    [
        ("PATCH", "/status", {"status": "suspended"}, "Cannot change your own status"),
        ("PATCH", "/role", {"role": "user"}, "Cannot change your own role"),
        ("DELETE", "", None, "Cannot delete your own account"),
    ],
)
async def test_self_actions_blocked_for_any_id_spelling(
    client, make_firm, auth_headers, store, method, suffix, body, detail
):
    root = await make_firm(role=FirmRole.SUPERADMIN)

    response = await client.request(
        method,
        f"/api/v1/admin/firms/{root.id.upper()}{suffix}",
        headers=auth_headers(root),
        json=body,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == detail
    unchanged = await store.get_firm(root.id)
    assert unchanged.status == FirmStatus.ACTIVE
    assert unchanged.role == FirmRole.SUPERADMIN


async def test_admin_actions_on_missing_firm(client, make_firm, auth_headers):
    root = await make_firm(role=FirmRole.SUPERADMIN)
    missing = str(uuid.uuid4())

    status = await client.patch(
        f"/api/v1/admin/firms/{missing}/status",
        headers=auth_headers(root),
        json={"status": "suspended"},
    )
    deleted = await client.delete(f"/api/v1/admin/firms/{missing}", headers=auth_headers(root))

    assert status.status_code == 404
    assert deleted.status_code == 404


# ── Create Admin ─────────────────────────────────────────────────────────────


async def test_create_admin(client, make_firm, auth_headers, store):
    root = await make_firm(role=FirmRole.SUPERADMIN)

    response = await client.post(
        "/api/v1/admin/create-admin",
        headers=auth_headers(root),
        json={"firmName": "Ops Desk", "email": "ops@example.com", "password": "long-enough"},
    )
    assert response.status_code == 201, response.text
    assert response.json()["firm"]["role"] == "admin"

    duplicate = await client.post(
        "/api/v1/admin/create-admin",
        headers=auth_headers(root),
        json={"firmName": "Ops Desk", "email": "ops@example.com", "password": "long-enough"},
    )
    assert duplicate.status_code == 409


async def test_create_admin_rejects_user_role(client, make_firm, auth_headers):
    root = await make_firm(role=FirmRole.SUPERADMIN)
    response = await client.post(
        "/api/v1/admin/create-admin",
        headers=auth_headers(root),
        json={
            "firmName": "Not Admin",
            "email": "plain@example.com",
            "password": "long-enough",
            "role": "user",
        },
    )
    assert response.status_code == 400


# ── Statistics ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("accepted", "total", "expected"),
    [(0, 0, 0.0), (1, 3, 33.33), (2, 2, 100.0), (0, 5, 0.0)],
)
def test_acceptance_rate(accepted, total, expected):
    assert acceptance_rate(accepted, total) == expected


async def test_platform_stats(client, make_firm, make_deal, auth_headers, store):
    admin = await make_firm(role=FirmRole.ADMIN)
    owner = await make_firm()
    a = await make_firm()
    b = await make_firm()
    await make_firm(status=FirmStatus.SUSPENDED)
    deal = await make_deal(owner)
    await make_deal(owner)

    first = await store.create_invitation(
        InvitationCreate(deal_id=deal.id, from_firm_id=owner.id, to_firm_id=a.id)
    )
    second = await store.create_invitation(
        InvitationCreate(deal_id=deal.id, from_firm_id=owner.id, to_firm_id=b.id)
    )
    await store.create_invitation(
        InvitationCreate(deal_id=deal.id, from_firm_id=owner.id, to_firm_id=admin.id)
    )
    await store.record_invitation_response(
        first.id, InvitationStatus.ACCEPTED, first.created_at, sign_nda=True
    )
    await store.record_invitation_response(
        second.id, InvitationStatus.DECLINED, second.created_at, sign_nda=False
    )

    response = await client.get("/api/v1/admin/stats", headers=auth_headers(admin))
    assert response.status_code == 200, response.text
    assert response.json() == {
        "firms": {"total": 5, "active": 4, "suspended": 1, "inactive": 0},
        "deals": {"total": 2, "active": 0, "draft": 2},
        "invitations": {
            "total": 3,
            "accepted": 1,
            "declined": 1,
            "pending": 1,
            "acceptanceRate": 33.33,
        },
        "ndas": {"total": 1},
    }
