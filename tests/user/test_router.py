"""Tests for user moderation router."""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.user.models import User, UserRole, UserStatus

BASE = "/admin/users"

# --- Access control ---


def test_non_admin_forbidden(client: TestClient):
    """Test moderation routes return 403 for non-admin users."""
    response = client.get(BASE)

    assert response.status_code == 403
    assert response.json()["type"] == "admin_required"


def test_unauthenticated(unauthenticated_client: TestClient):
    """Test moderation routes without auth return 401."""
    response = unauthenticated_client.get(f"{BASE}/statistics")

    assert response.status_code == 401
    assert response.json()["type"] == "invalid_credentials"


def test_request_id_echoed(admin_client: TestClient):
    """Test the caller's X-Request-ID is returned on the response."""
    response = admin_client.get(
        f"{BASE}/statistics", headers={"X-Request-ID": "req-123"}
    )

    assert response.headers["X-Request-ID"] == "req-123"


# --- GET /admin/users/statistics ---


def test_statistics(admin_client: TestClient, make_user):
    """Test GET /statistics counts live users by role and status."""
    make_user(status=UserStatus.pending)

    response = admin_client.get(f"{BASE}/statistics")

    assert response.status_code == 200
    data = response.json()
    # admin_user plus the pending farmer
    assert data["total_users"] == 2
    assert data["pending_count"] == 1
    assert set(data["users_by_role"]) == {r.value for r in UserRole}
    assert set(data["users_by_status"]) == {s.value for s in UserStatus}


# --- GET /admin/users (search) ---


def test_search_default_page(admin_client: TestClient, make_user):
    """Test GET / returns a page with pagination metadata."""
    for _ in range(3):
        make_user()

    response = admin_client.get(BASE)

    assert response.status_code == 200
    data = response.json()
    assert data["pagination"] == {
        "page": 1,
        "limit": 20,
        "total_count": 4,
        "total_pages": 1,
    }
    assert "password_hash" not in data["users"][0]


def test_search_clamps_pagination(admin_client: TestClient):
    """Test out-of-range page and limit are clamped, not rejected."""
    response = admin_client.get(BASE, params={"page": 0, "limit": 1000})

    assert response.status_code == 200
    assert response.json()["pagination"]["page"] == 1
    assert response.json()["pagination"]["limit"] == 100


@pytest.mark.parametrize("path", ["", "/pending", "/role/farmer"])
def test_huge_page_returns_empty_page(admin_client: TestClient, make_user, path):
    """Test a page number beyond any real offset gives 200 with no users."""
    make_user(status=UserStatus.pending)

    response = admin_client.get(
        f"{BASE}{path}", params={"page": "100000000000000000000"}
    )

    assert response.status_code == 200
    assert response.json()["users"] == []


def test_search_non_numeric_page(admin_client: TestClient):
    """Test a non-numeric page is a 400 naming the field."""
    response = admin_client.get(BASE, params={"page": "abc"})

    assert response.status_code == 400
    assert response.json()["type"] == "invalid_pagination"
    assert response.json()["field"] == "page"


def test_search_unknown_role_filter(admin_client: TestClient):
    """Test an unknown role filter is a 400."""
    response = admin_client.get(BASE, params={"role": "king"})

    assert response.status_code == 400
    assert response.json()["field"] == "role"


def test_search_sort_alias(admin_client: TestClient, make_user):
    """Test sortBy/sortOrder query aliases."""
    make_user(last_name="Zulu")
    make_user(last_name="Alpha")

    response = admin_client.get(
        BASE, params={"sortBy": "lastName", "sortOrder": "asc"}
    )

    assert response.status_code == 200
    last_names = [u["last_name"] for u in response.json()["users"]]
    assert last_names == sorted(last_names)


def test_search_text(admin_client: TestClient, make_user):
    """Test the search term narrows results."""
    make_user(first_name="Achieng")

    response = admin_client.get(BASE, params={"search": "achi"})

    assert response.json()["pagination"]["total_count"] == 1


# --- POST /admin/users (registration intake) ---


def test_register_user(admin_client: TestClient):
    """Test POST / stores a pending user."""
    response = admin_client.post(
        BASE,
        json={
            "email": "New.Farmer@Example.com",
            "region": "Meru",
            "first_name": "New",
            "password_hash": "secret-hash",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["email"] == "new.farmer@example.com"
    assert "password_hash" not in data


def test_register_duplicate_email(admin_client: TestClient, admin_user: User):
    """Test registering an email in use returns 409."""
    response = admin_client.post(
        BASE, json={"email": admin_user.email, "region": "Meru"}
    )

    assert response.status_code == 409
    assert response.json()["type"] == "email_exists"


def test_register_missing_region(admin_client: TestClient):
    """Test region is required."""
    response = admin_client.post(BASE, json={"email": "x@example.com"})

    assert response.status_code == 422
    assert response.json()["type"] == "validation_error"
    assert response.json()["field"] == "region"


# --- list variants ---


def test_get_all_users(admin_client: TestClient, make_user):
    """Test GET /all returns a plain list of live users."""
    make_user()

    response = admin_client.get(f"{BASE}/all")

    assert response.status_code == 200
    assert isinstance(response.json(), list)
    assert len(response.json()) == 2


def test_get_pending_users(admin_client: TestClient, make_user):
    """Test GET /pending only returns pending users."""
    make_user(status=UserStatus.pending)
    make_user(status=UserStatus.suspended)

    response = admin_client.get(f"{BASE}/pending")

    assert response.status_code == 200
    users = response.json()["users"]
    assert [u["status"] for u in users] == ["pending"]


def test_get_users_by_role(admin_client: TestClient, make_user):
    """Test GET /role/{role} filters by role."""
    make_user(role=UserRole.advisor)

    response = admin_client.get(f"{BASE}/role/advisor")

    assert response.status_code == 200
    assert [u["role"] for u in response.json()["users"]] == ["advisor"]


def test_get_users_by_unknown_role(admin_client: TestClient):
    """Test GET /role/{role} with an unknown role returns 400."""
    response = admin_client.get(f"{BASE}/role/king")

    assert response.status_code == 400
    assert response.json()["type"] == "invalid_role"


# --- GET /admin/users/{user_id} ---


def test_get_user(admin_client: TestClient, make_user):
    """Test GET /{user_id} returns the user."""
    user = make_user(password_hash="hash", verification_token="token")

    response = admin_client.get(f"{BASE}/{user.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(user.id)
    assert "password_hash" not in data
    assert "verification_token" not in data
    assert "external_id" not in data


def test_get_user_not_found(admin_client: TestClient):
    """Test GET /{user_id} for an unknown id returns 404."""
    response = admin_client.get(f"{BASE}/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["type"] == "user_not_found"


# --- lifecycle ---


def test_approve_user(admin_client: TestClient, admin_user: User, make_user):
    """Test POST /{id}/approve activates and stamps the acting admin."""
    user = make_user(status=UserStatus.pending)

    response = admin_client.post(f"{BASE}/{user.id}/approve")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "active"
    assert data["approved_by"] == str(admin_user.id)
    assert data["approved_at"].endswith("Z")


def test_approve_twice_conflict(admin_client: TestClient, make_user):
    """Test a second approve returns 409."""
    user = make_user(status=UserStatus.pending)
    admin_client.post(f"{BASE}/{user.id}/approve")

    response = admin_client.post(f"{BASE}/{user.id}/approve")

    assert response.status_code == 409
    assert response.json()["type"] == "invalid_transition"


def test_reject_without_reason(
    admin_client: TestClient, make_user, session: Session
):
    """Test POST /{id}/reject without a reason returns 400 and changes nothing."""
    user = make_user(status=UserStatus.pending)

    response = admin_client.post(f"{BASE}/{user.id}/reject", json={})

    assert response.status_code == 400
    assert response.json()["field"] == "reason"
    session.refresh(user)
    assert user.status == UserStatus.pending


def test_reject_user(admin_client: TestClient, make_user):
    """Test POST /{id}/reject stores the reason."""
    user = make_user(status=UserStatus.pending)

    response = admin_client.post(
        f"{BASE}/{user.id}/reject", json={"reason": "Duplicate account"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "inactive"
    assert response.json()["rejection_reason"] == "Duplicate account"


def test_reject_reason_too_long(admin_client: TestClient, make_user):
    """Test an overlong reason is a 400 naming the field, not a store error."""
    user = make_user(status=UserStatus.pending)

    response = admin_client.post(
        f"{BASE}/{user.id}/reject", json={"reason": "x" * 1001}
    )

    assert response.status_code == 400
    assert response.json()["type"] == "rejection_reason_too_long"
    assert response.json()["field"] == "reason"


def test_suspend_and_reactivate(admin_client: TestClient, make_user):
    """Test suspend then reactivate round trip."""
    user = make_user(status=UserStatus.active)

    suspended = admin_client.post(f"{BASE}/{user.id}/suspend")
    reactivated = admin_client.post(f"{BASE}/{user.id}/reactivate")

    assert suspended.json()["status"] == "suspended"
    assert reactivated.json()["status"] == "active"


def test_update_role(admin_client: TestClient, make_user):
    """Test PATCH /{id}/role changes the role."""
    user = make_user()

    response = admin_client.patch(f"{BASE}/{user.id}/role", json={"role": "viewer"})

    assert response.status_code == 200
    assert response.json()["role"] == "viewer"


def test_update_role_invalid(admin_client: TestClient, make_user):
    """Test PATCH /{id}/role with an unknown role returns 400."""
    user = make_user()

    response = admin_client.patch(f"{BASE}/{user.id}/role", json={"role": "king"})

    assert response.status_code == 400
    assert response.json()["field"] == "role"


def test_update_role_last_superadmin(admin_client: TestClient, superadmin_user: User):
    """Test demoting the last active superadmin returns 409."""
    response = admin_client.patch(
        f"{BASE}/{superadmin_user.id}/role", json={"role": "admin"}
    )

    assert response.status_code == 409
    assert response.json()["type"] == "last_superadmin"


def test_delete_user(admin_client: TestClient, make_user):
    """Test DELETE /{id} soft deletes; repeating it still succeeds."""
    user = make_user()

    first = admin_client.delete(f"{BASE}/{user.id}")
    second = admin_client.delete(f"{BASE}/{user.id}")
    lookup = admin_client.get(f"{BASE}/{user.id}")

    assert first.status_code == 200
    assert first.json() == {"success": True}
    assert second.status_code == 200
    assert lookup.status_code == 404


def test_delete_unknown_user(admin_client: TestClient):
    """Test DELETE /{id} for an id that never existed returns 404."""
    response = admin_client.delete(f"{BASE}/{uuid.uuid4()}")

    assert response.status_code == 404


def test_audit_log(admin_client: TestClient, admin_user: User, make_user):
    """Test GET /{id}/audit lists transitions oldest first."""
    user = make_user(status=UserStatus.pending)
    admin_client.post(f"{BASE}/{user.id}/approve")
    admin_client.post(f"{BASE}/{user.id}/suspend")

    response = admin_client.get(f"{BASE}/{user.id}/audit")

    assert response.status_code == 200
    entries = response.json()
    assert [e["action"] for e in entries] == ["approve", "suspend"]
    assert entries[0]["actor_id"] == str(admin_user.id)
    assert entries[0]["from_status"] == "pending"
    assert entries[0]["to_status"] == "active"


# --- bulk ---


def test_bulk_approve(admin_client: TestClient, make_user):
    """Test POST /bulk-approve reports per-item outcomes."""
    pending = make_user(status=UserStatus.pending)
    active = make_user(status=UserStatus.active)
    unknown = uuid.uuid4()

    response = admin_client.post(
        f"{BASE}/bulk-approve",
        json={"user_ids": [str(pending.id), str(active.id), str(unknown)]},
    )

    assert response.status_code == 200
    data = response.json()
    assert [s["id"] for s in data["succeeded"]] == [str(pending.id)]
    assert [(f["id"], f["error_kind"]) for f in data["failed"]] == [
        (str(active.id), "conflict"),
        (str(unknown), "not_found"),
    ]


def test_bulk_approve_malformed_id(admin_client: TestClient, make_user):
    """Test a malformed id fails on its own while the rest of the batch runs."""
    pending = make_user(status=UserStatus.pending)

    response = admin_client.post(
        f"{BASE}/bulk-approve",
        json={"user_ids": ["not-a-uuid", str(pending.id)]},
    )

    assert response.status_code == 200
    data = response.json()
    assert [s["id"] for s in data["succeeded"]] == [str(pending.id)]
    assert [(f["id"], f["error_kind"]) for f in data["failed"]] == [
        ("not-a-uuid", "not_found"),
    ]


def test_bulk_suspend(admin_client: TestClient, make_user):
    """Test POST /bulk/suspend."""
    user = make_user(status=UserStatus.active)

    response = admin_client.post(
        f"{BASE}/bulk/suspend", json={"user_ids": [str(user.id)]}
    )

    assert response.status_code == 200
    assert response.json()["succeeded"][0]["result"]["status"] == "suspended"


def test_bulk_unknown_action(admin_client: TestClient):
    """Test POST /bulk/{action} rejects actions outside the allowed set."""
    response = admin_client.post(f"{BASE}/bulk/delete", json={"user_ids": []})

    assert response.status_code == 422
