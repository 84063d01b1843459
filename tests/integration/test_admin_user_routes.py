"""
Integration tests for admin user management.
"""

from cyberbiz.db.enums import PasswordResetStatus, UserRole
from cyberbiz.db.models import PasswordResetRequest


def test_admin_routes_require_admin(client, seeker_headers):
    assert client.get("/api/admin/users").status_code == 401

    response = client.get("/api/admin/users", headers=seeker_headers)
    assert response.status_code == 403
    assert response.json() == {"message": "Unauthorized"}


def test_list_users_filters(client, admin_headers, seeker, employer):
    response = client.get("/api/admin/users", headers=admin_headers, params={"role": "EMPLOYER"})

    assert response.status_code == 200
    body = response.json()
    assert [u["email"] for u in body["data"]] == ["employer@example.com"]
    assert body["meta"]["total"] == 1

    response = client.get("/api/admin/users", headers=admin_headers, params={"q": "sara"})
    assert [u["id"] for u in response.json()["data"]] == [str(seeker.id)]


def test_show_user(client, admin_headers, seeker):
    response = client.get(f"/api/admin/users/{seeker.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "seeker@example.com"


def test_show_unknown_user(client, admin_headers):
    response = client.get("/api/admin/users/00000000-0000-0000-0000-000000000000", headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"message": "User not found"}


def test_update_user(client, admin_headers, seeker):
    response = client.patch(
        f"/api/admin/users/{seeker.id}",
        headers=admin_headers,
        json={"role": "EMPLOYER", "credits": 50, "company_name": "Sara Co"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["role"] == "EMPLOYER"
    assert data["credits"] == 50
    assert data["company_name"] == "Sara Co"


def test_update_user_email_taken(client, admin_headers, seeker, employer):
    response = client.put(
        f"/api/admin/users/{seeker.id}", headers=admin_headers, json={"email": "Employer@example.com"}
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"email": ["The email has already been taken."]}


def test_admin_cannot_delete_self(client, admin, admin_headers):
    response = client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers)

    assert response.status_code == 422
    assert response.json() == {"message": "You cannot delete your own account"}


def test_delete_user_is_soft_and_revokes_tokens(client, admin_headers, seeker, seeker_headers):
    response = client.delete(f"/api/admin/users/{seeker.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "User deleted successfully"}
    assert client.get("/api/auth/user", headers=seeker_headers).status_code == 401
    assert client.get(f"/api/admin/users/{seeker.id}", headers=admin_headers).status_code == 404

    listed = client.get("/api/admin/users", headers=admin_headers).json()["data"]
    assert str(seeker.id) not in [u["id"] for u in listed]


def test_reset_password_processes_requests(client, db, make_user, admin_headers):
    other_admin = make_user(UserRole.ADMIN, email="ops@example.com")
    client.post("/api/auth/forgot-password", json={"email": "ops@example.com"})

    pending = client.get("/api/admin/users/password-reset-requests", headers=admin_headers).json()["data"]
    assert [r["email"] for r in pending] == ["ops@example.com"]
    assert pending[0]["user"]["id"] == str(other_admin.id)

    response = client.post(
        f"/api/admin/users/{other_admin.id}/reset-password",
        headers=admin_headers,
        json={"password": "brand-new-pass"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Password reset successfully"

    assert client.get("/api/admin/users/password-reset-requests", headers=admin_headers).json()["data"] == []
    reset_request = db.query(PasswordResetRequest).one()
    assert reset_request.status == PasswordResetStatus.PROCESSED
    assert reset_request.processed_at is not None

    login = client.post("/api/auth/login", json={"email": "ops@example.com", "password": "brand-new-pass"})
    assert login.status_code == 200


def test_reset_password_validates_length(client, admin_headers, seeker):
    response = client.post(
        f"/api/admin/users/{seeker.id}/reset-password", headers=admin_headers, json={"password": "short"}
    )

    assert response.status_code == 422


def test_reset_password_rejects_overlong_password(client, admin_headers, seeker):
    response = client.post(
        f"/api/admin/users/{seeker.id}/reset-password", headers=admin_headers, json={"password": "p" * 73}
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"password": ["The password may not be greater than 72 bytes."]}
