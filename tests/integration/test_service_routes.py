"""
Integration tests for services and service inquiries.
"""

import pytest

from cyberbiz.db.enums import InquiryStatus
from cyberbiz.db.models import Service, ServiceInquiry


@pytest.fixture
def make_service(db):
    def _make(title="Web Development", order=0, is_active=True):
        service = Service(
            title=title,
            slug=title.lower().replace(" ", "-"),
            description=f"{title} for growing businesses",
            order=order,
            is_active=is_active,
        )
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make


@pytest.fixture
def service(make_service):
    return make_service()


INQUIRY = {
    "name": "Hana",
    "email": "Hana@Example.com",
    "company": "Hana Foods",
    "message": "We need a new online store.",
}


def inquire(client, service_id, **overrides):
    return client.post(f"/api/services/{service_id}/inquiry", json={**INQUIRY, **overrides})


def test_public_catalogue(client, make_service):
    second = make_service("SEO", order=2)
    first = make_service("Branding", order=1)
    make_service("Retired", is_active=False)

    data = client.get("/api/services").json()["data"]

    assert [s["id"] for s in data] == [first.id, second.id]


def test_show_service(client, make_service):
    service = make_service("Mobile Apps")
    hidden = make_service("Hidden", is_active=False)

    assert client.get(f"/api/services/{service.id}").json()["data"]["slug"] == "mobile-apps"
    assert client.get("/api/services/mobile-apps").json()["data"]["id"] == service.id

    response = client.get(f"/api/services/{hidden.slug}")
    assert response.status_code == 404
    assert response.json() == {"message": "Service not found"}


def test_submit_inquiry(client, service):
    response = inquire(client, service.id)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "hana@example.com"
    assert data["status"] == "new"
    assert data["service"]["id"] == service.id


def test_duplicate_inquiry(client, service):
    inquire(client, service.id)

    response = inquire(client, service.id, email="hana@example.com")

    assert response.status_code == 409
    assert response.json()["message"].startswith("You have already submitted an inquiry for this service.")


def test_inquiry_for_inactive_service(client, make_service):
    retired = make_service("Retired", is_active=False)

    response = inquire(client, retired.id)

    assert response.status_code == 404
    assert response.json() == {"message": "Service is not available"}


def test_inquiry_message_length(client, service):
    response = inquire(client, service.id, message="Too short")

    assert response.status_code == 422
    assert "message" in response.json()["errors"]


def test_check_and_cancel_inquiry(client, service):
    url = f"/api/services/{service.id}/inquiry"
    inquire(client, service.id)

    check = client.post(f"{url}/check", json={"email": "hana@example.com"}).json()
    assert check["exists"] is True
    assert check["inquiry"]["status"] == "new"

    cancel = client.post(f"{url}/cancel", json={"email": "hana@example.com"})
    assert cancel.status_code == 200
    assert cancel.json() == {"message": "Inquiry cancelled successfully"}

    assert client.post(f"{url}/check", json={"email": "hana@example.com"}).json() == {
        "exists": False,
        "inquiry": None,
    }

    again = client.post(f"{url}/cancel", json={"email": "hana@example.com"})
    assert again.status_code == 404
    assert again.json() == {"message": "No active inquiry found for this email and service."}

    assert inquire(client, service.id).status_code == 201


def test_admin_inquiries(client, admin, admin_headers, service):
    inquire(client, service.id)
    inquire(client, service.id, email="other@example.com", company="Other Co")

    listed = client.get(
        "/api/admin/services/inquiries", headers=admin_headers, params={"q": "other co"}
    ).json()
    assert [i["email"] for i in listed["data"]] == ["other@example.com"]

    inquiry_id = listed["data"][0]["id"]
    response = client.put(
        f"/api/admin/services/inquiries/{inquiry_id}",
        headers=admin_headers,
        json={"status": "contacted", "admin_notes": "Called on Monday", "assigned_to": str(admin.id)},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "contacted"
    assert data["assignee"]["id"] == str(admin.id)

    by_status = client.get(
        "/api/admin/services/inquiries", headers=admin_headers, params={"status": "contacted"}
    ).json()
    assert by_status["meta"]["total"] == 1


def test_admin_inquiry_unknown_assignee(client, db, admin_headers, service):
    inquire(client, service.id)
    inquiry = db.query(ServiceInquiry).one()

    response = client.put(
        f"/api/admin/services/inquiries/{inquiry.id}",
        headers=admin_headers,
        json={"assigned_to": "00000000-0000-0000-0000-000000000000"},
    )

    assert response.status_code == 422
    assert "assigned_to" in response.json()["errors"]


def test_admin_delete_inquiry(client, db, admin_headers, service):
    inquire(client, service.id)
    inquiry = db.query(ServiceInquiry).one()

    response = client.delete(f"/api/admin/services/inquiries/{inquiry.id}", headers=admin_headers)

    assert response.status_code == 200
    assert db.query(ServiceInquiry).count() == 0


def test_admin_service_crud(client, storage, make_service, admin_headers):
    make_service("Web Development")

    created = client.post(
        "/api/admin/services",
        headers=admin_headers,
        data={"title": "Web Development", "description": "Sites", "order": "3"},
        files={"image": ("web.png", b"\x89PNG web", "image/png")},
    )
    assert created.status_code == 201
    service = created.json()["data"]
    assert service["slug"] == "web-development-1"
    assert service["order"] == 3
    assert service["image_url"].startswith("http://testserver/storage/services/")

    updated = client.patch(
        f"/api/admin/services/{service['id']}", headers=admin_headers, json={"is_active": False, "slug": ""}
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["is_active"] is False
    assert updated.json()["data"]["slug"] == "web-development-1"

    all_services = client.get("/api/admin/services", headers=admin_headers).json()["data"]
    assert len(all_services) == 2

    deleted = client.delete(f"/api/admin/services/{service['id']}", headers=admin_headers)
    assert deleted.status_code == 200


def test_admin_service_taken_slug(client, make_service, admin_headers):
    make_service("Web Development")

    response = client.post(
        "/api/admin/services",
        headers=admin_headers,
        json={"title": "Sites", "slug": "web-development", "description": "Sites"},
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"slug": ["The slug has already been taken."]}


def test_cancelled_status_is_kept(client, db, service):
    inquire(client, service.id)
    client.post(f"/api/services/{service.id}/inquiry/cancel", json={"email": "hana@example.com"})

    assert db.query(ServiceInquiry).one().status == InquiryStatus.CANCELLED
