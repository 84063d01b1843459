"""
Integration tests for sponsorship posts.
"""

from datetime import datetime, timedelta

import pytest

from cyberbiz.db.enums import SponsorshipStatus
from cyberbiz.db.models import SponsorshipPost


@pytest.fixture
def make_post(db, admin):
    def _make(title="Cloud Week", status=SponsorshipStatus.PUBLISHED, **fields):
        fields.setdefault("slug", title.lower().replace(" ", "-"))
        post = SponsorshipPost(
            title=title,
            content="Sponsored content",
            sponsor_name="SkyTrain",
            status=status,
            created_by=admin.id,
            **fields,
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make


def test_public_list_shows_active_posts(client, make_post):
    now = datetime.utcnow()
    active = make_post("Active", published_at=now - timedelta(days=1))
    make_post("Draft", status=SponsorshipStatus.DRAFT)
    make_post("Scheduled", published_at=now + timedelta(days=1))
    make_post("Expired", published_at=now - timedelta(days=10), expires_at=now - timedelta(days=1))

    body = client.get("/api/sponsorship-posts").json()

    assert [p["id"] for p in body["data"]] == [active.id]
    assert body["meta"]["per_page"] == 12


def test_public_list_orders_by_priority(client, make_post):
    low = make_post("Low", priority=1)
    high = make_post("High", priority=9)

    data = client.get("/api/sponsorship-posts").json()["data"]

    assert [p["id"] for p in data] == [high.id, low.id]


def test_show_post(client, make_post, admin_headers):
    post = make_post("Cloud Week")
    draft = make_post("Hidden", status=SponsorshipStatus.DRAFT)

    assert client.get("/api/sponsorship-posts/cloud-week").json()["data"]["id"] == post.id
    assert client.get(f"/api/sponsorship-posts/{post.id}").status_code == 200

    response = client.get(f"/api/sponsorship-posts/{draft.slug}")
    assert response.status_code == 404
    assert response.json() == {"message": "Sponsorship post not found"}

    assert client.get(f"/api/sponsorship-posts/{draft.slug}", headers=admin_headers).status_code == 200


def test_admin_create_post(client, storage, admin_headers):
    response = client.post(
        "/api/admin/sponsorship-posts",
        headers=admin_headers,
        data={
            "title": "Fintech Summit",
            "content": "Join us",
            "sponsor_name": "PayCo",
            "sponsor_website": "https://payco.example.com",
            "status": "published",
            "priority": "5",
        },
        files={"sponsor_logo": ("logo.png", b"\x89PNG logo", "image/png")},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["slug"] == "fintech-summit"
    assert data["published_at"] is not None
    assert data["priority"] == 5
    assert data["sponsor_logo_url"].startswith("http://testserver/storage/sponsorship-posts/logos/")
    assert storage.exists(storage.path_from_url(data["sponsor_logo_url"]))


def test_admin_create_rejects_inverted_window(client, admin_headers):
    response = client.post(
        "/api/admin/sponsorship-posts",
        headers=admin_headers,
        json={
            "title": "Backwards",
            "content": "Text",
            "sponsor_name": "PayCo",
            "status": "draft",
            "published_at": "2030-02-01T00:00:00",
            "expires_at": "2030-01-01T00:00:00",
        },
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {
        "expires_at": ["The expires at must be a date after or equal to published at."]
    }


def test_admin_update_post(client, make_post, admin_headers):
    post = make_post("Draft", status=SponsorshipStatus.DRAFT)

    response = client.put(
        f"/api/admin/sponsorship-posts/{post.id}",
        headers=admin_headers,
        json={"status": "published", "sponsor_name": "NewCo"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "published"
    assert data["sponsor_name"] == "NewCo"
    assert data["published_at"] is not None


def test_admin_update_checks_window_against_stored_dates(client, make_post, admin_headers):
    post = make_post(published_at=datetime(2030, 5, 1))

    response = client.patch(
        f"/api/admin/sponsorship-posts/{post.id}",
        headers=admin_headers,
        json={"expires_at": "2030-04-01T00:00:00"},
    )

    assert response.status_code == 422


def test_admin_list_filter_and_delete(client, make_post, admin_headers):
    make_post("Live")
    archived = make_post("Old", status=SponsorshipStatus.ARCHIVED)

    listed = client.get(
        "/api/admin/sponsorship-posts", headers=admin_headers, params={"status": "archived"}
    ).json()
    assert [p["id"] for p in listed["data"]] == [archived.id]

    assert client.delete(f"/api/admin/sponsorship-posts/{archived.id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/sponsorship-posts/{archived.id}", headers=admin_headers).status_code == 404
