"""
Integration tests for banner ad slots.
"""

import pytest

from cyberbiz.db.enums import AdPosition
from cyberbiz.db.models import AdSlot

PNG = b"\x89PNG\r\n\x1a\nbanner"


@pytest.fixture
def make_ad(db):
    def _make_ad(position=AdPosition.SIDEBAR, is_active=True, image_url="https://cdn.example.com/banner.png"):
        ad = AdSlot(
            position=position,
            image_url=image_url,
            target_url="https://sponsor.example.com",
            is_active=is_active,
        )
        db.add(ad)
        db.commit()
        db.refresh(ad)
        return ad

    return _make_ad


def test_public_ads_count_impressions(client, db, make_ad):
    ad = make_ad()
    make_ad(is_active=False)

    first = client.get("/api/ads").json()["data"]
    assert [a["id"] for a in first] == [ad.id]
    assert first[0]["impressions"] == 1

    second = client.get("/api/ads").json()["data"]
    assert second[0]["impressions"] == 2

    db.refresh(ad)
    assert ad.impressions == 2


def test_public_ads_by_position(client, make_ad):
    header = make_ad(position=AdPosition.HOME_HEADER)
    make_ad(position=AdPosition.SIDEBAR)

    data = client.get("/api/ads", params={"position": "HOME_HEADER"}).json()["data"]

    assert [a["id"] for a in data] == [header.id]
    assert "is_active" not in data[0]


def test_admin_create_ad_with_upload(client, storage, admin_headers):
    response = client.post(
        "/api/admin/ads",
        headers=admin_headers,
        data={"position": "SIDEBAR", "target_url": "https://sponsor.example.com"},
        files={"image": ("banner.png", PNG, "image/png")},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["image_url"].startswith("http://testserver/storage/ads/")
    assert data["is_active"] is True
    assert storage.exists(storage.path_from_url(data["image_url"]))


def test_admin_create_ad_with_url(client, admin_headers):
    response = client.post(
        "/api/admin/ads",
        headers=admin_headers,
        json={
            "position": "JOB_DETAIL",
            "image_url": "https://cdn.example.com/a.png",
            "target_url": "https://sponsor.example.com",
            "is_active": False,
        },
    )

    assert response.status_code == 201
    assert response.json()["data"]["is_active"] is False


def test_admin_create_ad_needs_image(client, admin_headers):
    response = client.post(
        "/api/admin/ads",
        headers=admin_headers,
        json={"position": "SIDEBAR", "target_url": "https://sponsor.example.com"},
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"image_url": ["The image url field is required."]}


def test_admin_create_ad_rejects_non_image(client, admin_headers):
    response = client.post(
        "/api/admin/ads",
        headers=admin_headers,
        data={"position": "SIDEBAR", "target_url": "https://sponsor.example.com"},
        files={"image": ("banner.txt", b"text", "text/plain")},
    )

    assert response.status_code == 422
    assert "image" in response.json()["errors"]


def test_admin_replace_ad_image(client, storage, admin_headers):
    created = client.post(
        "/api/admin/ads",
        headers=admin_headers,
        data={"position": "SIDEBAR", "target_url": "https://sponsor.example.com"},
        files={"image": ("old.png", PNG, "image/png")},
    ).json()["data"]
    old_path = storage.path_from_url(created["image_url"])

    response = client.post(
        f"/api/admin/ads/{created['id']}/update",
        headers=admin_headers,
        data={"is_active": "false"},
        files={"image": ("new.png", PNG, "image/png")},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_active"] is False
    assert data["image_url"] != created["image_url"]
    assert not storage.exists(old_path)


def test_admin_list_and_filter_ads(client, make_ad, admin_headers):
    make_ad(is_active=True)
    inactive = make_ad(is_active=False)

    response = client.get("/api/admin/ads", headers=admin_headers, params={"is_active": "false"})

    assert response.status_code == 200
    assert [a["id"] for a in response.json()["data"]] == [inactive.id]


def test_admin_delete_ad(client, db, make_ad, admin_headers):
    ad = make_ad()

    response = client.delete(f"/api/admin/ads/{ad.id}", headers=admin_headers)

    assert response.status_code == 200
    assert client.get(f"/api/admin/ads/{ad.id}", headers=admin_headers).status_code == 404


def test_admin_delete_ad_with_escaping_image_url(client, make_ad, admin_headers):
    ad = make_ad(image_url="http://testserver/storage/../../etc/passwd")

    response = client.delete(f"/api/admin/ads/{ad.id}", headers=admin_headers)

    assert response.status_code == 200


def test_admin_ads_require_admin(client, employer_headers):
    assert client.get("/api/admin/ads").status_code == 401
    assert client.get("/api/admin/ads", headers=employer_headers).status_code == 403
