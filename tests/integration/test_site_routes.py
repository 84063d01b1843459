"""
Integration tests for site settings, statistics and the contact form.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from cyberbiz.db.enums import AdPosition, JobStatus, ProductType, TransactionStatus, UserRole
from cyberbiz.db.models import AdSlot, JobPosting, Product, SiteSetting, Transaction


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def test_public_settings_are_created_on_first_read(client, db):
    response = client.get("/api/settings")

    assert response.status_code == 200
    assert response.json()["data"]["email"] is None
    assert db.query(SiteSetting).count() == 1

    client.get("/api/settings")
    assert db.query(SiteSetting).count() == 1


def test_admin_update_settings(client, admin_headers):
    response = client.put(
        "/api/admin/settings",
        headers=admin_headers,
        json={"email": "hello@cyberbiz.africa", "phone": "+251 11 000 0000", "faq_q1": "How do I apply?"},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Settings updated successfully"

    public = client.get("/api/settings").json()["data"]
    assert public["email"] == "hello@cyberbiz.africa"
    assert public["faq_q1"] == "How do I apply?"


def test_admin_settings_blank_clears_field(client, admin_headers):
    client.put("/api/admin/settings", headers=admin_headers, json={"address": "Bole Road"})

    data = client.put("/api/admin/settings", headers=admin_headers, json={"address": ""}).json()["data"]

    assert data["address"] is None


def test_admin_settings_validation(client, admin_headers):
    response = client.put("/api/admin/settings", headers=admin_headers, json={"facebook_url": "facebook"})

    assert response.status_code == 422
    assert "facebook_url" in response.json()["errors"]


def test_admin_settings_require_admin(client, seeker_headers):
    assert client.put("/api/admin/settings", headers=seeker_headers, json={}).status_code == 403


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


@pytest.fixture
def marketplace(db, make_user, employer, seeker):
    """Two live jobs, one expired, one approved and one pending payment."""
    make_user(UserRole.SEEKER, email="second-seeker@example.com")
    for title, expires in (("Live 1", None), ("Live 2", datetime.utcnow() + timedelta(days=5)),
                           ("Expired", datetime.utcnow() - timedelta(days=1))):
        db.add(JobPosting(employer_id=employer.id, title=title, description_html="<p>x</p>",
                          status=JobStatus.PUBLISHED, expires_at=expires))

    product = Product(type=ProductType.COURSE, title="Course", description="d", price_etb=Decimal("150.00"))
    db.add(product)
    db.flush()
    db.add(Transaction(user_id=seeker.id, product_id=product.id, gateway="MANUAL",
                       amount=Decimal("150.00"), status=TransactionStatus.APPROVED))
    db.add(Transaction(user_id=seeker.id, product_id=product.id, gateway="MANUAL",
                       amount=Decimal("150.00"), status=TransactionStatus.PENDING_APPROVAL))
    db.add(AdSlot(position=AdPosition.SIDEBAR, image_url="https://cdn.example.com/a.png",
                  target_url="https://example.com", is_active=True))
    db.commit()


def test_public_stats(client, marketplace):
    response = client.get("/api/stats")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "active_jobs": 2,
        "companies": 1,
        "job_seekers": 2,
        "success_rate": 85,
    }


def test_admin_stats(client, admin, admin_headers, marketplace):
    data = client.get("/api/admin/stats", headers=admin_headers).json()["data"]

    assert data["total_users"] == 4
    assert data["active_jobs"] == 2
    assert data["revenue_etb"] == 150
    assert data["conversion_rate"] == 50.0
    assert data["pending_payments"] == 1
    assert data["active_ads"] == 1

    activities = data["recent_activities"]
    assert 0 < len(activities) <= 10
    assert {a["type"] for a in activities} >= {"user_registered", "payment_pending", "job_posted", "course_purchased"}
    assert all(a["time"].endswith("ago") or a["time"] == "just now" for a in activities)


def test_admin_stats_empty(client, admin_headers):
    data = client.get("/api/admin/stats", headers=admin_headers).json()["data"]

    assert data["conversion_rate"] == 0.0
    assert data["revenue_etb"] == 0


# ---------------------------------------------------------------------------
# Contact form
# ---------------------------------------------------------------------------


CONTACT = {
    "firstName": "Abel",
    "lastName": "Tesfaye",
    "email": "abel@example.com",
    "message": "I would like to advertise on your site.",
}


def test_contact_form(client, mailer):
    response = client.post("/api/contact", json=CONTACT)

    assert response.status_code == 200
    assert response.json() == {"message": "Message sent successfully! We'll get back to you soon."}

    assert len(mailer.sent) == 1
    sent = mailer.sent[0]
    assert sent["to"] == "info@cyberbiz.africa"
    assert sent["reply_to"] == "abel@example.com"
    assert sent["subject"] == "Contact form: Abel Tesfaye"
    assert "I would like to advertise on your site." in sent["text"]
    assert mailer.sends_on_event_loop == 0


def test_contact_form_validation(client):
    response = client.post("/api/contact", json={**CONTACT, "message": "Hi"})

    assert response.status_code == 422
    assert "message" in response.json()["errors"]


def test_contact_form_mail_failure(client, mailer):
    mailer.failing.add("info@cyberbiz.africa")

    response = client.post("/api/contact", json=CONTACT)

    assert response.status_code == 500
    assert response.json() == {
        "message": "Failed to send message. Please try again later or contact us directly."
    }
