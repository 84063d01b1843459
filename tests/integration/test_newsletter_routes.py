"""
Integration tests for newsletter subscriptions and sends.
"""

from datetime import datetime

import pytest

from cyberbiz.db.enums import SubscriberStatus
from cyberbiz.db.models import Newsletter, NewsletterSubscriber


@pytest.fixture
def make_subscriber(db):
    def _make(email, status=SubscriberStatus.SUBSCRIBED):
        subscriber = NewsletterSubscriber(email=email, status=status, subscribed_at=datetime.utcnow())
        db.add(subscriber)
        db.commit()
        db.refresh(subscriber)
        return subscriber

    return _make


@pytest.fixture
def newsletter(db, admin):
    newsletter = Newsletter(subject="Weekly jobs", content="<p>New roles this week</p>", created_by=admin.id)
    db.add(newsletter)
    db.commit()
    db.refresh(newsletter)
    return newsletter


def test_subscribe(client, db):
    response = client.post("/api/newsletter/subscribe", json={"email": "Reader@Example.com", "name": "Reader"})

    assert response.status_code == 201
    assert response.json() == {"message": "Successfully subscribed to newsletter"}
    subscriber = db.query(NewsletterSubscriber).one()
    assert subscriber.email == "reader@example.com"
    assert subscriber.status == SubscriberStatus.SUBSCRIBED


def test_subscribe_twice(client, make_subscriber):
    make_subscriber("reader@example.com")

    response = client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    assert response.status_code == 409
    assert response.json() == {"message": "Email is already subscribed"}


def test_resubscribe(client, db, make_subscriber):
    subscriber = make_subscriber("reader@example.com", status=SubscriberStatus.UNSUBSCRIBED)

    response = client.post("/api/newsletter/subscribe", json={"email": "reader@example.com", "name": "Back"})

    assert response.status_code == 200
    assert response.json() == {"message": "Successfully resubscribed to newsletter"}
    db.refresh(subscriber)
    assert subscriber.status == SubscriberStatus.SUBSCRIBED
    assert subscriber.name == "Back"
    assert subscriber.unsubscribed_at is None


def test_subscribe_validates_email(client):
    response = client.post("/api/newsletter/subscribe", json={"email": "not-an-email"})

    assert response.status_code == 422
    assert "email" in response.json()["errors"]


def test_unsubscribe(client, db, make_subscriber):
    subscriber = make_subscriber("reader@example.com")

    response = client.post("/api/newsletter/unsubscribe", json={"email": "reader@example.com"})
    assert response.json() == {"message": "Successfully unsubscribed from newsletter"}
    db.refresh(subscriber)
    assert subscriber.status == SubscriberStatus.UNSUBSCRIBED
    assert subscriber.unsubscribed_at is not None

    again = client.post("/api/newsletter/unsubscribe", json={"email": "reader@example.com"})
    assert again.status_code == 200
    assert again.json() == {"message": "Email is already unsubscribed"}


def test_unsubscribe_unknown_email(client):
    response = client.post("/api/newsletter/unsubscribe", json={"email": "ghost@example.com"})

    assert response.status_code == 404
    assert response.json() == {"message": "Email not found in our newsletter list"}


def test_admin_subscriber_list(client, make_subscriber, admin_headers):
    make_subscriber("a@example.com")
    gone = make_subscriber("b@example.com", status=SubscriberStatus.UNSUBSCRIBED)

    response = client.get(
        "/api/admin/newsletters/subscribers", headers=admin_headers, params={"status": "unsubscribed"}
    )

    assert response.status_code == 200
    assert [s["id"] for s in response.json()["data"]] == [gone.id]

    assert client.delete(f"/api/admin/newsletters/subscribers/{gone.id}", headers=admin_headers).status_code == 200


def test_admin_create_newsletter(client, admin, admin_headers):
    response = client.post(
        "/api/admin/newsletters", headers=admin_headers, json={"subject": "Hello", "content": "<p>Hi</p>"}
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["created_by"]["id"] == str(admin.id)
    assert data["sent_at"] is None
    assert data["recipient_count"] == 0


def test_send_newsletter(client, db, mailer, make_subscriber, newsletter, admin_headers):
    make_subscriber("a@example.com")
    make_subscriber("b@example.com")
    make_subscriber("c@example.com", status=SubscriberStatus.UNSUBSCRIBED)
    mailer.failing.add("b@example.com")

    response = client.post(f"/api/admin/newsletters/{newsletter.id}/send", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"recipient_count": 1, "failed_count": 1}
    assert [m["to"] for m in mailer.sent] == ["a@example.com"]
    assert mailer.sent[0]["subject"] == "Weekly jobs"
    assert mailer.sent[0]["html"] == "<p>New roles this week</p>"
    assert mailer.sends_on_event_loop == 0

    db.refresh(newsletter)
    assert newsletter.sent_at is not None
    assert newsletter.recipient_count == 1

    again = client.post(f"/api/admin/newsletters/{newsletter.id}/send", headers=admin_headers)
    assert again.status_code == 422
    assert again.json() == {"message": "Newsletter has already been sent"}


def test_send_to_selected_subscribers(client, mailer, make_subscriber, newsletter, admin_headers):
    chosen = make_subscriber("a@example.com")
    make_subscriber("b@example.com")

    response = client.post(
        f"/api/admin/newsletters/{newsletter.id}/send",
        headers=admin_headers,
        json={"subscriber_ids": [chosen.id]},
    )

    assert response.json()["data"]["recipient_count"] == 1
    assert [m["to"] for m in mailer.sent] == ["a@example.com"]


def test_send_with_unknown_subscriber_id(client, newsletter, admin_headers):
    response = client.post(
        f"/api/admin/newsletters/{newsletter.id}/send",
        headers=admin_headers,
        json={"subscriber_ids": [999]},
    )

    assert response.status_code == 422
    assert "subscriber_ids" in response.json()["errors"]


def test_send_without_subscribers(client, newsletter, admin_headers):
    response = client.post(f"/api/admin/newsletters/{newsletter.id}/send", headers=admin_headers)

    assert response.status_code == 422
    assert response.json() == {"message": "No subscribers found"}


def test_newsletter_admin_requires_admin(client, seeker_headers):
    assert client.get("/api/admin/newsletters", headers=seeker_headers).status_code == 403
