"""
Integration tests for threaded blog comments.
"""

import pytest

from cyberbiz.db.enums import BlogStatus
from cyberbiz.db.models import Blog, BlogComment


@pytest.fixture
def blog(db, admin):
    blog = Blog(title="Open post", slug="open-post", content="Text", author_id=admin.id, status=BlogStatus.PUBLISHED)
    db.add(blog)
    db.commit()
    db.refresh(blog)
    return blog


def comment(client, headers, blog_id, content="Great post", parent_id=None):
    body = {"content": content}
    if parent_id is not None:
        body["parent_id"] = parent_id
    return client.post(f"/api/blogs/{blog_id}/comments", headers=headers, json=body)


def test_add_comment(client, blog, seeker, seeker_headers):
    response = comment(client, seeker_headers, blog.id)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["content"] == "Great post"
    assert data["depth"] == 0
    assert data["user"]["id"] == str(seeker.id)


def test_comment_requires_login(client, blog):
    assert comment(client, {}, blog.id).status_code == 401


def test_comment_on_draft(client, db, blog, seeker_headers, admin_headers):
    blog.status = BlogStatus.DRAFT
    db.commit()

    response = comment(client, seeker_headers, blog.id)
    assert response.status_code == 403
    assert response.json() == {"message": "Cannot comment on unpublished blog"}

    assert comment(client, admin_headers, blog.id).status_code == 201


def test_threaded_listing(client, blog, seeker_headers, employer_headers):
    first = comment(client, seeker_headers, blog.id, "First").json()["data"]["id"]
    second = comment(client, employer_headers, blog.id, "Second").json()["data"]["id"]
    reply = comment(client, employer_headers, blog.id, "Reply", parent_id=first).json()["data"]
    assert reply["depth"] == 1

    data = client.get(f"/api/blogs/{blog.id}/comments").json()["data"]

    assert [c["id"] for c in data] == [second, first]
    assert [r["content"] for r in data[1]["replies"]] == ["Reply"]
    assert data[1]["replies"][0]["depth"] == 1


def test_reply_depth_limit(client, blog, seeker_headers):
    top = comment(client, seeker_headers, blog.id, "Level 0").json()["data"]["id"]
    level1 = comment(client, seeker_headers, blog.id, "Level 1", parent_id=top).json()["data"]["id"]
    level2 = comment(client, seeker_headers, blog.id, "Level 2", parent_id=level1).json()["data"]
    assert level2["depth"] == 2

    response = comment(client, seeker_headers, blog.id, "Level 3", parent_id=level2["id"])

    assert response.status_code == 422
    assert response.json() == {"message": "Maximum reply depth reached"}


def test_reply_to_comment_of_other_blog(client, db, admin, blog, seeker_headers):
    other = Blog(title="Other", slug="other", content="Text", author_id=admin.id, status=BlogStatus.PUBLISHED)
    db.add(other)
    db.commit()
    foreign = comment(client, seeker_headers, other.id).json()["data"]["id"]

    response = comment(client, seeker_headers, blog.id, parent_id=foreign)

    assert response.status_code == 422
    assert response.json() == {"message": "Invalid parent comment"}


def test_reply_to_missing_comment(client, blog, seeker_headers):
    response = comment(client, seeker_headers, blog.id, parent_id=999)

    assert response.status_code == 422
    assert "parent_id" in response.json()["errors"]


def test_edit_comment(client, blog, seeker_headers, employer_headers, admin_headers):
    comment_id = comment(client, seeker_headers, blog.id).json()["data"]["id"]
    url = f"/api/comments/{comment_id}"

    assert client.put(url, headers=employer_headers, json={"content": "Hijack"}).status_code == 403

    response = client.put(url, headers=seeker_headers, json={"content": "Edited"})
    assert response.status_code == 200
    assert response.json()["data"]["content"] == "Edited"

    assert client.put(url, headers=admin_headers, json={"content": "Moderated"}).status_code == 200


def test_delete_comment_removes_replies(client, db, blog, seeker_headers, employer_headers):
    top = comment(client, seeker_headers, blog.id).json()["data"]["id"]
    comment(client, employer_headers, blog.id, "Reply", parent_id=top)

    response = client.delete(f"/api/comments/{top}", headers=seeker_headers)

    assert response.status_code == 200
    assert db.query(BlogComment).count() == 0
