"""
Integration tests for job postings, applications and favorites.
"""

from datetime import datetime, timedelta

import pytest

from cyberbiz.db.enums import JobStatus, JobType, UserRole
from cyberbiz.db.models import Application, JobPosting


@pytest.fixture
def make_job(db, employer):
    def _make_job(title="Backend Engineer", status=JobStatus.PUBLISHED, owner=None, **fields):
        job = JobPosting(
            employer_id=(owner or employer).id,
            title=title,
            description_html="<p>Build APIs</p>",
            status=status,
            **fields,
        )
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make_job


@pytest.fixture
def job(make_job):
    return make_job(job_type=JobType.FULL_TIME, location="Addis Ababa")


def apply(client, headers, job_id, filename="cv.pdf", **data):
    return client.post(
        f"/api/jobs/{job_id}/apply",
        headers=headers,
        data=data,
        files={"cv": (filename, b"%PDF-1.4 cv", "application/pdf")},
    )


# ---------------------------------------------------------------------------
# Postings
# ---------------------------------------------------------------------------


def test_create_job(client, db, employer, employer_headers):
    expires = (datetime.utcnow() + timedelta(days=30)).isoformat()

    response = client.post(
        "/api/jobs",
        headers=employer_headers,
        json={
            "title": "Data Analyst",
            "job_type": "CONTRACT",
            "skills": ["SQL", "Python"],
            "description": "ABOUT US\n\nWe analyse data.",
            "website_url": "https://acme.example.com",
            "status": "PUBLISHED",
            "expires_at": expires,
        },
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["description_html"] == (
        '<div class="job-description"><h2>ABOUT US</h2><p>We analyse data.</p></div>'
    )
    assert data["skills"] == ["SQL", "Python"]
    assert data["status"] == "PUBLISHED"
    assert data["ld_json"]["@type"] == "JobPosting"
    assert data["ld_json"]["hiringOrganization"]["name"] == "Acme PLC"

    db.refresh(employer)
    assert employer.website_url == "https://acme.example.com"


def test_create_job_defaults_to_draft(client, employer_headers):
    response = client.post(
        "/api/jobs", headers=employer_headers, json={"title": "Designer", "description_html": "<p>Design</p>"}
    )

    assert response.status_code == 201
    assert response.json()["data"]["status"] == "DRAFT"


def test_create_job_requires_description(client, employer_headers):
    response = client.post("/api/jobs", headers=employer_headers, json={"title": "Designer"})

    assert response.status_code == 422
    assert "description_html" in response.json()["errors"]


def test_create_job_expiry_must_be_after_today(client, employer_headers):
    response = client.post(
        "/api/jobs",
        headers=employer_headers,
        json={"title": "Designer", "description": "Design", "expires_at": "2001-01-01T00:00:00"},
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"expires_at": ["The expires at must be a date after today."]}


def test_seekers_cannot_post_jobs(client, seeker_headers):
    response = client.post("/api/jobs", headers=seeker_headers, json={"title": "Nope", "description": "x"})

    assert response.status_code == 403


def test_public_list_only_shows_live_jobs(client, make_job):
    live = make_job("Live")
    make_job("Draft", status=JobStatus.DRAFT)
    make_job("Expired", expires_at=datetime.utcnow() - timedelta(days=1))

    response = client.get("/api/jobs")

    assert response.status_code == 200
    assert [j["id"] for j in response.json()["data"]] == [str(live.id)]


def test_public_list_search(client, make_job):
    make_job("Frontend Developer")
    make_job("Accountant")

    response = client.get("/api/jobs", params={"q": "frontend"})

    assert [j["title"] for j in response.json()["data"]] == ["Frontend Developer"]


def test_my_jobs_include_drafts_and_counts(client, db, make_job, seeker, employer_headers):
    draft = make_job("Draft", status=JobStatus.DRAFT)
    db.add(Application(job_id=draft.id, seeker_id=seeker.id, cv_path="cvs/x.pdf", cv_original_name="x.pdf"))
    db.commit()

    response = client.get("/api/jobs", headers=employer_headers, params={"my_jobs": "true"})

    data = response.json()["data"]
    assert [j["id"] for j in data] == [str(draft.id)]
    assert data[0]["applications_count"] == 1


def test_employer_filter_hides_drafts_from_others(
    client, make_user, headers_for, make_job, employer, employer_headers
):
    live = make_job("Live")
    make_job("Secret draft", status=JobStatus.DRAFT)
    params = {"employer_id": str(employer.id)}

    anonymous = client.get("/api/jobs", params=params).json()["data"]
    assert [j["id"] for j in anonymous] == [str(live.id)]

    rival = make_user(UserRole.EMPLOYER, email="rival@example.com")
    listed = client.get("/api/jobs", headers=headers_for(rival), params=params).json()["data"]
    assert [j["id"] for j in listed] == [str(live.id)]

    own = client.get("/api/jobs", headers=employer_headers, params=params).json()["data"]
    assert {j["title"] for j in own} == {"Live", "Secret draft"}


def test_admin_job_list(client, make_job, admin_headers, seeker_headers):
    make_job("Draft", status=JobStatus.DRAFT)
    make_job("Archived", status=JobStatus.ARCHIVED)

    response = client.get("/api/admin/jobs", headers=admin_headers, params={"status": "ARCHIVED"})
    assert [j["title"] for j in response.json()["data"]] == ["Archived"]

    assert client.get("/api/admin/jobs", headers=seeker_headers).status_code == 403


def test_job_detail(client, job):
    response = client.get(f"/api/jobs/{job.id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Backend Engineer"
    assert data["employer"]["company_name"] == "Acme PLC"
    assert data["ld_json"]["jobLocation"]["address"]["addressLocality"] == "Addis Ababa"


def test_draft_detail_visibility(client, make_job, employer_headers, seeker_headers):
    draft = make_job("Draft", status=JobStatus.DRAFT)

    anonymous = client.get(f"/api/jobs/{draft.id}")
    assert anonymous.status_code == 403
    assert anonymous.json() == {"message": "Authentication required to view this job"}

    assert client.get(f"/api/jobs/{draft.id}", headers=seeker_headers).status_code == 403
    assert client.get(f"/api/jobs/{draft.id}", headers=employer_headers).status_code == 200


def test_expired_detail(client, make_job):
    expired = make_job("Old", expires_at=datetime.utcnow() - timedelta(days=1))

    response = client.get(f"/api/jobs/{expired.id}")

    assert response.status_code == 403
    assert response.json() == {"message": "This job posting has expired"}


def test_job_json_ld_endpoint(client, job):
    response = client.get(f"/api/jobs/{job.id}/jsonld")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/ld+json")
    body = response.json()
    assert body["@context"] == "https://schema.org/"
    assert body["employmentType"] == "FULL_TIME"


def test_unknown_job(client):
    response = client.get("/api/jobs/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert response.json() == {"message": "Job posting not found"}


def test_update_job(client, job, employer_headers):
    response = client.put(
        f"/api/jobs/{job.id}",
        headers=employer_headers,
        json={"title": "Senior Backend Engineer", "description": "Lead the team."},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Senior Backend Engineer"
    assert data["description_html"] == '<div class="job-description"><p>Lead the team.</p></div>'
    assert data["ld_json"]["title"] == "Senior Backend Engineer"


def test_update_job_requires_owner(client, make_user, headers_for, job, admin_headers):
    rival = make_user(UserRole.EMPLOYER, email="rival@example.com")

    response = client.put(f"/api/jobs/{job.id}", headers=headers_for(rival), json={"title": "Mine now"})
    assert response.status_code == 403

    response = client.put(f"/api/jobs/{job.id}", headers=admin_headers, json={"status": "ARCHIVED"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ARCHIVED"


def test_delete_job_is_soft(client, db, job, employer_headers, seeker_headers):
    assert client.delete(f"/api/jobs/{job.id}", headers=seeker_headers).status_code == 403

    response = client.delete(f"/api/jobs/{job.id}", headers=employer_headers)

    assert response.status_code == 200
    assert client.get(f"/api/jobs/{job.id}").status_code == 404
    db.refresh(job)
    assert job.deleted_at is not None


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


def test_apply(client, storage, job, seeker_headers):
    response = apply(client, seeker_headers, job.id, cover_letter="I would love to join.")

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["cv_original_name"] == "cv.pdf"
    assert data["cover_letter"] == "I would love to join."
    assert data["job"]["id"] == str(job.id)


def test_apply_twice(client, job, seeker_headers):
    apply(client, seeker_headers, job.id)

    response = apply(client, seeker_headers, job.id)

    assert response.status_code == 409
    assert response.json() == {"message": "You have already applied for this job"}


def test_apply_to_draft(client, make_job, seeker_headers):
    draft = make_job("Draft", status=JobStatus.DRAFT)

    response = apply(client, seeker_headers, draft.id)

    assert response.status_code == 403
    assert response.json() == {"message": "This job is not accepting applications"}


def test_apply_validates_cv(client, job, seeker_headers):
    response = apply(client, seeker_headers, job.id, filename="cv.exe")

    assert response.status_code == 422
    assert response.json()["errors"] == {"cv": ["The cv must be a file of type: pdf, docx."]}


def test_job_applications_for_owner(client, job, seeker_headers, employer_headers):
    apply(client, seeker_headers, job.id)

    response = client.get(f"/api/jobs/{job.id}/applications", headers=employer_headers)
    assert response.status_code == 200
    assert response.json()["data"][0]["seeker"]["email"] == "seeker@example.com"

    assert client.get(f"/api/jobs/{job.id}/applications", headers=seeker_headers).status_code == 403


def test_my_applications(client, job, seeker_headers):
    apply(client, seeker_headers, job.id)

    listed = client.get("/api/user/applications", headers=seeker_headers).json()
    assert listed["meta"]["total"] == 1

    mine = client.get(f"/api/jobs/{job.id}/my-application", headers=seeker_headers)
    assert mine.status_code == 200
    assert mine.json()["data"]["id"] == listed["data"][0]["id"]


def test_withdraw_application(client, db, storage, job, seeker_headers):
    apply(client, seeker_headers, job.id)
    cv_path = db.query(Application).one().cv_path
    assert storage.exists(cv_path, "private")

    response = client.delete(f"/api/jobs/{job.id}/my-application", headers=seeker_headers)

    assert response.status_code == 200
    assert not storage.exists(cv_path, "private")
    assert client.get(f"/api/jobs/{job.id}/my-application", headers=seeker_headers).status_code == 404


def test_download_cv_access(client, make_user, headers_for, job, seeker_headers, employer_headers, admin_headers):
    application_id = apply(client, seeker_headers, job.id).json()["data"]["id"]
    url = f"/api/files/cv/{application_id}"

    for headers in (seeker_headers, employer_headers, admin_headers):
        response = client.get(url, headers=headers)
        assert response.status_code == 200
        assert response.content == b"%PDF-1.4 cv"

    stranger = make_user(UserRole.SEEKER, email="stranger@example.com")
    assert client.get(url, headers=headers_for(stranger)).status_code == 403


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------


def test_toggle_favorite(client, job, seeker_headers):
    url = f"/api/jobs/{job.id}/favorite"

    added = client.post(url, headers=seeker_headers).json()
    assert added == {"message": "Job added to favorites", "is_favorite": True}
    assert client.get(url, headers=seeker_headers).json() == {"is_favorite": True}

    favorites = client.get("/api/user/favorites", headers=seeker_headers).json()["data"]
    assert [f["job"]["id"] for f in favorites] == [str(job.id)]

    removed = client.post(url, headers=seeker_headers).json()
    assert removed == {"message": "Job removed from favorites", "is_favorite": False}
    assert client.get(url, headers=seeker_headers).json() == {"is_favorite": False}


def test_favorites_hide_deleted_jobs(client, db, job, seeker_headers):
    client.post(f"/api/jobs/{job.id}/favorite", headers=seeker_headers)
    job.deleted_at = datetime.utcnow()
    db.commit()

    assert client.get("/api/user/favorites", headers=seeker_headers).json()["data"] == []
