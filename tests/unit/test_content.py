"""
Tests for slug, HTML and JSON-LD helpers.
"""

from datetime import datetime

from cyberbiz.api.services.content import (
    job_json_ld,
    slugify,
    strip_tags,
    text_to_html,
    unique_slug,
)
from cyberbiz.db.enums import JobType
from cyberbiz.db.models import BlogCategory, JobPosting, User


def test_slugify_basic():
    """Punctuation is dropped and words are hyphenated."""
    assert slugify("Hello, World!") == "hello-world"


def test_slugify_transliterates_and_collapses_separators():
    assert slugify("Café Déjà Vu") == "cafe-deja-vu"
    assert slugify("  --Multiple   spaces__here-- ") == "multiple-spaces-here"


def test_slugify_empty():
    assert slugify("") == ""
    assert slugify(None) == ""


def test_unique_slug_appends_counter(db):
    """Taken slugs get -1, -2 ... appended."""
    assert unique_slug(db, BlogCategory, "Tech News") == "tech-news"

    db.add(BlogCategory(name="Tech News", slug="tech-news"))
    db.commit()
    assert unique_slug(db, BlogCategory, "Tech News") == "tech-news-1"

    db.add(BlogCategory(name="Tech News again", slug="tech-news-1"))
    db.commit()
    assert unique_slug(db, BlogCategory, "Tech News") == "tech-news-2"


def test_unique_slug_ignores_excluded_row(db):
    category = BlogCategory(name="Design", slug="design")
    db.add(category)
    db.commit()

    assert unique_slug(db, BlogCategory, "Design", exclude_id=category.id) == "design"


def test_unique_slug_falls_back_for_symbol_only_titles(db):
    assert unique_slug(db, BlogCategory, "!!!") == "item"


def test_text_to_html_structures_paragraphs():
    """Headings, bullet lists and paragraphs are recognised."""
    text = "# About the role\n\nWe build things.\n\n- Python\n- SQL\n\nREQUIREMENTS\n\nBenefits:"

    html = text_to_html(text)

    assert html == (
        '<div class="job-description">'
        "<h1>About the role</h1>"
        "<p>We build things.</p>"
        "<ul><li>Python</li><li>SQL</li></ul>"
        "<h2>REQUIREMENTS</h2>"
        "<h3>Benefits:</h3>"
        "</div>"
    )


def test_text_to_html_escapes_markup():
    html = text_to_html("<script>alert(1)</script>", "product-description")

    assert html.startswith('<div class="product-description">')
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_text_to_html_empty_text():
    assert text_to_html("") == '<div class="job-description"></div>'


def test_strip_tags():
    assert strip_tags("<p>Tom &amp; <b>Jerry</b></p>") == "Tom & Jerry"
    assert strip_tags(None) == ""


def test_job_json_ld():
    """JobPosting structured data uses the employer's company and the job dates."""
    employer = User(full_name="Eli", company_name="Acme PLC", website_url="https://acme.example.com")
    job = JobPosting(
        title="Backend Engineer",
        job_type=JobType.FULL_TIME,
        description_html="<p>Build <b>APIs</b></p>",
        location=None,
        created_at=datetime(2024, 3, 1, 9, 30),
        expires_at=datetime(2024, 4, 1),
    )
    job.employer = employer

    data = job_json_ld(job)

    assert data["@type"] == "JobPosting"
    assert data["title"] == "Backend Engineer"
    assert data["description"] == "Build APIs"
    assert data["datePosted"] == "2024-03-01"
    assert data["validThrough"] == "2024-04-01"
    assert data["employmentType"] == "FULL_TIME"
    assert data["hiringOrganization"] == {
        "@type": "Organization",
        "name": "Acme PLC",
        "sameAs": "https://acme.example.com",
    }
    assert data["jobLocation"]["address"]["addressLocality"] == "Addis Ababa"
