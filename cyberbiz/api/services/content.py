"""
Content Helpers
Slugs, plain-text to HTML conversion and schema.org JSON-LD for jobs.
"""

import html
import re
import unicodedata
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

HEADING_RE = re.compile(r"^(#+)\s*(.+)$")
CAPS_HEADING_RE = re.compile(r"^[A-Z][A-Z\s]+$")
SECTION_RE = re.compile(r"^[A-Z][^:]+:$")
BULLET_RE = re.compile(r"^[-•*]\s*(.+)$", re.MULTILINE)
BULLET_PREFIX_RE = re.compile(r"^[-•*]\s*")
TAG_RE = re.compile(r"<[^>]+>")


def slugify(value: str) -> str:
    """
    URL slug: ASCII, lowercase, words joined by hyphens.

    >>> slugify("Hello, World!")
    'hello-world'
    """
    normalized = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    normalized = re.sub(r"[^\w\s-]", "", normalized.lower())
    return re.sub(r"[-\s_]+", "-", normalized).strip("-")


def unique_slug(db: Session, model, source: str, exclude_id: Optional[Any] = None) -> str:
    """
    Slug for `source` that no other row of `model` uses.

    Collisions get `-1`, `-2`, ... appended.
    """
    base = slugify(source) or "item"
    slug = base
    counter = 1
    while True:
        query = db.query(model.id).filter(model.slug == slug)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first() is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1


def text_to_html(plain_text: str, css_class: str = "job-description") -> str:
    """
    Wrap plain text in structured HTML.

    Paragraphs are separated by blank lines. A paragraph becomes:
    - <hN> when it starts with N `#` characters
    - <h2> when it is short and all capitals
    - <h3> when it is a single "Title:" line
    - <ul> when it contains bullet lines (-, *, •)
    - <p> otherwise
    """
    paragraphs = re.split(r"\n\s*\n", (plain_text or "").strip())
    parts = [f'<div class="{css_class}">']

    for paragraph in paragraphs:
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        heading = HEADING_RE.match(paragraph)
        if heading:
            level = min(len(heading.group(1)), 6)
            parts.append(f"<h{level}>{html.escape(heading.group(2).strip())}</h{level}>")
        elif CAPS_HEADING_RE.match(paragraph) and len(paragraph) < 100:
            parts.append(f"<h2>{html.escape(paragraph)}</h2>")
        elif SECTION_RE.match(paragraph):
            parts.append(f"<h3>{html.escape(paragraph)}</h3>")
        elif BULLET_RE.search(paragraph):
            parts.append("<ul>")
            for line in paragraph.split("\n"):
                line = line.strip()
                if line:
                    parts.append(f"<li>{html.escape(BULLET_PREFIX_RE.sub('', line))}</li>")
            parts.append("</ul>")
        else:
            parts.append(f"<p>{html.escape(paragraph)}</p>")

    parts.append("</div>")
    return "".join(parts)


def strip_tags(markup: Optional[str]) -> str:
    """Plain text of an HTML fragment."""
    text = TAG_RE.sub(" ", markup or "")
    text = html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def job_json_ld(job) -> Dict[str, Any]:
    """
    schema.org JobPosting structured data for a job.

    Args:
        job: JobPosting with its employer loaded
    """
    employer = job.employer
    organization = None
    if employer is not None:
        organization = employer.company_name or employer.full_name

    return {
        "@context": "https://schema.org/",
        "@type": "JobPosting",
        "title": job.title,
        "description": strip_tags(job.description_html),
        "datePosted": job.created_at.strftime("%Y-%m-%d") if job.created_at else None,
        "hiringOrganization": {
            "@type": "Organization",
            "name": organization,
            "sameAs": employer.website_url if employer is not None else None,
        },
        "employmentType": getattr(job.job_type, "value", job.job_type),
        "jobLocation": {
            "@type": "Place",
            "address": {
                "@type": "PostalAddress",
                "addressLocality": job.location or "Addis Ababa",
                "addressCountry": "ET",
            },
        },
        "validThrough": job.expires_at.strftime("%Y-%m-%d") if job.expires_at else None,
    }
