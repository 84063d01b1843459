"""
Sponsorship post routes.

Sponsored articles are public while published, past their publication date
and not yet expired.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...db.enums import SponsorshipStatus
from ...db.models import SponsorshipPost, User
from ..dependencies import get_current_user_optional, get_db, get_file_storage, require_admin
from ..errors import NotFoundError, ValidationFailedError
from ..forms import Payload, read_payload, validate_image
from ..lookups import find_by_id_or_slug, get_or_404, like
from ..pagination import Page, PageParams
from ..schemas.sponsorships import SponsorshipCreate, SponsorshipOut, SponsorshipUpdate
from ..services.content import unique_slug
from ..services.storage import FileStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sponsorship-posts", tags=["Sponsorship Posts"])
admin_router = APIRouter(
    prefix="/api/admin/sponsorship-posts",
    tags=["Admin: Sponsorship Posts"],
    dependencies=[Depends(require_admin)],
)

FEATURED_IMAGE_DIR = "sponsorship-posts/featured"
LOGO_DIR = "sponsorship-posts/logos"


def _post_query(db: Session):
    return db.query(SponsorshipPost).options(joinedload(SponsorshipPost.creator))


def _search(query, q: Optional[str]):
    if q:
        query = query.filter(
            or_(
                SponsorshipPost.title.ilike(like(q)),
                SponsorshipPost.content.ilike(like(q)),
                SponsorshipPost.sponsor_name.ilike(like(q)),
            )
        )
    return query.order_by(
        SponsorshipPost.priority.desc(),
        SponsorshipPost.published_at.desc(),
        SponsorshipPost.created_at.desc(),
    )


def _check_window(published_at: Optional[datetime], expires_at: Optional[datetime]) -> None:
    if published_at is not None and expires_at is not None and expires_at < published_at:
        raise ValidationFailedError.for_field(
            "expires_at", "The expires at must be a date after or equal to published at."
        )


def _check_slug_free(db: Session, slug: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(SponsorshipPost.id).filter(SponsorshipPost.slug == slug)
    if exclude_id is not None:
        query = query.filter(SponsorshipPost.id != exclude_id)
    if query.first() is not None:
        raise ValidationFailedError.for_field("slug", "The slug has already been taken.")


def _uploaded_images(payload: Payload, storage: FileStorage):
    """Validate both optional uploads before storing either of them."""
    featured = validate_image(payload.file("featured_image"), "featured_image")
    logo = validate_image(payload.file("sponsor_logo"), "sponsor_logo")
    featured_url = storage.store_public_image(featured, FEATURED_IMAGE_DIR) if featured else None
    logo_url = storage.store_public_image(logo, LOGO_DIR) if logo else None
    return featured_url, logo_url


@router.get("")
async def list_posts(
    q: Optional[str] = Query(None, description="Search title, content and sponsor"),
    page: Page = Depends(PageParams(default_per_page=12)),
    db: Session = Depends(get_db),
):
    """Active sponsorship posts, highest priority first."""
    now = datetime.utcnow()
    query = _post_query(db).filter(
        SponsorshipPost.status == SponsorshipStatus.PUBLISHED,
        or_(SponsorshipPost.published_at.is_(None), SponsorshipPost.published_at <= now),
        or_(SponsorshipPost.expires_at.is_(None), SponsorshipPost.expires_at >= now),
    )
    return page.of(_search(query, q), SponsorshipOut.from_post)


@router.get("/{post_key}")
async def get_post(
    post_key: str,
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Post by id or slug; inactive posts are only visible to admins."""
    post = find_by_id_or_slug(db, SponsorshipPost, post_key)
    if post is None or (not post.is_active and not (user is not None and user.is_admin)):
        raise NotFoundError("Sponsorship post not found")
    return {"data": SponsorshipOut.from_post(post)}


@admin_router.get("")
async def admin_list_posts(
    status_filter: Optional[SponsorshipStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = _post_query(db)
    if status_filter is not None:
        query = query.filter(SponsorshipPost.status == status_filter)
    return page.of(_search(query, q), SponsorshipOut.from_post)


@admin_router.get("/{post_id}")
async def admin_get_post(post_id: int, db: Session = Depends(get_db)):
    post = get_or_404(db, SponsorshipPost, post_id, "Sponsorship post not found")
    return {"data": SponsorshipOut.from_post(post)}


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_post(
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    payload = await read_payload(request)
    data = payload.validate(SponsorshipCreate)
    _check_window(data.published_at, data.expires_at)

    if data.slug:
        _check_slug_free(db, data.slug)
        slug = data.slug
    else:
        slug = unique_slug(db, SponsorshipPost, data.title)

    featured_url, logo_url = _uploaded_images(payload, storage)

    published_at = data.published_at
    if data.status == SponsorshipStatus.PUBLISHED and published_at is None:
        published_at = datetime.utcnow()

    post = SponsorshipPost(
        title=data.title,
        slug=slug,
        content=data.content,
        excerpt=data.excerpt,
        featured_image_url=featured_url or data.featured_image_url,
        sponsor_name=data.sponsor_name,
        sponsor_logo_url=logo_url or data.sponsor_logo_url,
        sponsor_website=data.sponsor_website,
        sponsor_description=data.sponsor_description,
        status=data.status,
        published_at=published_at,
        expires_at=data.expires_at,
        priority=data.priority or 0,
        created_by=admin.id,
        meta_title=data.meta_title,
        meta_description=data.meta_description,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info(f"Sponsorship post {post.id} created for {post.sponsor_name}")
    return {"message": "Sponsorship post created successfully", "data": SponsorshipOut.from_post(post)}


@admin_router.api_route("/{post_id}", methods=["PUT", "PATCH"])
@admin_router.post("/{post_id}/update")
async def admin_update_post(
    post_id: int,
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    post = get_or_404(db, SponsorshipPost, post_id, "Sponsorship post not found")
    payload = await read_payload(request)
    updates = payload.validate(SponsorshipUpdate).model_dump(exclude_unset=True)

    _check_window(
        updates["published_at"] if "published_at" in updates else post.published_at,
        updates["expires_at"] if "expires_at" in updates else post.expires_at,
    )

    if updates.get("slug"):
        _check_slug_free(db, updates["slug"], exclude_id=post.id)
    else:
        updates.pop("slug", None)

    featured_url, logo_url = _uploaded_images(payload, storage)
    if featured_url is not None:
        storage.delete_url(post.featured_image_url)
        updates["featured_image_url"] = featured_url
    if logo_url is not None:
        storage.delete_url(post.sponsor_logo_url)
        updates["sponsor_logo_url"] = logo_url

    if (
        updates.get("status") == SponsorshipStatus.PUBLISHED
        and not updates.get("published_at")
        and post.published_at is None
    ):
        updates["published_at"] = datetime.utcnow()

    for field, value in updates.items():
        if value is None and field in ("title", "content", "sponsor_name", "status", "priority"):
            continue
        setattr(post, field, value)

    db.commit()
    db.refresh(post)
    return {"message": "Sponsorship post updated successfully", "data": SponsorshipOut.from_post(post)}


@admin_router.delete("/{post_id}")
async def admin_delete_post(post_id: int, db: Session = Depends(get_db)):
    post = get_or_404(db, SponsorshipPost, post_id, "Sponsorship post not found")
    db.delete(post)
    db.commit()
    return {"message": "Sponsorship post deleted successfully"}
