"""
Blog routes.

Public listing and detail of published posts, categories, and admin
management with featured image uploads.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session, joinedload

from ...db.enums import BlogStatus
from ...db.models import Blog, BlogCategory, User
from ..dependencies import get_current_user_optional, get_db, get_file_storage, require_admin
from ..errors import NotFoundError, ValidationFailedError
from ..forms import Payload, read_payload, validate_image
from ..lookups import find_by_id_or_slug, get_or_404, like
from ..pagination import Page, PageParams
from ..schemas.blogs import BlogCreate, BlogOut, BlogUpdate, CategoryOut
from ..services.content import unique_slug
from ..services.storage import FileStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blogs", tags=["Blogs"])
admin_router = APIRouter(prefix="/api/admin/blogs", tags=["Admin: Blogs"], dependencies=[Depends(require_admin)])

FEATURED_IMAGE_DIR = "blogs/featured"


def published_filter():
    """Status published and published_at unset or in the past."""
    return (
        Blog.status == BlogStatus.PUBLISHED,
        or_(Blog.published_at.is_(None), Blog.published_at <= datetime.utcnow()),
    )


def _blog_query(db: Session):
    return db.query(Blog).options(joinedload(Blog.category), joinedload(Blog.author))


def _filtered(query, category_id: Optional[int], q: Optional[str], status_filter: Optional[BlogStatus]):
    if status_filter is not None:
        query = query.filter(Blog.status == status_filter)
    if category_id:
        query = query.filter(Blog.category_id == category_id)
    if q:
        query = query.filter(
            or_(Blog.title.ilike(like(q)), Blog.content.ilike(like(q)), Blog.excerpt.ilike(like(q)))
        )
    # Undated posts first, then newest publication
    return query.order_by(
        case((Blog.published_at.is_(None), 0), else_=1),
        Blog.published_at.desc(),
        Blog.created_at.desc(),
    )


@router.get("")
async def list_blogs(
    category_id: Optional[int] = Query(None),
    q: Optional[str] = Query(None, description="Search title, content and excerpt"),
    status_filter: Optional[BlogStatus] = Query(None, alias="status", description="Admins only"),
    page: Page = Depends(PageParams(default_per_page=12)),
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Published posts; admins see every post and may filter by status."""
    query = _blog_query(db)
    if user is not None and user.is_admin:
        query = _filtered(query, category_id, q, status_filter)
    else:
        query = _filtered(query.filter(*published_filter()), category_id, q, None)
    return page.of(query, BlogOut.from_blog)


@router.get("/categories/all")
async def list_categories(db: Session = Depends(get_db)):
    """All categories with their post counts."""
    rows = (
        db.query(BlogCategory, func.count(Blog.id))
        .outerjoin(Blog, Blog.category_id == BlogCategory.id)
        .group_by(BlogCategory.id)
        .order_by(BlogCategory.id)
        .all()
    )
    return {
        "data": [
            CategoryOut(
                id=category.id,
                name=category.name,
                slug=category.slug,
                description=category.description,
                blogs_count=count,
            )
            for category, count in rows
        ]
    }


@router.get("/{blog_key}")
async def get_blog(
    blog_key: str,
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Post by id or slug. Unpublished posts are only visible to admins."""
    blog = find_by_id_or_slug(db, Blog, blog_key)
    if blog is None or (not blog.is_published and not (user is not None and user.is_admin)):
        raise NotFoundError("Blog not found")
    return {"data": BlogOut.from_blog(blog)}


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def _check_category(db: Session, category_id: Optional[int]) -> None:
    if category_id is not None and db.get(BlogCategory, category_id) is None:
        raise ValidationFailedError.for_field("category_id", "The selected category id is invalid.")


def _check_slug_free(db: Session, slug: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Blog.id).filter(Blog.slug == slug)
    if exclude_id is not None:
        query = query.filter(Blog.id != exclude_id)
    if query.first() is not None:
        raise ValidationFailedError.for_field("slug", "The slug has already been taken.")


def _featured_image(payload: Payload, storage: FileStorage) -> Optional[str]:
    image = validate_image(payload.file("featured_image"), "featured_image")
    if image is None:
        return None
    return storage.store_public_image(image, FEATURED_IMAGE_DIR)


@admin_router.get("")
async def admin_list_blogs(
    category_id: Optional[int] = Query(None),
    q: Optional[str] = Query(None),
    status_filter: Optional[BlogStatus] = Query(None, alias="status"),
    page: Page = Depends(PageParams(default_per_page=12)),
    db: Session = Depends(get_db),
):
    query = _filtered(_blog_query(db), category_id, q, status_filter)
    return page.of(query, BlogOut.from_blog)


@admin_router.get("/{blog_id}")
async def admin_get_blog(blog_id: int, db: Session = Depends(get_db)):
    return {"data": BlogOut.from_blog(get_or_404(db, Blog, blog_id, "Blog not found"))}


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_blog(
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Create a post.

    The slug defaults to a unique slug of the title. Publishing without a
    date stamps published_at with the current time.
    """
    payload = await read_payload(request)
    data = payload.validate(BlogCreate)
    _check_category(db, data.category_id)

    if data.slug:
        _check_slug_free(db, data.slug)
        slug = data.slug
    else:
        slug = unique_slug(db, Blog, data.title)

    featured_image_url = _featured_image(payload, storage) or data.featured_image_url

    published_at = data.published_at
    if data.status == BlogStatus.PUBLISHED and published_at is None:
        published_at = datetime.utcnow()

    blog = Blog(
        title=data.title,
        slug=slug,
        content=data.content,
        excerpt=data.excerpt,
        featured_image_url=featured_image_url,
        category_id=data.category_id,
        author_id=admin.id,
        published_at=published_at,
        status=data.status,
        meta_title=data.meta_title,
        meta_description=data.meta_description,
    )
    db.add(blog)
    db.commit()
    db.refresh(blog)

    logger.info(f"Blog {blog.id} created by {admin.id}")
    return {"message": "Blog created successfully", "data": BlogOut.from_blog(blog)}


@admin_router.api_route("/{blog_id}", methods=["PUT", "PATCH"])
@admin_router.post("/{blog_id}/update")
async def admin_update_blog(
    blog_id: int,
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    blog = get_or_404(db, Blog, blog_id, "Blog not found")
    payload = await read_payload(request)
    updates = payload.validate(BlogUpdate).model_dump(exclude_unset=True)

    if "category_id" in updates:
        _check_category(db, updates["category_id"])

    if updates.get("slug"):
        _check_slug_free(db, updates["slug"], exclude_id=blog.id)
    elif updates.get("title"):
        updates["slug"] = unique_slug(db, Blog, updates["title"], exclude_id=blog.id)
    else:
        updates.pop("slug", None)

    new_image = _featured_image(payload, storage)
    if new_image is not None:
        storage.delete_url(blog.featured_image_url)
        updates["featured_image_url"] = new_image

    if (
        updates.get("status") == BlogStatus.PUBLISHED
        and not updates.get("published_at")
        and blog.published_at is None
    ):
        updates["published_at"] = datetime.utcnow()

    for field, value in updates.items():
        if value is None and field in ("title", "content", "status"):
            continue
        setattr(blog, field, value)

    db.commit()
    db.refresh(blog)
    return {"message": "Blog updated successfully", "data": BlogOut.from_blog(blog)}


@admin_router.delete("/{blog_id}")
async def admin_delete_blog(blog_id: int, db: Session = Depends(get_db)):
    blog = get_or_404(db, Blog, blog_id, "Blog not found")
    db.delete(blog)
    db.commit()
    logger.info(f"Blog {blog_id} deleted")
    return {"message": "Blog deleted successfully"}
