"""
Blog comment routes.

Threaded comments; replies nest up to BlogComment.MAX_DEPTH levels.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from ...db.models import Blog, BlogComment, User
from ..dependencies import get_current_user, get_current_user_optional, get_db
from ..errors import ForbiddenError, NotFoundError, UnprocessableError, ValidationFailedError
from ..lookups import get_or_404
from ..schemas.blogs import CommentCreate, CommentOut, CommentUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Blog Comments"])


def _owned_comment(db: Session, comment_id: int, user: User) -> BlogComment:
    comment = get_or_404(db, BlogComment, comment_id, "Comment not found")
    if str(comment.user_id) != str(user.id) and not user.is_admin:
        raise ForbiddenError("Unauthorized")
    return comment


@router.get("/blogs/{blog_id}/comments")
async def list_comments(
    blog_id: int,
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Top-level comments newest first, each with its replies oldest first."""
    blog = get_or_404(db, Blog, blog_id, "Blog not found")
    if not blog.is_published and not (user is not None and user.is_admin):
        raise NotFoundError("Blog not found")

    comments = (
        db.query(BlogComment)
        .options(joinedload(BlogComment.user))
        .filter(BlogComment.blog_id == blog.id, BlogComment.parent_id.is_(None))
        .order_by(BlogComment.created_at.desc(), BlogComment.id.desc())
        .all()
    )
    return {"data": [CommentOut.from_comment(c) for c in comments]}


@router.post("/blogs/{blog_id}/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(
    blog_id: int,
    request: CommentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    blog = get_or_404(db, Blog, blog_id, "Blog not found")
    if not blog.is_published and not user.is_admin:
        raise ForbiddenError("Cannot comment on unpublished blog")

    depth = 0
    if request.parent_id is not None:
        parent = db.get(BlogComment, request.parent_id)
        if parent is None:
            raise ValidationFailedError.for_field("parent_id", "The selected parent id is invalid.")
        if parent.blog_id != blog.id:
            raise UnprocessableError("Invalid parent comment")
        if parent.depth >= BlogComment.MAX_DEPTH:
            raise UnprocessableError("Maximum reply depth reached")
        depth = parent.depth + 1

    comment = BlogComment(
        blog_id=blog.id,
        user_id=user.id,
        parent_id=request.parent_id,
        content=request.content,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    logger.info(f"Comment {comment.id} added to blog {blog.id}")
    return {
        "message": "Comment added successfully",
        "data": CommentOut.from_comment(comment, depth=depth, with_replies=False),
    }


@router.put("/comments/{comment_id}")
async def update_comment(
    comment_id: int,
    request: CommentUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit a comment (author or admin)."""
    comment = _owned_comment(db, comment_id, user)
    comment.content = request.content
    db.commit()
    db.refresh(comment)
    return {
        "message": "Comment updated successfully",
        "data": CommentOut.from_comment(comment, depth=comment.depth, with_replies=False),
    }


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a comment and its replies (author or admin)."""
    comment = _owned_comment(db, comment_id, user)
    db.delete(comment)
    db.commit()
    return {"message": "Comment deleted successfully"}
