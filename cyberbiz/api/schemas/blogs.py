"""
Blog Schemas
Posts, categories and threaded comments.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import UserSummary, UtcDatetime
from ...db.enums import BlogStatus


class BlogCreate(BaseModel):
    """Request schema for a new post; `featured_image` may be uploaded instead of a URL."""

    title: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    featured_image_url: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = None
    published_at: Optional[UtcDatetime] = None
    status: BlogStatus
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)


class BlogUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    featured_image_url: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = None
    published_at: Optional[UtcDatetime] = None
    status: Optional[BlogStatus] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str

    model_config = {"from_attributes": True}


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    blogs_count: int = 0


class BlogOut(BaseModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    featured_image_url: Optional[str] = None
    category: Optional[CategorySummary] = None
    author: Optional[UserSummary] = None
    published_at: Optional[datetime] = None
    status: BlogStatus
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_blog(cls, blog) -> "BlogOut":
        return cls(
            id=blog.id,
            title=blog.title,
            slug=blog.slug,
            content=blog.content,
            excerpt=blog.excerpt,
            featured_image_url=blog.featured_image_url,
            category=CategorySummary.model_validate(blog.category) if blog.category else None,
            author=UserSummary.from_user(blog.author),
            published_at=blog.published_at,
            status=blog.status,
            meta_title=blog.meta_title,
            meta_description=blog.meta_description,
            created_at=blog.created_at,
            updated_at=blog.updated_at,
        )


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: Optional[int] = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentOut(BaseModel):
    """Comment with its nested replies, oldest reply first."""

    id: int
    blog_id: int
    parent_id: Optional[int] = None
    content: str
    depth: int = 0
    user: Optional[UserSummary] = None
    replies: List[CommentOut] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment, depth: int = 0, with_replies: bool = True) -> "CommentOut":
        replies = []
        if with_replies:
            replies = [cls.from_comment(r, depth + 1) for r in comment.replies]
        return cls(
            id=comment.id,
            blog_id=comment.blog_id,
            parent_id=comment.parent_id,
            content=comment.content,
            depth=depth,
            user=UserSummary.from_user(comment.user),
            replies=replies,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
