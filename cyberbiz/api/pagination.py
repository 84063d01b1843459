"""
Pagination
Offset pagination producing the `{data, meta}` list envelope.
"""

import math
from typing import Any, Callable, Dict, Optional

from fastapi import Query
from sqlalchemy.orm import Query as OrmQuery

from .config import get_settings


def page_meta(page: int, per_page: int, total: int) -> Dict[str, int]:
    return {
        "current_page": page,
        "last_page": max(1, math.ceil(total / per_page)) if per_page else 1,
        "per_page": per_page,
        "total": total,
    }


def paginate(
    query: OrmQuery,
    page: int,
    per_page: int,
    serialize: Callable[[Any], Any],
) -> Dict[str, Any]:
    """
    Run a query for one page.

    Args:
        query: Filtered and ordered SQLAlchemy query
        page: 1-based page number
        per_page: Page size
        serialize: Converts each row into its response model

    Returns:
        {"data": [...], "meta": {current_page, last_page, per_page, total}}
    """
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    return {
        "data": [serialize(row) for row in rows],
        "meta": page_meta(page, per_page, total),
    }


class PageParams:
    """
    `?page=` and `?per_page=` query parameters.

    Use as a dependency; `per_page` falls back to the endpoint's default and
    is capped at `max_per_page`.
    """

    def __init__(self, default_per_page: int = 15):
        self.default_per_page = default_per_page

    def __call__(
        self,
        page: int = Query(1, ge=1),
        per_page: Optional[int] = Query(None, ge=1),
    ) -> "Page":
        settings = get_settings()
        size = min(per_page or self.default_per_page, settings.max_per_page)
        return Page(page=page, per_page=size)


class Page:
    def __init__(self, page: int, per_page: int):
        self.page = page
        self.per_page = per_page

    def of(self, query: OrmQuery, serialize: Callable[[Any], Any]) -> Dict[str, Any]:
        return paginate(query, self.page, self.per_page, serialize)
