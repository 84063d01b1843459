"""
Lookup Helpers
Small query helpers shared by the routers.
"""

from typing import Any, Optional, Type, TypeVar

from fastapi import Request
from sqlalchemy.orm import Session

from .errors import NotFoundError

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: Type[ModelT], ident: Any, message: str = "Resource not found") -> ModelT:
    """
    Load a row by primary key.

    Soft-deleted rows (models with `deleted_at`) count as missing.

    Raises:
        NotFoundError: 404 with `message`
    """
    obj = db.get(model, ident)
    if obj is None or getattr(obj, "deleted_at", None) is not None:
        raise NotFoundError(message)
    return obj


def find_by_id_or_slug(db: Session, model, key: str, *filters) -> Optional[Any]:
    """Row whose integer id or slug equals `key`."""
    query = db.query(model).filter(*filters)
    if key.isdigit():
        obj = query.filter(model.id == int(key)).first()
        if obj is not None:
            return obj
    return query.filter(model.slug == key).first()


def like(term: str) -> str:
    """Case-insensitive contains pattern for `ilike`."""
    return f"%{term.strip()}%"


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
