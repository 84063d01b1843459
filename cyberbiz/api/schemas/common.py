"""
Common Schemas
Reusable field types and small shared models.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional
from uuid import UUID

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, Field, TypeAdapter, ValidationError

from ..security import MAX_PASSWORD_BYTES

_url_adapter = TypeAdapter(AnyHttpUrl)


def _validate_url(value: Optional[str]) -> Optional[str]:
    """Accept only absolute http(s) URLs, keeping the original string."""
    if value is None:
        return value
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise ValueError("Must be a valid URL.")
    return value


def _check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"The password may not be greater than {MAX_PASSWORD_BYTES} bytes.")
    return value


def _to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


Url = Annotated[str, Field(max_length=500), AfterValidator(_validate_url)]
UtcDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]
Password = Annotated[str, Field(min_length=8), AfterValidator(_check_password_bytes)]


class MessageResponse(BaseModel):
    message: str


class UserSummary(BaseModel):
    """Compact user embedded in other resources."""

    id: UUID
    full_name: str
    email: str

    model_config = {"from_attributes": True}

    @classmethod
    def from_user(cls, user) -> Optional["UserSummary"]:
        if user is None:
            return None
        return cls(id=user.id, full_name=user.full_name, email=user.email)
