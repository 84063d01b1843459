"""
Payment Schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import UserSummary
from .products import ProductSummary
from ...db.enums import TransactionStatus


class ManualInitiateRequest(BaseModel):
    """Start a bank-transfer purchase of a product."""

    product_id: UUID
    amount: Decimal = Field(..., ge=0, description="Must equal the product price")


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class TransactionOut(BaseModel):
    id: UUID
    user: Optional[UserSummary] = None
    product: Optional[ProductSummary] = None
    gateway: str
    amount: Decimal
    status: TransactionStatus
    has_proof: bool = False
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_transaction(cls, transaction) -> "TransactionOut":
        return cls(
            id=transaction.id,
            user=UserSummary.from_user(transaction.user),
            product=ProductSummary.model_validate(transaction.product) if transaction.product else None,
            gateway=transaction.gateway,
            amount=transaction.amount,
            status=transaction.status,
            has_proof=bool(transaction.gateway_ref),
            meta=transaction.meta,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
        )
