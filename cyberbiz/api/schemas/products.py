"""
Product Schemas
Digital products, their downloadable resources and the user library.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import Url
from ..services.storage import FileStorage
from ...db.enums import ProductType, ResourceType


class ProductCreate(BaseModel):
    """Request schema for creating a product."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    description_html: Optional[str] = None
    type: ProductType
    price_etb: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    thumbnail_url: Optional[Url] = None
    content_path: Optional[str] = Field(None, max_length=500, description="Delivery location")
    is_downloadable: bool = False
    is_free: bool = False


class ProductUpdate(BaseModel):
    """Partial update; only fields present in the body are written."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    description_html: Optional[str] = None
    type: Optional[ProductType] = None
    price_etb: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    thumbnail_url: Optional[Url] = None
    content_path: Optional[str] = Field(None, max_length=500)
    is_downloadable: Optional[bool] = None
    is_free: Optional[bool] = None


class ResourceOut(BaseModel):
    id: UUID
    product_id: UUID
    type: ResourceType
    title: str
    description: Optional[str] = None
    file_path: Optional[str] = None
    download_url: Optional[str] = None
    external_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    order: int = 0
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_resource(cls, resource, storage: FileStorage) -> "ResourceOut":
        """Stored files get a public download_url; link resources keep external_url."""
        return cls(
            id=resource.id,
            product_id=resource.product_id,
            type=resource.type,
            title=resource.title,
            description=resource.description,
            file_path=resource.file_path,
            download_url=storage.url(resource.file_path),
            external_url=None if resource.file_path else resource.external_url,
            file_name=resource.file_name,
            file_size=resource.file_size,
            mime_type=resource.mime_type,
            order=resource.order,
            is_active=resource.is_active,
            created_at=resource.created_at,
            updated_at=resource.updated_at,
        )


class ProductOut(BaseModel):
    id: UUID
    type: ProductType
    title: str
    description: str
    description_html: Optional[str] = None
    price_etb: Decimal
    thumbnail_url: Optional[str] = None
    content_path: Optional[str] = None
    is_downloadable: bool = False
    is_free: bool = False
    created_at: datetime
    resources: Optional[List[ResourceOut]] = None

    @classmethod
    def from_product(
        cls,
        product,
        storage: Optional[FileStorage] = None,
        with_resources: bool = False,
    ) -> "ProductOut":
        resources = None
        if with_resources and storage is not None:
            resources = [
                ResourceOut.from_resource(r, storage) for r in product.resources if r.is_active
            ]
        return cls(
            id=product.id,
            type=product.type,
            title=product.title,
            description=product.description,
            description_html=product.description_html,
            price_etb=product.price_etb,
            thumbnail_url=product.thumbnail_url,
            content_path=product.content_path,
            is_downloadable=product.is_downloadable,
            is_free=product.is_free,
            created_at=product.created_at,
            resources=resources,
        )


class ProductSummary(BaseModel):
    """Product embedded in transactions."""

    id: UUID
    type: ProductType
    title: str
    price_etb: Decimal

    model_config = {"from_attributes": True}


class ResourceFields(BaseModel):
    """Scalar fields of a resource form (file travels separately)."""

    type: ResourceType
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    external_url: Optional[Url] = None
    order: Optional[int] = Field(None, ge=0)


class ResourceUpdateFields(BaseModel):
    type: Optional[ResourceType] = None
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    external_url: Optional[Url] = None
    order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ReorderRequest(BaseModel):
    """New resource order: position in the list becomes `order`."""

    resource_ids: List[UUID] = Field(..., min_length=1)
