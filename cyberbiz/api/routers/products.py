"""
Product routes.

Public catalogue, the user's library, free-product claims and resource
access for library owners. Admin management lives on `admin_router`.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session, joinedload

from ...db.enums import ProductType
from ...db.models import Product, ProductResource, User, UserLibrary
from ..dependencies import (
    get_current_user,
    get_current_user_optional,
    get_db,
    get_file_storage,
    require_admin,
)
from ..errors import ForbiddenError, NotFoundError, UnprocessableError, ValidationFailedError
from ..forms import read_payload, validate_upload
from ..lookups import get_or_404, like
from ..pagination import Page, PageParams
from ..schemas.products import (
    ProductCreate,
    ProductOut,
    ProductUpdate,
    ReorderRequest,
    ResourceFields,
    ResourceOut,
    ResourceUpdateFields,
)
from ..services.content import text_to_html
from ..services.payments import PaymentService
from ..services.storage import FileStorage, PUBLIC, unique_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Products"])
admin_router = APIRouter(
    prefix="/api/admin/products",
    tags=["Admin: Products"],
    dependencies=[Depends(require_admin)],
)

RESOURCE_MAX_KB = 102400
NOT_NULL_FIELDS = ("title", "description", "type", "price_etb", "is_downloadable", "is_free")


def has_library_access(db: Session, user: Optional[User], product: Product) -> bool:
    """Admins and users whose library holds the product."""
    if user is None:
        return False
    if user.is_admin:
        return True
    return (
        db.query(UserLibrary.id)
        .filter(UserLibrary.user_id == user.id, UserLibrary.product_id == product.id)
        .first()
        is not None
    )


def _require_access(db: Session, user: User, product: Product) -> None:
    if not has_library_access(db, user, product):
        raise ForbiddenError("You do not have access to this product")


def _get_product(db: Session, product_id: UUID) -> Product:
    return get_or_404(db, Product, product_id, "Product not found")


def _get_resource(db: Session, product: Product, resource_id: UUID, active_only: bool = False) -> ProductResource:
    query = db.query(ProductResource).filter(
        ProductResource.product_id == product.id, ProductResource.id == resource_id
    )
    if active_only:
        query = query.filter(ProductResource.is_active.is_(True))
    resource = query.first()
    if resource is None:
        raise NotFoundError("Resource not found")
    return resource


def _ordered_resources(db: Session, product: Product, active_only: bool = False):
    query = db.query(ProductResource).filter(ProductResource.product_id == product.id)
    if active_only:
        query = query.filter(ProductResource.is_active.is_(True))
    return query.order_by(ProductResource.order.asc(), ProductResource.created_at.asc()).all()


# ---------------------------------------------------------------------------
# Public catalogue
# ---------------------------------------------------------------------------


@router.get("/products")
async def list_products(
    type: Optional[ProductType] = Query(None, description="COURSE or EBOOK"),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    """List products, newest first."""
    query = db.query(Product).filter(Product.deleted_at.is_(None))
    if type is not None:
        query = query.filter(Product.type == type)
    query = query.order_by(Product.created_at.desc())
    return page.of(query, ProductOut.from_product)


@router.get("/products/{product_id}")
async def get_product(
    product_id: UUID,
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Product detail.

    Active resources are included for admins and library owners.
    """
    product = _get_product(db, product_id)
    with_resources = has_library_access(db, user, product)
    return {"data": ProductOut.from_product(product, storage, with_resources=with_resources)}


@router.get("/user/library")
async def get_library(
    page: Page = Depends(PageParams()),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Products the user has access to, most recently granted first."""
    query = (
        db.query(UserLibrary)
        .options(joinedload(UserLibrary.product))
        .filter(UserLibrary.user_id == user.id)
        .order_by(UserLibrary.access_granted_at.desc(), UserLibrary.id.desc())
    )
    return page.of(query, lambda entry: ProductOut.from_product(entry.product))


@router.post("/products/{product_id}/claim-free")
async def claim_free_product(
    product_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Add a free product to the user's library without a payment."""
    product = _get_product(db, product_id)
    if not product.is_free and Decimal(str(product.price_etb or 0)) != Decimal("0"):
        raise UnprocessableError("This product is not free")

    PaymentService(db, storage).grant_access(user.id, product.id)
    db.commit()
    logger.info(f"User {user.id} claimed free product {product.id}")
    return {"message": "Product added to your library", "data": ProductOut.from_product(product)}


# ---------------------------------------------------------------------------
# Resource access for library owners
# ---------------------------------------------------------------------------


@router.get("/products/{product_id}/resources")
async def list_product_resources(
    product_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    product = _get_product(db, product_id)
    _require_access(db, user, product)
    resources = _ordered_resources(db, product, active_only=True)
    return {"data": [ResourceOut.from_resource(r, storage) for r in resources]}


def _stored_file(storage: FileStorage, resource: ProductResource):
    if not resource.file_path:
        raise NotFoundError("This resource does not have a downloadable file")
    if not storage.exists(resource.file_path, PUBLIC):
        raise NotFoundError("File not found")
    return storage.absolute_path(resource.file_path, PUBLIC)


@router.get("/products/{product_id}/resources/{resource_id}/view")
async def view_product_resource(
    product_id: UUID,
    resource_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Stream a resource file inline (for in-browser readers and players)."""
    product = _get_product(db, product_id)
    _require_access(db, user, product)
    resource = _get_resource(db, product, resource_id, active_only=True)
    path = _stored_file(storage, resource)
    return FileResponse(
        path,
        media_type=resource.mime_type or "application/octet-stream",
        filename=resource.file_name or path.name,
        content_disposition_type="inline",
    )


@router.get("/products/{product_id}/resources/{resource_id}/download")
async def download_product_resource(
    product_id: UUID,
    resource_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    product = _get_product(db, product_id)
    _require_access(db, user, product)
    resource = _get_resource(db, product, resource_id, active_only=True)

    if not product.is_downloadable:
        raise ForbiddenError("This product is not downloadable")

    path = _stored_file(storage, resource)
    return FileResponse(
        path,
        media_type=resource.mime_type or "application/octet-stream",
        filename=resource.file_name or "download",
    )


# ---------------------------------------------------------------------------
# Admin: products
# ---------------------------------------------------------------------------


@admin_router.get("")
async def admin_list_products(
    type: Optional[ProductType] = Query(None),
    q: Optional[str] = Query(None, description="Search title and description"),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = db.query(Product).filter(Product.deleted_at.is_(None))
    if type is not None:
        query = query.filter(Product.type == type)
    if q:
        query = query.filter(Product.title.ilike(like(q)) | Product.description.ilike(like(q)))
    query = query.order_by(Product.created_at.desc())
    return page.of(query, ProductOut.from_product)


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_product(request: Request, db: Session = Depends(get_db)):
    """
    Create a product.

    Without `description_html`, the plain description is converted to HTML.
    """
    payload = await read_payload(request)
    data = payload.validate(ProductCreate)

    product = Product(
        title=data.title,
        description=data.description,
        description_html=data.description_html or text_to_html(data.description, "product-description"),
        type=data.type,
        price_etb=data.price_etb,
        thumbnail_url=data.thumbnail_url,
        access_url=data.content_path,
        is_downloadable=data.is_downloadable,
        is_free=data.is_free,
    )
    db.add(product)
    db.commit()
    db.refresh(product)

    logger.info(f"Product created: {product.id}")
    return {"message": "Product created successfully", "data": ProductOut.from_product(product)}


@admin_router.get("/{product_id}")
async def admin_get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    product = _get_product(db, product_id)
    return {"data": ProductOut.from_product(product, storage, with_resources=True)}


@admin_router.api_route("/{product_id}", methods=["PUT", "PATCH"])
@admin_router.post("/{product_id}/update")
async def admin_update_product(product_id: UUID, request: Request, db: Session = Depends(get_db)):
    product = _get_product(db, product_id)
    payload = await read_payload(request)
    updates = payload.validate(ProductUpdate).model_dump(exclude_unset=True)

    for field, value in updates.items():
        if value is None and field in NOT_NULL_FIELDS:
            continue
        if field == "content_path":
            product.access_url = value
        else:
            setattr(product, field, value)

    if "description" in updates and updates["description"] and "description_html" not in updates:
        product.description_html = text_to_html(product.description, "product-description")

    db.commit()
    db.refresh(product)
    return {"message": "Product updated successfully", "data": ProductOut.from_product(product)}


@admin_router.delete("/{product_id}")
async def admin_delete_product(product_id: UUID, db: Session = Depends(get_db)):
    """Soft delete; library entries and resources are kept."""
    product = _get_product(db, product_id)
    product.deleted_at = datetime.utcnow()
    db.commit()
    logger.info(f"Product deleted: {product.id}")
    return {"message": "Product deleted successfully"}


# ---------------------------------------------------------------------------
# Admin: product resources
# ---------------------------------------------------------------------------


def _store_resource_file(storage: FileStorage, product: Product, upload) -> dict:
    stored = storage.save_upload(
        upload,
        f"products/resources/{product.id}",
        filename=unique_filename(upload.filename or "file"),
        disk=PUBLIC,
    )
    return {
        "file_path": stored.path,
        "file_name": stored.original_name,
        "file_size": stored.size,
        "mime_type": stored.mime_type,
    }


def _delete_resource_file(storage: FileStorage, resource: ProductResource) -> None:
    if resource.file_path:
        storage.delete(resource.file_path, PUBLIC)


@admin_router.get("/{product_id}/resources")
async def admin_list_resources(
    product_id: UUID,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    product = _get_product(db, product_id)
    return {"data": [ResourceOut.from_resource(r, storage) for r in _ordered_resources(db, product)]}


@admin_router.post("/{product_id}/resources", status_code=status.HTTP_201_CREATED)
async def admin_create_resource(
    product_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Attach a resource to a product.

    Exactly one of an uploaded `file` (max 100 MB) or `external_url`
    must be given.
    """
    product = _get_product(db, product_id)
    payload = await read_payload(request)
    fields = payload.validate(ResourceFields)

    upload = payload.file("file")
    external_url = fields.external_url.strip() if fields.external_url else None

    if upload is None and not external_url:
        raise UnprocessableError("Either file or external_url must be provided")
    if upload is not None and external_url:
        raise UnprocessableError("Cannot provide both file and external_url")

    resource = ProductResource(
        product_id=product.id,
        type=fields.type,
        description=fields.description,
        order=fields.order or 0,
        is_active=True,
    )
    if upload is not None:
        validate_upload(upload, "file", None, RESOURCE_MAX_KB)
        for key, value in _store_resource_file(storage, product, upload).items():
            setattr(resource, key, value)
    else:
        resource.external_url = external_url
    resource.title = fields.title or resource.file_name or external_url

    db.add(resource)
    db.commit()
    db.refresh(resource)

    logger.info(f"Resource {resource.id} added to product {product.id}")
    return {"message": "Resource created successfully", "data": ResourceOut.from_resource(resource, storage)}


@admin_router.post("/{product_id}/resources/reorder")
async def admin_reorder_resources(
    product_id: UUID,
    request: ReorderRequest,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Set each resource's order to its index in `resource_ids`, in one transaction."""
    product = _get_product(db, product_id)

    known = {
        row.id
        for row in db.query(ProductResource.id).filter(ProductResource.id.in_(request.resource_ids))
    }
    missing = [str(rid) for rid in request.resource_ids if rid not in known]
    if missing:
        raise ValidationFailedError.for_field("resource_ids", "The selected resource ids is invalid.")

    try:
        for index, resource_id in enumerate(request.resource_ids):
            db.query(ProductResource).filter(
                ProductResource.product_id == product.id, ProductResource.id == resource_id
            ).update({"order": index}, synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Reordering resources of product {product.id} failed", exc_info=True)
        raise

    db.expire_all()
    resources = _ordered_resources(db, product)
    return {
        "message": "Resources reordered successfully",
        "data": [ResourceOut.from_resource(r, storage) for r in resources],
    }


@admin_router.api_route("/{product_id}/resources/{resource_id}", methods=["PUT", "PATCH"])
@admin_router.post("/{product_id}/resources/{resource_id}/update")
async def admin_update_resource(
    product_id: UUID,
    resource_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Update a resource.

    A new file replaces the old one and clears external_url; a new
    external_url deletes the stored file.
    """
    product = _get_product(db, product_id)
    resource = _get_resource(db, product, resource_id)
    payload = await read_payload(request)
    updates = payload.validate(ResourceUpdateFields).model_dump(exclude_unset=True)

    for field in ("type", "title", "description", "order", "is_active"):
        if updates.get(field) is not None:
            setattr(resource, field, updates[field])

    upload = payload.file("file")
    if upload is not None:
        validate_upload(upload, "file", None, RESOURCE_MAX_KB)
        _delete_resource_file(storage, resource)
        for key, value in _store_resource_file(storage, product, upload).items():
            setattr(resource, key, value)
        resource.external_url = None
    elif updates.get("external_url"):
        _delete_resource_file(storage, resource)
        resource.external_url = updates["external_url"]
        resource.file_path = None
        resource.file_name = None
        resource.file_size = None
        resource.mime_type = None

    db.commit()
    db.refresh(resource)
    return {"message": "Resource updated successfully", "data": ResourceOut.from_resource(resource, storage)}


@admin_router.delete("/{product_id}/resources/{resource_id}")
async def admin_delete_resource(
    product_id: UUID,
    resource_id: UUID,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    product = _get_product(db, product_id)
    resource = _get_resource(db, product, resource_id)
    _delete_resource_file(storage, resource)
    db.delete(resource)
    db.commit()
    return {"message": "Resource deleted successfully"}
