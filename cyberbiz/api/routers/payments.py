"""
Payment Endpoints
POST /api/payments/manual-initiate - Start a bank-transfer purchase
POST /api/payments/{id}/upload-proof - Upload the payment receipt
GET /api/admin/payments/pending - Review queue (status filter, ALL for history)
POST /api/admin/payments/{id}/approve - Approve and grant library access
POST /api/admin/payments/{id}/reject - Reject with an optional reason
DELETE /api/admin/payments/{id} - Delete a transaction and its side effects
GET /api/admin/files/proof/{id} - Download the uploaded proof
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Cookie, Depends, Query, Request, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session, joinedload

from ...db.enums import TransactionStatus
from ...db.models import Product, Transaction, User
from ..dependencies import get_current_user, get_db, get_file_storage, require_admin
from ..errors import NotFoundError, ValidationFailedError
from ..forms import read_payload, validate_upload
from ..lookups import get_or_404
from ..pagination import Page, PageParams
from ..schemas.payments import ManualInitiateRequest, RejectRequest, TransactionOut
from ..services.affiliates import AFFILIATE_COOKIE
from ..services.payments import PROOF_EXTENSIONS, PROOF_MAX_KB, PaymentService
from ..services.storage import FileStorage, PRIVATE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin: Payments"], dependencies=[Depends(require_admin)])


def _load_transaction(db: Session, transaction_id: UUID) -> Transaction:
    transaction = (
        db.query(Transaction)
        .options(joinedload(Transaction.user), joinedload(Transaction.product))
        .filter(Transaction.id == transaction_id)
        .first()
    )
    if transaction is None:
        raise NotFoundError("Transaction not found")
    return transaction


@router.post("/manual-initiate", status_code=status.HTTP_201_CREATED)
async def manual_initiate(
    request: ManualInitiateRequest,
    affiliate_code: Optional[str] = Cookie(None, alias=AFFILIATE_COOKIE),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Create a PENDING manual transaction.

    The amount must equal the product price. A visitor referred through
    an affiliate link gets a pending conversion recorded.
    """
    product = db.get(Product, request.product_id)
    if product is None or product.deleted_at is not None:
        raise ValidationFailedError.for_field("product_id", "The selected product id is invalid.")

    transaction = PaymentService(db, storage).initiate_manual(
        user, product, request.amount, affiliate_code=affiliate_code
    )
    transaction = _load_transaction(db, transaction.id)

    return {
        "message": "Transaction created. Please upload payment proof.",
        "data": TransactionOut.from_transaction(transaction),
        "instructions": "Upload a screenshot or photo of your payment receipt using the upload-proof endpoint.",
    }


@router.post("/{transaction_id}/upload-proof")
async def upload_proof(
    transaction_id: UUID,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Upload a jpg/png/pdf receipt (max 5 MB) and queue the payment for review."""
    payload = await read_payload(request)
    proof = validate_upload(payload.file("proof"), "proof", PROOF_EXTENSIONS, PROOF_MAX_KB, required=True)

    transaction = _load_transaction(db, transaction_id)
    transaction = PaymentService(db, storage).upload_proof(transaction, user, proof)

    return {
        "message": "Payment proof uploaded successfully. Waiting for admin approval.",
        "data": TransactionOut.from_transaction(transaction),
    }


@admin_router.get("/payments/pending")
async def list_payments(
    status_filter: Optional[str] = Query(
        None, alias="status", description="Transaction status, or ALL for the full history"
    ),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    """List transactions for review, newest first."""
    query = db.query(Transaction).options(
        joinedload(Transaction.user), joinedload(Transaction.product)
    )
    if status_filter and status_filter != "ALL":
        try:
            query = query.filter(Transaction.status == TransactionStatus(status_filter))
        except ValueError:
            raise ValidationFailedError.for_field("status", "The selected status is invalid.")
    query = query.order_by(Transaction.created_at.desc())
    return page.of(query, TransactionOut.from_transaction)


@admin_router.post("/payments/{transaction_id}/approve")
async def approve_payment(
    transaction_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    transaction = _load_transaction(db, transaction_id)
    transaction = PaymentService(db, storage).approve(transaction, admin)
    return {
        "message": "Payment approved and access granted",
        "data": TransactionOut.from_transaction(transaction),
    }


@admin_router.post("/payments/{transaction_id}/reject")
async def reject_payment(
    transaction_id: UUID,
    request: Optional[RejectRequest] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    transaction = _load_transaction(db, transaction_id)
    reason = request.reason if request is not None else None
    transaction = PaymentService(db, storage).reject(transaction, admin, reason)
    return {"message": "Payment rejected", "data": TransactionOut.from_transaction(transaction)}


@admin_router.delete("/payments/{transaction_id}")
async def delete_payment(
    transaction_id: UUID,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """Remove the transaction with its conversions, library grant and proof file."""
    transaction = get_or_404(db, Transaction, transaction_id, "Transaction not found")
    PaymentService(db, storage).delete(transaction)
    return {"message": "Transaction deleted successfully"}


@admin_router.get("/files/proof/{transaction_id}")
async def download_proof(
    transaction_id: UUID,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    transaction = get_or_404(db, Transaction, transaction_id, "Transaction not found")
    if not transaction.gateway_ref:
        raise NotFoundError("Proof not found")
    if not storage.exists(transaction.gateway_ref, PRIVATE):
        raise NotFoundError("File not found")

    path = storage.absolute_path(transaction.gateway_ref, PRIVATE)
    return FileResponse(path, filename=path.name)
