"""
Payment Service
Manual (bank transfer) purchases: initiation, proof upload and admin review.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.orm import Session

from ..errors import ConflictError, ForbiddenError, UnprocessableError
from .affiliates import AffiliateService
from .storage import FileStorage, PRIVATE, file_extension
from ...db.enums import ConversionStatus, PaymentGateway, TransactionStatus
from ...db.models import AffiliateConversion, Product, Transaction, User, UserLibrary

logger = logging.getLogger(__name__)

PROOF_EXTENSIONS = ("jpg", "jpeg", "png", "pdf")
PROOF_MAX_KB = 5120


class PaymentService:
    """
    Manual payment workflow.

    PENDING -> PENDING_APPROVAL (proof uploaded) -> APPROVED | REJECTED
    """

    def __init__(self, db: Session, storage: FileStorage):
        self.db = db
        self.storage = storage

    def initiate_manual(
        self,
        user: User,
        product: Product,
        amount: Decimal,
        affiliate_code: Optional[str] = None,
    ) -> Transaction:
        """
        Create a PENDING manual transaction for a product.

        An affiliate code (from the tracking cookie) records a pending
        conversion. Tracking problems are logged and never fail the purchase.
        """
        if Decimal(str(amount)) != Decimal(str(product.price_etb)):
            raise UnprocessableError("Amount does not match product price")

        transaction = Transaction(
            user_id=user.id,
            product_id=product.id,
            gateway=PaymentGateway.MANUAL.value,
            amount=amount,
            status=TransactionStatus.PENDING,
        )
        self.db.add(transaction)
        self.db.commit()
        self.db.refresh(transaction)
        logger.info(f"Manual transaction {transaction.id} created for user {user.id}")

        if affiliate_code:
            self._track_affiliate_conversion(transaction, affiliate_code)

        return transaction

    def _track_affiliate_conversion(self, transaction: Transaction, code: str) -> None:
        affiliates = AffiliateService(self.db)
        try:
            link = affiliates.find_active_link(code)
            if link is None or affiliates.conversion_exists(str(transaction.id)):
                return
            affiliates.record_conversion(link, str(transaction.id), transaction.amount)
        except Exception as e:
            self.db.rollback()
            logger.warning(
                f"Affiliate conversion tracking failed for transaction {transaction.id}: {e}"
            )

    def upload_proof(self, transaction: Transaction, user: User, proof: UploadFile) -> Transaction:
        """
        Store a payment proof and move the transaction to PENDING_APPROVAL.

        Raises:
            ForbiddenError: the transaction belongs to someone else
            ConflictError: proof already uploaded or transaction approved
        """
        if str(transaction.user_id) != str(user.id):
            logger.warning(
                f"Proof upload for transaction {transaction.id} by non-owner {user.id}"
            )
            raise ForbiddenError("Unauthorized - You do not own this transaction")

        if transaction.status in (TransactionStatus.PENDING_APPROVAL, TransactionStatus.APPROVED):
            raise ConflictError("Proof already uploaded or transaction already processed")

        stored = self.storage.save_upload(
            proof,
            f"payments/{transaction.id}",
            filename=f"proof.{file_extension(proof.filename)}",
            disk=PRIVATE,
        )
        transaction.gateway_ref = stored.path
        transaction.status = TransactionStatus.PENDING_APPROVAL
        self.db.commit()
        self.db.refresh(transaction)
        return transaction

    def grant_access(self, user_id, product_id) -> UserLibrary:
        """Get or create the library entry for a user and product."""
        entry = (
            self.db.query(UserLibrary)
            .filter(UserLibrary.user_id == user_id, UserLibrary.product_id == product_id)
            .first()
        )
        if entry is not None:
            return entry

        entry = UserLibrary(user_id=user_id, product_id=product_id, access_granted_at=datetime.utcnow())
        self.db.add(entry)
        return entry

    def _require_pending_approval(self, transaction: Transaction) -> None:
        if transaction.status != TransactionStatus.PENDING_APPROVAL:
            raise UnprocessableError("Transaction is not pending approval")

    def approve(self, transaction: Transaction, admin: User) -> Transaction:
        """
        Approve a proof: APPROVED status, library access and affiliate
        conversion approval are committed together.
        """
        self._require_pending_approval(transaction)

        try:
            transaction.status = TransactionStatus.APPROVED
            if transaction.product_id:
                self.grant_access(transaction.user_id, transaction.product_id)

            conversion = (
                self.db.query(AffiliateConversion)
                .filter(
                    AffiliateConversion.transaction_id == str(transaction.id),
                    AffiliateConversion.status == ConversionStatus.PENDING,
                )
                .first()
            )
            if conversion is not None:
                conversion.status = ConversionStatus.APPROVED

            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Approval of transaction {transaction.id} failed", exc_info=True)
            raise

        self.db.refresh(transaction)
        logger.info(f"Transaction {transaction.id} approved by {admin.id}")
        return transaction

    def reject(self, transaction: Transaction, admin: User, reason: Optional[str]) -> Transaction:
        self._require_pending_approval(transaction)

        meta = dict(transaction.meta or {})
        meta.update(
            {
                "rejection_reason": reason,
                "rejected_at": datetime.utcnow().isoformat(),
                "rejected_by": str(admin.id),
            }
        )
        transaction.status = TransactionStatus.REJECTED
        transaction.meta = meta
        self.db.commit()
        self.db.refresh(transaction)
        logger.info(f"Transaction {transaction.id} rejected by {admin.id}")
        return transaction

    def delete(self, transaction: Transaction) -> None:
        """
        Delete a transaction with its conversions, library grant and proof file.
        """
        self.db.query(AffiliateConversion).filter(
            AffiliateConversion.transaction_id == str(transaction.id)
        ).delete(synchronize_session=False)

        if transaction.product_id:
            self.db.query(UserLibrary).filter(
                UserLibrary.user_id == transaction.user_id,
                UserLibrary.product_id == transaction.product_id,
            ).delete(synchronize_session=False)

        if transaction.gateway_ref:
            try:
                self.storage.delete(transaction.gateway_ref, PRIVATE)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to delete payment proof for {transaction.id}: {e}")

        self.db.delete(transaction)
        self.db.commit()
        logger.info(f"Transaction {transaction.id} deleted")
