"""
API Services
Business logic and infrastructure used by the routers.
"""

from .affiliates import AffiliateService, AFFILIATE_COOKIE
from .mailer import Mailer, MailError, get_mailer
from .payments import PaymentService
from .storage import FileStorage, StoredFile, get_storage, reset_storage, PUBLIC, PRIVATE

__all__ = [
    "AffiliateService",
    "AFFILIATE_COOKIE",
    "Mailer",
    "MailError",
    "get_mailer",
    "PaymentService",
    "FileStorage",
    "StoredFile",
    "get_storage",
    "reset_storage",
    "PUBLIC",
    "PRIVATE",
]
