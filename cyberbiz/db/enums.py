"""
Domain Enumerations
Status and type values stored on the ORM models.
"""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    EMPLOYER = "EMPLOYER"
    SEEKER = "SEEKER"
    LEARNER = "LEARNER"


class SubscriptionTier(str, Enum):
    FREE = "FREE"
    PRO_EMPLOYER = "PRO_EMPLOYER"


class PasswordResetStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"


class ProductType(str, Enum):
    COURSE = "COURSE"
    EBOOK = "EBOOK"


class ResourceType(str, Enum):
    VIDEO = "VIDEO"
    DOCUMENT = "DOCUMENT"
    FILE = "FILE"


class TransactionStatus(str, Enum):
    """
    Payment lifecycle.

    PENDING -> PENDING_APPROVAL (proof uploaded) -> APPROVED | REJECTED
    """

    PENDING = "PENDING"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentGateway(str, Enum):
    MANUAL = "MANUAL"


class AdPosition(str, Enum):
    HOME_HEADER = "HOME_HEADER"
    SIDEBAR = "SIDEBAR"
    JOB_DETAIL = "JOB_DETAIL"


class JobType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERNSHIP = "INTERNSHIP"
    FREELANCE = "FREELANCE"


class JobStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class BlogStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class SponsorshipStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class SubscriberStatus(str, Enum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class InquiryStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NativeAdPosition(str, Enum):
    CONTENT_INLINE = "content_inline"
    SIDEBAR = "sidebar"
    FOOTER = "footer"
    BETWEEN_POSTS = "between_posts"
    AFTER_CONTENT = "after_content"


class NativeAdType(str, Enum):
    SPONSORED = "sponsored"
    ADVERTISEMENT = "advertisement"
    PROMOTED = "promoted"


class CommissionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ConversionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"
