"""
Database ORM Models
SQLAlchemy ORM models for database tables.
"""

from .models import (
    Base,
    User,
    PasswordResetRequest,
    Product,
    ProductResource,
    UserLibrary,
    Transaction,
    AdSlot,
    JobPosting,
    Application,
    JobFavorite,
    BlogCategory,
    Blog,
    BlogComment,
    Newsletter,
    NewsletterSubscriber,
    Service,
    ServiceInquiry,
    NativeAd,
    SponsorshipPost,
    AffiliateProgram,
    AffiliateLink,
    AffiliateClick,
    AffiliateImpression,
    AffiliateConversion,
    SiteSetting,
)

__all__ = [
    "Base",
    "User",
    "PasswordResetRequest",
    "Product",
    "ProductResource",
    "UserLibrary",
    "Transaction",
    "AdSlot",
    "JobPosting",
    "Application",
    "JobFavorite",
    "BlogCategory",
    "Blog",
    "BlogComment",
    "Newsletter",
    "NewsletterSubscriber",
    "Service",
    "ServiceInquiry",
    "NativeAd",
    "SponsorshipPost",
    "AffiliateProgram",
    "AffiliateLink",
    "AffiliateClick",
    "AffiliateImpression",
    "AffiliateConversion",
    "SiteSetting",
]
