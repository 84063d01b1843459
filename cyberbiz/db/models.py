"""
SQLAlchemy ORM Models
Database table definitions using SQLAlchemy ORM.

Column types are chosen to work on PostgreSQL in production and on SQLite
in tests (generic Uuid, JSON with a JSONB variant).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import (
    Column, String, Integer, BigInteger, Boolean, TIMESTAMP, Enum,
    ForeignKey, Numeric, Text, Index, UniqueConstraint, Uuid, JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from .enums import (
    UserRole, SubscriptionTier, PasswordResetStatus, ProductType, ResourceType,
    TransactionStatus, AdPosition, JobType, JobStatus, BlogStatus,
    SponsorshipStatus, SubscriberStatus, InquiryStatus, NativeAdPosition,
    NativeAdType, CommissionType, ConversionStatus,
)

Base = declarative_base()

JSONType = JSON().with_variant(JSONB(), "postgresql")


def enum_type(enum_cls) -> Enum:
    """String-backed enum column storing member values."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


def created_at_column() -> Column:
    return Column(TIMESTAMP, nullable=False, default=datetime.utcnow, server_default=func.now())


def updated_at_column() -> Column:
    return Column(
        TIMESTAMP, nullable=False, default=datetime.utcnow,
        onupdate=datetime.utcnow, server_default=func.now(),
    )


class User(Base):
    """
    User model.

    Holds credentials, role and employer profile fields.
    """
    __tablename__ = 'users'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False,
                   comment='User email address (login identifier)')
    phone = Column(String(50), nullable=True)

    # Authentication fields
    password_hash = Column(String(255), nullable=False,
                           comment='Bcrypt hashed password')
    token_version = Column(Integer, nullable=False, default=0,
                           comment='Incremented on logout to revoke issued tokens')
    email_verified_at = Column(TIMESTAMP, nullable=True)
    phone_verified_at = Column(TIMESTAMP, nullable=True)

    role = Column(enum_type(UserRole), nullable=False, default=UserRole.SEEKER, index=True)
    subscription_tier = Column(enum_type(SubscriptionTier), nullable=False,
                               default=SubscriptionTier.FREE)
    credits = Column(Integer, nullable=False, default=0)

    # Employer profile
    company_name = Column(String(255), nullable=True)
    website_url = Column(String(255), nullable=True)

    # Timestamps
    created_at = created_at_column()
    updated_at = updated_at_column()
    deleted_at = Column(TIMESTAMP, nullable=True, comment='Soft delete marker')

    # Relationships
    job_postings = relationship("JobPosting", back_populates="employer")
    applications = relationship("Application", back_populates="seeker", cascade="all, delete-orphan")
    library = relationship("UserLibrary", back_populates="user", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_employer(self) -> bool:
        return self.role == UserRole.EMPLOYER

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class PasswordResetRequest(Base):
    """Password reset request recorded for an admin to process."""
    __tablename__ = 'password_reset_requests'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    email = Column(String(255), nullable=False)
    status = Column(enum_type(PasswordResetStatus), nullable=False,
                    default=PasswordResetStatus.PENDING, index=True)
    processed_at = Column(TIMESTAMP, nullable=True)
    processed_by = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", foreign_keys=[user_id])
    processor = relationship("User", foreign_keys=[processed_by])

    def __repr__(self):
        return f"<PasswordResetRequest(id={self.id}, email={self.email}, status={self.status})>"


class Product(Base):
    """
    Digital product (course or ebook) sold for ETB.
    """
    __tablename__ = 'products'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(enum_type(ProductType), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    description_html = Column(Text, nullable=True)
    price_etb = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    thumbnail_url = Column(String(2048), nullable=True)
    access_url = Column(String(2048), nullable=True,
                        comment='Delivery location, exposed as content_path')
    is_downloadable = Column(Boolean, nullable=False, default=False)
    is_free = Column(Boolean, nullable=False, default=False)

    created_at = created_at_column()
    updated_at = updated_at_column()
    deleted_at = Column(TIMESTAMP, nullable=True)

    resources = relationship(
        "ProductResource",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="[ProductResource.order, ProductResource.created_at]",
    )

    @property
    def content_path(self) -> Optional[str]:
        return self.access_url

    def __repr__(self):
        return f"<Product(id={self.id}, title={self.title}, type={self.type})>"


class ProductResource(Base):
    """
    A single downloadable file or external link attached to a product.
    """
    __tablename__ = 'product_resources'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    type = Column(enum_type(ResourceType), nullable=False, default=ResourceType.FILE)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Either a stored file (public disk) or an external url
    file_path = Column(String(1024), nullable=True)
    external_url = Column(String(2048), nullable=True)
    file_name = Column(String(255), nullable=True)
    file_size = Column(BigInteger, nullable=True, comment='Size in bytes')
    mime_type = Column(String(255), nullable=True)

    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    product = relationship("Product", back_populates="resources")

    __table_args__ = (
        Index('idx_product_resources_product_order', 'product_id', 'order'),
    )

    def __repr__(self):
        return f"<ProductResource(id={self.id}, product_id={self.product_id}, title={self.title})>"


class UserLibrary(Base):
    """Grants a user access to a product."""
    __tablename__ = 'user_library'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Uuid, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    access_granted_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", back_populates="library")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='uq_user_library_user_product'),
    )

    def __repr__(self):
        return f"<UserLibrary(user_id={self.user_id}, product_id={self.product_id})>"


class Transaction(Base):
    """
    Product purchase.

    MANUAL transactions wait for an uploaded proof and admin approval.
    """
    __tablename__ = 'transactions'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    gateway = Column(String(32), nullable=False)
    gateway_ref = Column(String(1024), nullable=True,
                         comment='Gateway reference or stored proof path')
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(enum_type(TransactionStatus), nullable=False,
                    default=TransactionStatus.PENDING, index=True)
    meta = Column(JSONType, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", back_populates="transactions")
    product = relationship("Product")

    def __repr__(self):
        return f"<Transaction(id={self.id}, status={self.status}, amount={self.amount})>"


class AdSlot(Base):
    """Banner ad shown at a fixed position."""
    __tablename__ = 'ad_slots'

    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(enum_type(AdPosition), nullable=False, index=True)
    image_url = Column(String(2048), nullable=False)
    target_url = Column(String(2048), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    impressions = Column(Integer, nullable=False, default=0)
    created_at = created_at_column()
    updated_at = updated_at_column()

    def __repr__(self):
        return f"<AdSlot(id={self.id}, position={self.position})>"


class JobPosting(Base):
    """
    Job posting published by an employer.
    """
    __tablename__ = 'job_postings'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    employer_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    job_type = Column(enum_type(JobType), nullable=True)
    location = Column(String(255), nullable=True)
    experience = Column(String(255), nullable=True)
    skills = Column(JSONType, nullable=True, comment='List of skill names')
    description_html = Column(Text, nullable=False)
    company_description = Column(Text, nullable=True)
    status = Column(enum_type(JobStatus), nullable=False, default=JobStatus.DRAFT, index=True)
    expires_at = Column(TIMESTAMP, nullable=True)
    ld_json = Column(JSONType, nullable=True, comment='Cached schema.org JobPosting payload')

    created_at = created_at_column()
    updated_at = updated_at_column()
    deleted_at = Column(TIMESTAMP, nullable=True)

    employer = relationship("User", back_populates="job_postings")
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at < datetime.utcnow()

    @property
    def is_published(self) -> bool:
        return self.status == JobStatus.PUBLISHED

    def __repr__(self):
        return f"<JobPosting(id={self.id}, title={self.title}, status={self.status})>"


class Application(Base):
    """Job application with an uploaded CV."""
    __tablename__ = 'applications'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid, ForeignKey('job_postings.id', ondelete='CASCADE'), nullable=False)
    seeker_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    cv_path = Column(String(1024), nullable=False)
    cv_original_name = Column(String(255), nullable=False)
    cover_letter = Column(Text, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    job = relationship("JobPosting", back_populates="applications")
    seeker = relationship("User", back_populates="applications")

    __table_args__ = (
        UniqueConstraint('job_id', 'seeker_id', name='uq_applications_job_seeker'),
    )

    def __repr__(self):
        return f"<Application(id={self.id}, job_id={self.job_id}, seeker_id={self.seeker_id})>"


class JobFavorite(Base):
    __tablename__ = 'job_favorites'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    job_id = Column(Uuid, ForeignKey('job_postings.id', ondelete='CASCADE'), nullable=False)
    created_at = created_at_column()
    updated_at = updated_at_column()

    job = relationship("JobPosting")

    __table_args__ = (
        UniqueConstraint('user_id', 'job_id', name='uq_job_favorites_user_job'),
    )


class BlogCategory(Base):
    __tablename__ = 'blog_categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    blogs = relationship("Blog", back_populates="category")

    def __repr__(self):
        return f"<BlogCategory(id={self.id}, slug={self.slug})>"


class Blog(Base):
    """
    Blog post.

    Visible publicly once status is published and published_at is not in
    the future.
    """
    __tablename__ = 'blogs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    featured_image_url = Column(String(2048), nullable=True)
    category_id = Column(Integer, ForeignKey('blog_categories.id', ondelete='SET NULL'), nullable=True)
    author_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    published_at = Column(TIMESTAMP, nullable=True)
    status = Column(enum_type(BlogStatus), nullable=False, default=BlogStatus.DRAFT)
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    category = relationship("BlogCategory", back_populates="blogs")
    author = relationship("User")
    comments = relationship("BlogComment", back_populates="blog", cascade="all, delete-orphan")

    @property
    def is_published(self) -> bool:
        if self.status != BlogStatus.PUBLISHED:
            return False
        return self.published_at is None or self.published_at <= datetime.utcnow()

    def __repr__(self):
        return f"<Blog(id={self.id}, slug={self.slug}, status={self.status})>"


class BlogComment(Base):
    """Threaded blog comment (replies nest up to MAX_DEPTH levels)."""
    __tablename__ = 'blog_comments'

    MAX_DEPTH = 2

    id = Column(Integer, primary_key=True, autoincrement=True)
    blog_id = Column(Integer, ForeignKey('blogs.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    parent_id = Column(Integer, ForeignKey('blog_comments.id', ondelete='CASCADE'), nullable=True)
    content = Column(Text, nullable=False)
    created_at = created_at_column()
    updated_at = updated_at_column()

    blog = relationship("Blog", back_populates="comments")
    user = relationship("User")
    parent = relationship("BlogComment", remote_side=[id], back_populates="replies")
    replies = relationship(
        "BlogComment",
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="BlogComment.created_at",
    )

    @property
    def depth(self) -> int:
        """Number of ancestors (0 for a top-level comment)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def __repr__(self):
        return f"<BlogComment(id={self.id}, blog_id={self.blog_id}, parent_id={self.parent_id})>"


class NewsletterSubscriber(Base):
    __tablename__ = 'newsletter_subscribers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=True)
    status = Column(enum_type(SubscriberStatus), nullable=False,
                    default=SubscriberStatus.SUBSCRIBED, index=True)
    subscribed_at = Column(TIMESTAMP, nullable=True)
    unsubscribed_at = Column(TIMESTAMP, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    def __repr__(self):
        return f"<NewsletterSubscriber(id={self.id}, email={self.email}, status={self.status})>"


class Newsletter(Base):
    __tablename__ = 'newsletters'

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_by = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    sent_at = Column(TIMESTAMP, nullable=True)
    recipient_count = Column(Integer, nullable=False, default=0)
    created_at = created_at_column()
    updated_at = updated_at_column()

    creator = relationship("User")

    def __repr__(self):
        return f"<Newsletter(id={self.id}, subject={self.subject}, sent_at={self.sent_at})>"


class Service(Base):
    __tablename__ = 'services'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    icon = Column(String(255), nullable=True)
    image_url = Column(String(2048), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    inquiries = relationship("ServiceInquiry", back_populates="service", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Service(id={self.id}, slug={self.slug})>"


class ServiceInquiry(Base):
    __tablename__ = 'service_inquiries'

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(enum_type(InquiryStatus), nullable=False, default=InquiryStatus.NEW, index=True)
    admin_notes = Column(Text, nullable=True)
    assigned_to = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    service = relationship("Service", back_populates="inquiries")
    assignee = relationship("User")

    def __repr__(self):
        return f"<ServiceInquiry(id={self.id}, service_id={self.service_id}, status={self.status})>"


class NativeAd(Base):
    """
    In-content advertisement with impression and click counters.
    """
    __tablename__ = 'native_ads'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(2048), nullable=True)
    link_url = Column(String(2048), nullable=False)
    position = Column(enum_type(NativeAdPosition), nullable=False,
                      default=NativeAdPosition.CONTENT_INLINE)
    type = Column(enum_type(NativeAdType), nullable=False, default=NativeAdType.ADVERTISEMENT)
    advertiser_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    impressions = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    start_date = Column(TIMESTAMP, nullable=True)
    end_date = Column(TIMESTAMP, nullable=True)
    priority = Column(Integer, nullable=False, default=0, index=True,
                      comment='Higher priority ads are shown first')
    created_at = created_at_column()
    updated_at = updated_at_column()

    __table_args__ = (
        Index('idx_native_ads_position_active', 'position', 'is_active'),
    )

    @property
    def ctr(self) -> float:
        """Click-through rate in percent."""
        if not self.impressions:
            return 0.0
        return round(self.clicks / self.impressions * 100, 2)

    def __repr__(self):
        return f"<NativeAd(id={self.id}, title={self.title}, position={self.position})>"


class SponsorshipPost(Base):
    __tablename__ = 'sponsorship_posts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    featured_image_url = Column(String(2048), nullable=True)
    sponsor_name = Column(String(255), nullable=False)
    sponsor_logo_url = Column(String(2048), nullable=True)
    sponsor_website = Column(String(2048), nullable=True)
    sponsor_description = Column(Text, nullable=True)
    status = Column(enum_type(SponsorshipStatus), nullable=False, default=SponsorshipStatus.DRAFT)
    published_at = Column(TIMESTAMP, nullable=True)
    expires_at = Column(TIMESTAMP, nullable=True, comment='When the sponsorship ends')
    priority = Column(Integer, nullable=False, default=0, index=True)
    created_by = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    creator = relationship("User")

    __table_args__ = (
        Index('idx_sponsorship_posts_status_published', 'status', 'published_at'),
    )

    @property
    def is_active(self) -> bool:
        now = datetime.utcnow()
        if self.status != SponsorshipStatus.PUBLISHED:
            return False
        if self.published_at is not None and self.published_at > now:
            return False
        if self.expires_at is not None and self.expires_at < now:
            return False
        return True

    def __repr__(self):
        return f"<SponsorshipPost(id={self.id}, slug={self.slug}, status={self.status})>"


class AffiliateProgram(Base):
    """
    Affiliate program paying commission on conversions.

    Optional impression/click rates pay `rate` per `unit` events.
    """
    __tablename__ = 'affiliate_programs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(enum_type(CommissionType), nullable=False, default=CommissionType.PERCENTAGE)
    commission_rate = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"),
                             comment='Percentage or fixed amount, depending on type')
    impression_rate = Column(Numeric(10, 2), nullable=True)
    impression_unit = Column(Integer, nullable=True, comment='e.g. per 1000 impressions')
    click_rate = Column(Numeric(10, 2), nullable=True)
    click_unit = Column(Integer, nullable=True)
    target_url = Column(String(2048), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    cookie_duration = Column(Integer, nullable=False, default=30, comment='Days to track conversions')
    created_at = created_at_column()
    updated_at = updated_at_column()

    links = relationship("AffiliateLink", back_populates="program", cascade="all, delete-orphan")

    def calculate_commission(self, amount) -> Decimal:
        """
        Commission owed for a conversion of `amount`.

        Percentage programs round half away from zero to 2 places.
        """
        rate = Decimal(str(self.commission_rate or 0))
        if self.type == CommissionType.PERCENTAGE:
            value = Decimal(str(amount)) * rate / Decimal(100)
            return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return rate.quantize(Decimal("0.01"))

    def calculate_impression_commission(self, impressions: int) -> Decimal:
        return self._unit_commission(impressions, self.impression_rate, self.impression_unit)

    def calculate_click_commission(self, clicks: int) -> Decimal:
        return self._unit_commission(clicks, self.click_rate, self.click_unit)

    @staticmethod
    def _unit_commission(count: int, rate, unit) -> Decimal:
        if not rate or not unit or unit <= 0:
            return Decimal("0.00")
        return (Decimal(count // unit) * Decimal(str(rate))).quantize(Decimal("0.01"))

    def cookie_window_start(self) -> datetime:
        return datetime.utcnow() - timedelta(days=self.cookie_duration or 30)

    def __repr__(self):
        return f"<AffiliateProgram(id={self.id}, name={self.name}, type={self.type})>"


class AffiliateLink(Base):
    __tablename__ = 'affiliate_links'

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_id = Column(Integer, ForeignKey('affiliate_programs.id', ondelete='CASCADE'), nullable=False)
    affiliate_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    code = Column(String(64), unique=True, nullable=False, index=True)
    url = Column(String(2048), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    program = relationship("AffiliateProgram", back_populates="links")
    affiliate = relationship("User")
    clicks = relationship("AffiliateClick", back_populates="link", cascade="all, delete-orphan")
    impressions = relationship("AffiliateImpression", back_populates="link", cascade="all, delete-orphan")
    conversions = relationship("AffiliateConversion", back_populates="link", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('program_id', 'affiliate_id', name='uq_affiliate_links_program_affiliate'),
    )

    def __repr__(self):
        return f"<AffiliateLink(id={self.id}, code={self.code})>"


class AffiliateClick(Base):
    __tablename__ = 'affiliate_clicks'

    id = Column(Integer, primary_key=True, autoincrement=True)
    link_id = Column(Integer, ForeignKey('affiliate_links.id', ondelete='CASCADE'), nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    referer = Column(String(2048), nullable=True)
    country = Column(String(2), nullable=True)
    clicked_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    created_at = created_at_column()
    updated_at = updated_at_column()

    link = relationship("AffiliateLink", back_populates="clicks")

    __table_args__ = (
        Index('idx_affiliate_clicks_link_clicked', 'link_id', 'clicked_at'),
    )


class AffiliateImpression(Base):
    __tablename__ = 'affiliate_impressions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    link_id = Column(Integer, ForeignKey('affiliate_links.id', ondelete='CASCADE'), nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    referer = Column(String(2048), nullable=True)
    country = Column(String(2), nullable=True)
    viewed_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    created_at = created_at_column()
    updated_at = updated_at_column()

    link = relationship("AffiliateLink", back_populates="impressions")

    __table_args__ = (
        Index('idx_affiliate_impressions_link_viewed', 'link_id', 'viewed_at'),
    )


class AffiliateConversion(Base):
    __tablename__ = 'affiliate_conversions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    link_id = Column(Integer, ForeignKey('affiliate_links.id', ondelete='CASCADE'), nullable=False)
    click_id = Column(Integer, ForeignKey('affiliate_clicks.id', ondelete='SET NULL'), nullable=True)
    transaction_id = Column(String(255), nullable=True, index=True,
                            comment='External or internal transaction id')
    amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    commission = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    status = Column(enum_type(ConversionStatus), nullable=False,
                    default=ConversionStatus.PENDING, index=True)
    notes = Column(Text, nullable=True)
    converted_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    created_at = created_at_column()
    updated_at = updated_at_column()

    link = relationship("AffiliateLink", back_populates="conversions")
    click = relationship("AffiliateClick")

    def __repr__(self):
        return f"<AffiliateConversion(id={self.id}, status={self.status}, commission={self.commission})>"


class SiteSetting(Base):
    """Singleton row with contact details, social links, FAQ and policy text."""
    __tablename__ = 'site_settings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    facebook_url = Column(String(2048), nullable=True)
    twitter_url = Column(String(2048), nullable=True)
    linkedin_url = Column(String(2048), nullable=True)
    instagram_url = Column(String(2048), nullable=True)
    youtube_url = Column(String(2048), nullable=True)
    faq_q1 = Column(String(500), nullable=True)
    faq_a1 = Column(Text, nullable=True)
    faq_q2 = Column(String(500), nullable=True)
    faq_a2 = Column(Text, nullable=True)
    faq_q3 = Column(String(500), nullable=True)
    faq_a3 = Column(Text, nullable=True)
    privacy_policy = Column(Text, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    def __repr__(self):
        return f"<SiteSetting(id={self.id})>"
