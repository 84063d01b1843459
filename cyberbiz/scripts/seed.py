#!/usr/bin/env python3
"""
Database Seed Script
Creates the tables and seeds an admin account, the blog categories and the
site settings row. Safe to run repeatedly.

Usage:
    python -m cyberbiz.scripts.seed
    python -m cyberbiz.scripts.seed --admin-email ops@example.com --admin-password s3cret-pass
"""

import argparse
import logging
import sys
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.security import hash_password
from ..db.enums import SubscriptionTier, UserRole
from ..db.models import BlogCategory, SiteSetting, User
from ..db.session import create_tables, get_script_session

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@cyberbiz.africa"
DEFAULT_ADMIN_PASSWORD = "password123"

BLOG_CATEGORIES = [
    ("Technology", "technology", "Latest technology news, trends, and innovations"),
    ("Business", "business", "Business strategies, entrepreneurship, and industry insights"),
    ("Marketing", "marketing", "Digital marketing, SEO, social media, and advertising"),
    ("Web Development", "web-development", "Web development tutorials, frameworks, and best practices"),
    ("Design", "design", "UI/UX design, graphic design, and creative inspiration"),
    ("Career", "career", "Career advice, job opportunities, and professional development"),
    ("Education", "education", "Educational content, courses, and learning resources"),
    ("News", "news", "Industry news, updates, and announcements"),
]

SITE_SETTINGS = {
    "address": "Ayat Zone 5, st 14, Addis Ababa, p.o.box 4051",
    "email": "info@cyberbizafrica.com",
    "phone": "+251912080065",
    "facebook_url": "https://facebook.com",
    "twitter_url": "https://twitter.com",
    "linkedin_url": "https://linkedin.com",
    "instagram_url": "https://instagram.com",
    "youtube_url": "https://youtube.com",
}


def seed_admin(db: Session, email: str = DEFAULT_ADMIN_EMAIL, password: str = DEFAULT_ADMIN_PASSWORD) -> User:
    """Create the admin account unless the email is already registered."""
    admin = db.query(User).filter(User.email == email).first()
    if admin is not None:
        logger.info(f"Admin {email} already exists")
        return admin

    now = datetime.utcnow()
    admin = User(
        full_name="Admin User",
        email=email,
        phone="+251911000001",
        password_hash=hash_password(password),
        role=UserRole.ADMIN,
        subscription_tier=SubscriptionTier.FREE,
        credits=1000,
        email_verified_at=now,
        phone_verified_at=now,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Created admin {email}")
    return admin


def seed_blog_categories(db: Session) -> int:
    """Insert missing categories (matched by slug). Returns how many were added."""
    created = 0
    for name, slug, description in BLOG_CATEGORIES:
        category = db.query(BlogCategory).filter(BlogCategory.slug == slug).first()
        if category is None:
            db.add(BlogCategory(name=name, slug=slug, description=description))
            created += 1
        else:
            category.name = name
            category.description = description
    db.commit()
    logger.info(f"Blog categories: {created} created, {len(BLOG_CATEGORIES) - created} updated")
    return created


def seed_site_settings(db: Session) -> SiteSetting:
    settings = db.query(SiteSetting).order_by(SiteSetting.id).first()
    if settings is None:
        settings = SiteSetting()
        db.add(settings)
    for field, value in SITE_SETTINGS.items():
        setattr(settings, field, value)
    db.commit()
    db.refresh(settings)
    logger.info("Site settings seeded")
    return settings


def main():
    """Main function to seed the database."""
    parser = argparse.ArgumentParser(description="Seed the CyberBiz database")
    parser.add_argument("--admin-email", type=str, default=DEFAULT_ADMIN_EMAIL, help="Admin login email")
    parser.add_argument(
        "--admin-password", type=str, default=DEFAULT_ADMIN_PASSWORD, help="Admin password (min 8 characters)"
    )
    parser.add_argument("--skip-admin", action="store_true", help="Do not create the admin account")
    args = parser.parse_args()

    if len(args.admin_password) < 8:
        logger.error("Admin password must be at least 8 characters")
        sys.exit(1)

    engine, db = get_script_session()
    try:
        create_tables(engine)
        if not args.skip_admin:
            seed_admin(db, args.admin_email.strip().lower(), args.admin_password)
        seed_blog_categories(db)
        seed_site_settings(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)
    finally:
        db.close()
        engine.dispose()

    logger.info("Seeding complete")


if __name__ == "__main__":
    main()
