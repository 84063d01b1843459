"""
API Routers
FastAPI route handlers for different endpoints.
"""

from .ads import router as ads_router, admin_router as admin_ads_router
from .affiliates import router as affiliates_router, admin_router as admin_affiliates_router
from .applications import router as applications_router
from .auth import router as auth_router
from .blogs import router as blogs_router, admin_router as admin_blogs_router
from .comments import router as comments_router
from .contact import router as contact_router
from .favorites import router as favorites_router
from .health import router as health_router
from .jobs import router as jobs_router, admin_router as admin_jobs_router
from .native_ads import router as native_ads_router, admin_router as admin_native_ads_router
from .newsletters import router as newsletters_router, admin_router as admin_newsletters_router
from .payments import router as payments_router, admin_router as admin_payments_router
from .products import router as products_router, admin_router as admin_products_router
from .services import router as services_router, admin_router as admin_services_router
from .settings import router as settings_router, admin_router as admin_settings_router
from .sponsorships import router as sponsorships_router, admin_router as admin_sponsorships_router
from .stats import router as stats_router, admin_router as admin_stats_router
from .users_admin import admin_router as admin_users_router

# Public and user routers, in registration order
public_routers = [
    health_router,
    auth_router,
    products_router,
    payments_router,
    jobs_router,
    applications_router,
    favorites_router,
    ads_router,
    native_ads_router,
    blogs_router,
    comments_router,
    newsletters_router,
    services_router,
    sponsorships_router,
    affiliates_router,
    settings_router,
    stats_router,
    contact_router,
]

# Everything under /api/admin
admin_routers = [
    admin_users_router,
    admin_products_router,
    admin_payments_router,
    admin_jobs_router,
    admin_ads_router,
    admin_native_ads_router,
    admin_blogs_router,
    admin_newsletters_router,
    admin_services_router,
    admin_sponsorships_router,
    admin_affiliates_router,
    admin_settings_router,
    admin_stats_router,
]

__all__ = [
    "public_routers",
    "admin_routers",
    "health_router",
    "auth_router",
    "products_router",
    "admin_products_router",
    "payments_router",
    "admin_payments_router",
    "jobs_router",
    "admin_jobs_router",
    "applications_router",
    "favorites_router",
    "ads_router",
    "admin_ads_router",
    "native_ads_router",
    "admin_native_ads_router",
    "blogs_router",
    "admin_blogs_router",
    "comments_router",
    "newsletters_router",
    "admin_newsletters_router",
    "services_router",
    "admin_services_router",
    "sponsorships_router",
    "admin_sponsorships_router",
    "affiliates_router",
    "admin_affiliates_router",
    "settings_router",
    "admin_settings_router",
    "stats_router",
    "admin_stats_router",
    "contact_router",
    "admin_users_router",
]
