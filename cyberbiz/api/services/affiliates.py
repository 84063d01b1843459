"""
Affiliate Service
Link codes, click/impression tracking, conversions and commission stats.
"""

import logging
import secrets
import string
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..config import get_settings
from ...db.enums import ConversionStatus
from ...db.models import (
    AffiliateProgram,
    AffiliateLink,
    AffiliateClick,
    AffiliateImpression,
    AffiliateConversion,
    User,
)

logger = logging.getLogger(__name__)

AFFILIATE_COOKIE = "affiliate_code"
CODE_LENGTH = 10
CODE_ALPHABET = string.ascii_letters + string.digits


def _money(value) -> float:
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01")))


class AffiliateService:
    """
    Affiliate tracking backed by the database session.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_active_link(self, code: Optional[str]) -> Optional[AffiliateLink]:
        """Active link whose program is active too, or None."""
        if not code:
            return None
        link = (
            self.db.query(AffiliateLink)
            .options(joinedload(AffiliateLink.program))
            .filter(AffiliateLink.code == code, AffiliateLink.is_active.is_(True))
            .first()
        )
        if link is None or link.program is None or not link.program.is_active:
            return None
        return link

    def record_click(
        self,
        link: AffiliateLink,
        ip_address: Optional[str],
        user_agent: Optional[str],
        referer: Optional[str],
    ) -> AffiliateClick:
        click = AffiliateClick(
            link_id=link.id,
            ip_address=ip_address,
            user_agent=user_agent,
            referer=referer[:2048] if referer else None,
        )
        self.db.add(click)
        self.db.commit()
        self.db.refresh(click)
        return click

    def record_impression(
        self,
        link: AffiliateLink,
        ip_address: Optional[str],
        user_agent: Optional[str],
        referer: Optional[str],
    ) -> AffiliateImpression:
        impression = AffiliateImpression(
            link_id=link.id,
            ip_address=ip_address,
            user_agent=user_agent,
            referer=referer[:2048] if referer else None,
        )
        self.db.add(impression)
        self.db.commit()
        self.db.refresh(impression)
        return impression

    def recent_click(self, link: AffiliateLink) -> Optional[AffiliateClick]:
        """Latest click of the link inside the program's cookie window."""
        return (
            self.db.query(AffiliateClick)
            .filter(
                AffiliateClick.link_id == link.id,
                AffiliateClick.clicked_at >= link.program.cookie_window_start(),
            )
            .order_by(AffiliateClick.clicked_at.desc())
            .first()
        )

    def conversion_exists(self, transaction_id: str) -> bool:
        return (
            self.db.query(AffiliateConversion.id)
            .filter(AffiliateConversion.transaction_id == str(transaction_id))
            .first()
            is not None
        )

    def record_conversion(self, link: AffiliateLink, transaction_id: str, amount) -> AffiliateConversion:
        """
        Create a pending conversion with commission from the link's program.

        Args:
            link: Active affiliate link (program loaded)
            transaction_id: Purchase identifier
            amount: Purchase amount
        """
        click = self.recent_click(link)
        conversion = AffiliateConversion(
            link_id=link.id,
            click_id=click.id if click else None,
            transaction_id=str(transaction_id),
            amount=Decimal(str(amount)),
            commission=link.program.calculate_commission(amount),
            status=ConversionStatus.PENDING,
        )
        self.db.add(conversion)
        self.db.commit()
        self.db.refresh(conversion)
        logger.info(
            f"Affiliate conversion recorded for link {link.id}",
            extra={"transaction_id": str(transaction_id), "commission": str(conversion.commission)},
        )
        return conversion

    def _generate_code(self) -> str:
        while True:
            code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
            taken = self.db.query(AffiliateLink.id).filter(AffiliateLink.code == code).first()
            if taken is None:
                return code

    def join(self, program: AffiliateProgram, user: User) -> Tuple[AffiliateLink, bool]:
        """
        Get or create the user's link for a program.

        Returns:
            (link, created)
        """
        existing = (
            self.db.query(AffiliateLink)
            .filter(AffiliateLink.program_id == program.id, AffiliateLink.affiliate_id == user.id)
            .first()
        )
        if existing is not None:
            return existing, False

        code = self._generate_code()
        link = AffiliateLink(
            program_id=program.id,
            affiliate_id=user.id,
            code=code,
            url=f"{get_settings().frontend_url}/affiliate/{code}",
            is_active=True,
        )
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        logger.info(f"User {user.id} joined affiliate program {program.id}")
        return link, True

    def _conversion_sums(self, *filters) -> Dict[str, Any]:
        def total(*extra):
            value = (
                self.db.query(func.coalesce(func.sum(AffiliateConversion.commission), 0))
                .filter(*filters, *extra)
                .scalar()
            )
            return _money(value)

        return {
            "total_commission": total(AffiliateConversion.status != ConversionStatus.REJECTED),
            "pending_commission": total(AffiliateConversion.status == ConversionStatus.PENDING),
            "paid_commission": total(AffiliateConversion.status == ConversionStatus.PAID),
        }

    def dashboard_stats(self, user: User) -> Dict[str, Any]:
        """Totals across all of an affiliate's links."""
        link_ids = [
            row.id
            for row in self.db.query(AffiliateLink.id).filter(AffiliateLink.affiliate_id == user.id)
        ]
        in_links = AffiliateConversion.link_id.in_(link_ids)

        stats = {
            "total_links": len(link_ids),
            "total_clicks": self.db.query(AffiliateClick)
            .filter(AffiliateClick.link_id.in_(link_ids))
            .count(),
            "total_impressions": self.db.query(AffiliateImpression)
            .filter(AffiliateImpression.link_id.in_(link_ids))
            .count(),
            "total_conversions": self.db.query(AffiliateConversion)
            .filter(in_links, AffiliateConversion.status != ConversionStatus.REJECTED)
            .count(),
        }
        stats.update(self._conversion_sums(in_links))
        return stats

    def link_traffic_earnings(self, link: AffiliateLink) -> Dict[str, Any]:
        """Click/impression counts of one link and the pay-per-traffic they earn."""
        clicks = self.db.query(AffiliateClick).filter(AffiliateClick.link_id == link.id).count()
        impressions = (
            self.db.query(AffiliateImpression).filter(AffiliateImpression.link_id == link.id).count()
        )
        return {
            "clicks_count": clicks,
            "impressions_count": impressions,
            "click_earnings": _money(link.program.calculate_click_commission(clicks)),
            "impression_earnings": _money(link.program.calculate_impression_commission(impressions)),
        }

    def admin_stats(self) -> Dict[str, Any]:
        stats = {
            "total_programs": self.db.query(AffiliateProgram).count(),
            "active_programs": self.db.query(AffiliateProgram)
            .filter(AffiliateProgram.is_active.is_(True))
            .count(),
            "total_links": self.db.query(AffiliateLink).count(),
            "active_links": self.db.query(AffiliateLink)
            .filter(AffiliateLink.is_active.is_(True))
            .count(),
            "total_clicks": self.db.query(AffiliateClick).count(),
            "total_impressions": self.db.query(AffiliateImpression).count(),
            "total_conversions": self.db.query(AffiliateConversion).count(),
        }
        stats.update(self._conversion_sums())
        return stats
