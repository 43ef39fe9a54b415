# affiliate_system/services/fraud_service.py
"""
Fraud checks run before a commission is granted.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from sqlalchemy.orm import Session

from config import Config
from models.affiliate import AffiliateAccount
from models.referral import Referral
from affiliate_system.config.constants import ReferralStatus
from affiliate_system.rules.types import as_utc

logger = logging.getLogger(__name__)


class FraudService:
    """Self-referral and velocity checks."""

    def __init__(self, session: Session):
        self.session = session

    def is_self_referral(self, affiliate_id: str, buyer_email: Optional[str]) -> bool:
        """True when the buyer is the affiliate (email match, case/space-insensitive)."""
        if not buyer_email:
            return False

        affiliate = self.session.query(AffiliateAccount).filter_by(
            affiliateID=affiliate_id
        ).first()
        if not affiliate or not affiliate.email:
            return False

        return affiliate.email.strip().lower() == buyer_email.strip().lower()

    def check_velocity(self, affiliate_id: str, now: Optional[datetime] = None) -> bool:
        """
        True when the affiliate has too many pending referrals in the window.

        Limits: Config.VELOCITY_LIMIT referrals within Config.VELOCITY_WINDOW_MINUTES.
        """
        limit = int(Config.get(Config.VELOCITY_LIMIT))
        window = int(Config.get(Config.VELOCITY_WINDOW_MINUTES))
        now = as_utc(now) or datetime.now(timezone.utc)
        # createdAt is stored naive in UTC
        since = (now - timedelta(minutes=window)).replace(tzinfo=None)

        recent_count = self.session.query(Referral).filter(
            Referral.affiliateID == affiliate_id,
            Referral.level == 0,
            Referral.status == ReferralStatus.PENDING.value,
            Referral.createdAt >= since
        ).count()

        if recent_count >= limit:
            logger.warning(
                f"Velocity limit hit for affiliate {affiliate_id}: "
                f"{recent_count} pending referrals in {window} min"
            )
            return True
        return False
