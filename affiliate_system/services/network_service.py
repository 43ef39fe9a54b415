# affiliate_system/services/network_service.py
"""
Sponsor network service - sponsor lookups and forest-preserving assignment.
"""
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from models.affiliate import AffiliateAccount
from affiliate_system.config.constants import MAX_CHAIN_DEPTH
from affiliate_system.errors import NetworkError
from affiliate_system.utils.chain_walker import ChainWalker

logger = logging.getLogger(__name__)


class NetworkService:
    """Sponsor tree reads and writes."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, affiliate_id: str) -> Optional[AffiliateAccount]:
        return self.session.query(AffiliateAccount).filter_by(affiliateID=affiliate_id).first()

    def get_sponsor(self, affiliate_id: str) -> Optional[str]:
        """Sponsor id of an affiliate, None for roots and unknown ids."""
        account = self._get(affiliate_id)
        if not account:
            logger.warning(f"Sponsor lookup for unknown affiliate {affiliate_id}")
            return None
        return account.sponsorID

    def is_active(self, affiliate_id: str) -> bool:
        account = self._get(affiliate_id)
        return bool(account and account.isActive)

    def assign_sponsor(self, affiliate_id: str, sponsor_id: Optional[str]) -> AffiliateAccount:
        """
        Set (or clear, with None) an affiliate's sponsor.

        Raises:
            NetworkError: unknown account, self-sponsorship, or cycle
        """
        account = self._get(affiliate_id)
        if not account:
            raise NetworkError(f"Affiliate {affiliate_id} not found")

        if sponsor_id is None:
            account.sponsorID = None
            self.session.flush()
            logger.info(f"Sponsor cleared for affiliate {affiliate_id}")
            return account

        if sponsor_id == affiliate_id:
            raise NetworkError(f"Affiliate {affiliate_id} cannot sponsor itself")

        if not self._get(sponsor_id):
            raise NetworkError(f"Sponsor {sponsor_id} not found")

        walker = ChainWalker(self.get_sponsor)
        if walker.would_create_cycle(affiliate_id, sponsor_id):
            logger.error(f"Rejected sponsor {sponsor_id} for {affiliate_id}: would create a cycle")
            raise NetworkError(
                f"Sponsor {sponsor_id} is in the downline of {affiliate_id}"
            )

        account.sponsorID = sponsor_id
        self.session.flush()
        logger.info(f"Affiliate {affiliate_id} now sponsored by {sponsor_id}")
        return account

    def get_upline(self, affiliate_id: str, max_levels: int = MAX_CHAIN_DEPTH) -> List[Dict]:
        """
        Upline as [{"level": 1, "affiliateId": ...}, ...].
        """
        walker = ChainWalker(self.get_sponsor)
        return [
            {"level": i + 1, "affiliateId": upline_id}
            for i, upline_id in enumerate(walker.get_upline_chain(affiliate_id, max_levels))
        ]

    def get_downline(self, affiliate_id: str) -> List[AffiliateAccount]:
        """Direct recruits of an affiliate."""
        return self.session.query(AffiliateAccount).filter_by(sponsorID=affiliate_id).all()
