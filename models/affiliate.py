# models/affiliate.py
"""
AffiliateAccount model - partner accounts and the sponsor (upline) tree.
"""
from decimal import Decimal

from sqlalchemy import Column, String, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship

from models.base import Base, AuditMixin, new_id
from affiliate_system.config.constants import AffiliateStatus


class AffiliateAccount(Base, AuditMixin):
    __tablename__ = 'affiliate_accounts'

    affiliateID = Column(String(32), primary_key=True, default=new_id)

    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    status = Column(String(20), default="ACTIVE", index=True)  # ACTIVE, PENDING, SUSPENDED

    # Sponsor link: at most one parent per account, forest shape enforced
    # by NetworkService.assign_sponsor
    sponsorID = Column(String(32), ForeignKey('affiliate_accounts.affiliateID'), nullable=True, index=True)

    # Plan: optional group (product overrides, default rate) and tier (default rate)
    groupID = Column(String(32), ForeignKey('affiliate_groups.groupID'), nullable=True, index=True)
    tierID = Column(String(32), ForeignKey('affiliate_tiers.tierID'), nullable=True, index=True)

    balance = Column(DECIMAL(18, 2), default=Decimal("0"), nullable=False)
    totalEarnings = Column(DECIMAL(18, 2), default=Decimal("0"), nullable=False)

    # Relationships
    sponsor = relationship('AffiliateAccount', remote_side=[affiliateID], backref='downline')
    group = relationship('AffiliateGroup', backref='affiliates')
    tier = relationship('AffiliateTier', backref='affiliates')

    @property
    def isActive(self) -> bool:
        """Only ACTIVE accounts earn commissions and network payouts."""
        return self.status == AffiliateStatus.ACTIVE.value

    def __repr__(self):
        return f"<AffiliateAccount(affiliateID={self.affiliateID}, sponsor={self.sponsorID}, status={self.status})>"
