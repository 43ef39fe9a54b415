# models/referral.py
"""
Referral model - one commission record per (order, affiliate, level).
Level 0 is the direct affiliate, levels 1..N are MLM upline payouts.
"""
from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, DECIMAL, DateTime, Boolean, JSON, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from models.base import Base, AuditMixin, new_id


class Referral(Base, AuditMixin):
    __tablename__ = 'referrals'

    referralID = Column(String(32), primary_key=True, default=new_id)

    affiliateID = Column(String(32), ForeignKey('affiliate_accounts.affiliateID'), nullable=False, index=True)
    orderID = Column(String, nullable=False, index=True)

    level = Column(Integer, default=0, nullable=False)
    isMlmReward = Column(Boolean, default=False, nullable=False)
    fromDownlineID = Column(String(32), nullable=True)  # seller for MLM rewards

    orderAmount = Column(DECIMAL(18, 2), nullable=False)
    baseAmount = Column(DECIMAL(18, 2), nullable=False)
    basis = Column(String(20), default="SALES_AMOUNT")  # SALES_AMOUNT, PROFIT

    commissionType = Column(String(20), default="PERCENTAGE")
    commissionRate = Column(DECIMAL(10, 4), default=Decimal("0"))
    commissionAmount = Column(DECIMAL(18, 2), nullable=False)

    ruleID = Column(String(32), nullable=True)
    source = Column(String, nullable=True)  # "RULE: <name>", "GLOBAL_DEFAULT", "MLM_LEVEL_<n>"

    status = Column(String(20), default="PENDING", index=True)  # PENDING, APPROVED, PAID, REJECTED
    availableAt = Column(DateTime, nullable=True)

    isFlagged = Column(Boolean, default=False)
    details = Column(JSON, nullable=True)

    # Relationships
    affiliate = relationship('AffiliateAccount', backref='referrals')

    __table_args__ = (
        UniqueConstraint('orderID', 'affiliateID', 'level', name='_referral_order_affiliate_level_uc'),
    )

    def __repr__(self):
        return f"<Referral(orderID={self.orderID}, affiliateID={self.affiliateID}, level={self.level}, amount={self.commissionAmount})>"
