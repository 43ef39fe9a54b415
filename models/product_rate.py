# models/product_rate.py
"""
AffiliateProductRate model - per-product commission overrides.

Each row targets exactly one affiliate or exactly one group
(checked by RateService.upsert_product_rate). isDisabled removes the
product from commission for that target altogether.
"""
from decimal import Decimal

from sqlalchemy import Column, String, DECIMAL, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from models.base import Base, AuditMixin, new_id


class AffiliateProductRate(Base, AuditMixin):
    __tablename__ = 'affiliate_product_rates'

    rateID = Column(String(32), primary_key=True, default=new_id)
    productID = Column(String, nullable=False, index=True)

    affiliateID = Column(String(32), ForeignKey('affiliate_accounts.affiliateID'), nullable=True, index=True)
    groupID = Column(String(32), ForeignKey('affiliate_groups.groupID'), nullable=True, index=True)

    rate = Column(DECIMAL(10, 4), default=Decimal("0"), nullable=False)
    type = Column(String(20), default="PERCENTAGE", nullable=False)  # PERCENTAGE, FIXED
    isDisabled = Column(Boolean, default=False, nullable=False)

    # Relationships
    affiliate = relationship('AffiliateAccount', backref='productRates')
    group = relationship('AffiliateGroup', backref='productRates')

    __table_args__ = (
        UniqueConstraint('productID', 'affiliateID', name='_product_rate_affiliate_uc'),
        UniqueConstraint('productID', 'groupID', name='_product_rate_group_uc'),
    )

    def __repr__(self):
        target = f"affiliate={self.affiliateID}" if self.affiliateID else f"group={self.groupID}"
        return f"<AffiliateProductRate(productID={self.productID}, {target}, {self.rate} {self.type})>"
