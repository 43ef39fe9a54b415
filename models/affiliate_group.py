# models/affiliate_group.py
"""
AffiliateGroup and AffiliateTier models - plan-level default rates.

An affiliate belongs to at most one group and at most one tier. A group's
rate is always a percentage; a tier carries its own commission type.
A zero or NULL rate means "no default at this level".
"""
from decimal import Decimal

from sqlalchemy import Column, String, DECIMAL

from models.base import Base, AuditMixin, new_id


class AffiliateGroup(Base, AuditMixin):
    __tablename__ = 'affiliate_groups'

    groupID = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=True)

    commissionRate = Column(DECIMAL(10, 4), nullable=True)  # percent

    def __repr__(self):
        return f"<AffiliateGroup(groupID={self.groupID}, name={self.name}, rate={self.commissionRate})>"


class AffiliateTier(Base, AuditMixin):
    __tablename__ = 'affiliate_tiers'

    tierID = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)

    commissionRate = Column(DECIMAL(10, 4), default=Decimal("0"), nullable=False)
    commissionType = Column(String(20), default="PERCENTAGE", nullable=False)  # PERCENTAGE, FIXED

    def __repr__(self):
        return f"<AffiliateTier(tierID={self.tierID}, name={self.name}, rate={self.commissionRate} {self.commissionType})>"
