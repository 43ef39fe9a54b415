# models/commission_rule.py
"""
CommissionRule model - admin-configured condition -> action pairs.
Conditions and action are stored as JSON and validated on read
(see affiliate_system.rules.types.RuleDefinition).
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, Index

from models.base import Base, AuditMixin, new_id


class CommissionRule(Base, AuditMixin):
    __tablename__ = 'commission_rules'

    ruleID = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)

    # NULL programID = global rule, applies to every program
    programID = Column(String, nullable=True, index=True)

    isActive = Column(Boolean, default=True, nullable=False)
    priority = Column(Integer, default=0, nullable=False)  # higher runs first

    # {"minOrderAmount": 300, "customerType": "ALL", "categoryIds": ["c1"]}
    conditions = Column(JSON, nullable=False, default=dict)
    # {"type": "PERCENTAGE", "value": 8}
    action = Column(JSON, nullable=False)

    # Optional activity window (inclusive)
    startDate = Column(DateTime, nullable=True)
    endDate = Column(DateTime, nullable=True)

    # Empty list = any affiliate
    affiliateSpecificIds = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index('ix_commission_rule_active_priority', 'isActive', 'priority'),
    )

    def __repr__(self):
        return f"<CommissionRule(ruleID={self.ruleID}, name={self.name}, priority={self.priority})>"
