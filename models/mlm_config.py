# models/mlm_config.py
"""
MLMConfig model - singleton row with network payout settings.
"""
from sqlalchemy import Column, Integer, String, Boolean, JSON

from models.base import Base, AuditMixin

MLM_CONFIG_ID = "mlm_config"


class MLMConfig(Base, AuditMixin):
    __tablename__ = 'mlm_config'

    configID = Column(String(32), primary_key=True, default=MLM_CONFIG_ID)

    isEnabled = Column(Boolean, default=False, nullable=False)
    maxLevels = Column(Integer, default=0, nullable=False)
    commissionBasis = Column(String(20), default="SALES_AMOUNT", nullable=False)  # SALES_AMOUNT, PROFIT

    # {"1": 10, "2": 5, "3": 2} - percent per upline level
    levelRates = Column(JSON, nullable=False, default=dict)

    def __repr__(self):
        return f"<MLMConfig(enabled={self.isEnabled}, maxLevels={self.maxLevels}, basis={self.commissionBasis})>"
