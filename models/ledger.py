# models/ledger.py
"""
AffiliateLedger model - append-only journal of balance-affecting transactions.
Rows are written by LedgerService only; UPDATE/DELETE are rejected by
models.listeners.ledger_listeners.
"""
from sqlalchemy import Column, Integer, String, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship

from models.base import Base, AuditMixin


class AffiliateLedger(Base, AuditMixin):
    __tablename__ = 'affiliate_ledger'

    entryID = Column(Integer, primary_key=True, autoincrement=True)

    affiliateID = Column(String(32), ForeignKey('affiliate_accounts.affiliateID'), nullable=False, index=True)

    type = Column(String(20), nullable=False, index=True)  # COMMISSION, BONUS, PAYOUT, REFUND_DEDUCTION
    amount = Column(DECIMAL(18, 2), nullable=False)  # always positive, direction comes from type
    balanceBefore = Column(DECIMAL(18, 2), nullable=False)
    balanceAfter = Column(DECIMAL(18, 2), nullable=False)

    description = Column(String, nullable=True)
    referenceID = Column(String, nullable=True, index=True)  # order id, payout id, ...

    # Relationships
    affiliate = relationship('AffiliateAccount', backref='ledgerEntries')

    def __repr__(self):
        return f"<AffiliateLedger(entryID={self.entryID}, type={self.type}, amount={self.amount})>"
