# affiliate_system/services/ledger_service.py
"""
Ledger service - append-only balance journal for affiliates.

Every balance change goes through append_entry, which locks the account
row (SELECT ... FOR UPDATE) so concurrent credits for the same affiliate
serialize on the database and never lose updates.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union
import logging

from sqlalchemy.orm import Session

from models.affiliate import AffiliateAccount
from models.ledger import AffiliateLedger
from affiliate_system.config.constants import CREDIT_TYPES, LedgerType
from affiliate_system.errors import LedgerError
from affiliate_system.utils.money import quantize_money, to_decimal

logger = logging.getLogger(__name__)


class LedgerService:
    """Writes and reads AffiliateLedger entries."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================
    # WRITE OPERATIONS (Transactional)
    # =========================================

    def append_entry(
            self,
            affiliate_id: str,
            entry_type: Union[LedgerType, str],
            amount: Any,
            description: Optional[str] = None,
            reference_id: Optional[str] = None
    ) -> AffiliateLedger:
        """
        Apply a balance transition and journal it.

        COMMISSION/BONUS credit the balance (and totalEarnings);
        PAYOUT/REFUND_DEDUCTION debit it.

        Args:
            affiliate_id: Account to update
            entry_type: LedgerType or its value
            amount: Positive amount; direction comes from entry_type
            description: Free text
            reference_id: Order id / payout id for traceability

        Returns:
            The new ledger row (flushed, not committed)

        Raises:
            LedgerError: unknown type, non-positive amount, unknown affiliate
        """
        try:
            entry_type = LedgerType(entry_type.value if isinstance(entry_type, LedgerType) else entry_type)
        except ValueError:
            raise LedgerError(f"Unknown ledger type {entry_type!r}")

        try:
            value = quantize_money(to_decimal(amount))
        except InvalidOperation:
            raise LedgerError(f"Ledger amount must be numeric, got {amount!r}")

        if not value.is_finite() or value <= 0:
            raise LedgerError(f"Ledger amount must be greater than 0, got {amount!r}")

        account = self.session.query(AffiliateAccount).filter_by(
            affiliateID=affiliate_id
        ).with_for_update().first()

        if not account:
            raise LedgerError(f"Affiliate {affiliate_id} not found")

        balance_before = Decimal(str(account.balance or 0))
        if entry_type in CREDIT_TYPES:
            balance_after = balance_before + value
        else:
            balance_after = balance_before - value

        account._ledger_write = True
        try:
            account.balance = balance_after
            if entry_type in CREDIT_TYPES:
                account.totalEarnings = Decimal(str(account.totalEarnings or 0)) + value
        finally:
            account._ledger_write = False

        entry = AffiliateLedger(
            affiliateID=affiliate_id,
            type=entry_type.value,
            amount=value,
            balanceBefore=balance_before,
            balanceAfter=balance_after,
            description=description,
            referenceID=reference_id,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            f"Ledger {entry_type.value}: affiliate={affiliate_id}, amount={value}, "
            f"balance {balance_before} → {balance_after}, ref={reference_id}"
        )
        return entry

    # =========================================
    # READ OPERATIONS
    # =========================================

    def get_affiliate_ledger(self, affiliate_id: str) -> List[AffiliateLedger]:
        return self.session.query(AffiliateLedger).filter_by(
            affiliateID=affiliate_id
        ).order_by(AffiliateLedger.entryID.desc()).all()

    def get_ledger_history(
            self,
            page: int = 1,
            limit: int = 20,
            entry_type: Optional[Union[LedgerType, str]] = None
    ) -> Dict[str, Any]:
        """
        Paged ledger for the admin table.

        Returns:
            {"transactions": [...], "total": n, "totalPages": n}
        """
        query = self.session.query(AffiliateLedger)
        if entry_type:
            type_value = entry_type.value if isinstance(entry_type, LedgerType) else entry_type
            query = query.filter(AffiliateLedger.type == type_value)

        total = query.count()
        page = max(page, 1)
        transactions = query.order_by(
            AffiliateLedger.entryID.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return {
            "transactions": transactions,
            "total": total,
            "totalPages": -(-total // limit) if limit else 0,
        }
