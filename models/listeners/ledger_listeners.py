# models/listeners/ledger_listeners.py
"""
Ledger Event Listeners - keep AffiliateLedger append-only.

Architecture:
    AffiliateLedger INSERT → allowed (LedgerService computes balanceBefore/After)
    AffiliateLedger UPDATE / DELETE → rejected with LedgerError

Corrections are written as new entries (BONUS / REFUND_DEDUCTION),
never by editing history.
"""
import logging
from decimal import Decimal

from sqlalchemy import event

logger = logging.getLogger(__name__)


def register_ledger_listeners():
    """
    Register listeners that reject mutation of ledger rows.

    Called once during application startup from models/listeners/__init__.py
    """
    from models.ledger import AffiliateLedger
    from affiliate_system.errors import LedgerError

    def reject_update(mapper, connection, target):
        logger.error(
            f"Rejected UPDATE of ledger entry {target.entryID} "
            f"(affiliate={target.affiliateID}, type={target.type})"
        )
        raise LedgerError(f"Ledger entry {target.entryID} is append-only")

    def reject_delete(mapper, connection, target):
        logger.error(
            f"Rejected DELETE of ledger entry {target.entryID} "
            f"(affiliate={target.affiliateID}, type={target.type})"
        )
        raise LedgerError(f"Ledger entry {target.entryID} is append-only")

    event.listen(AffiliateLedger, 'before_update', reject_update)
    event.listen(AffiliateLedger, 'before_delete', reject_delete)


# =========================================================================
# SAFETY: Warn on direct balance modification
# =========================================================================

def register_balance_protection():
    """
    Log warnings when AffiliateAccount.balance is modified outside LedgerService.

    LedgerService sets `_ledger_write` on the instance before touching the
    balance; any other write is reported with a short stack.
    """
    from models.affiliate import AffiliateAccount

    @event.listens_for(AffiliateAccount.balance, 'set')
    def warn_direct_balance_set(target, value, oldvalue, initiator):
        if getattr(target, "_ledger_write", False):
            return
        if isinstance(oldvalue, (Decimal, int, float)) and value != oldvalue:
            import traceback
            stack = ''.join(traceback.format_stack()[-5:-1])

            logger.warning(
                f"DIRECT balance modification detected! "
                f"affiliate={target.affiliateID}, {oldvalue} → {value}\n"
                f"Stack:\n{stack}"
            )
