"""
ORM event listeners guarding the affiliate ledger.

    - ledger_listeners: AffiliateLedger is append-only; direct writes to
      AffiliateAccount.balance are reported

Registered once at startup (core.bootstrap.initialize) and by the test suite.
"""
import logging

logger = logging.getLogger(__name__)

_registered = False


def register_all_listeners():
    """Attach ledger listeners. Repeated calls are no-ops."""
    global _registered

    if _registered:
        return

    from models.listeners.ledger_listeners import (
        register_balance_protection,
        register_ledger_listeners,
    )

    register_ledger_listeners()
    register_balance_protection()

    _registered = True
    logger.info("Ledger listeners registered (append-only journal, balance write warnings)")
