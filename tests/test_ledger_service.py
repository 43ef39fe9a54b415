# tests/test_ledger_service.py
"""
Tests for the append-only ledger and balance bookkeeping.

Run:
    pytest tests/test_ledger_service.py -v
"""
import logging
from decimal import Decimal

import pytest

from affiliate_system.config.constants import LedgerType
from affiliate_system.errors import LedgerError
from affiliate_system.services.ledger_service import LedgerService
from models import AffiliateLedger


# =============================================================================
# BALANCE TRANSITIONS
# =============================================================================

class TestAppendEntry:

    def test_credit(self, session, make_affiliate):
        """TEST: COMMISSION credits balance and totalEarnings"""
        account = make_affiliate("aff")
        entry = LedgerService(session).append_entry("aff", LedgerType.COMMISSION, "12.50", reference_id="o-1")

        assert entry.balanceBefore == Decimal("0")
        assert entry.balanceAfter == Decimal("12.50")
        assert account.balance == Decimal("12.50")
        assert account.totalEarnings == Decimal("12.50")
        assert entry.referenceID == "o-1"

    def test_debit(self, session, make_affiliate):
        """TEST: PAYOUT debits balance, totalEarnings unchanged"""
        account = make_affiliate("aff")
        service = LedgerService(session)
        service.append_entry("aff", LedgerType.COMMISSION, 100)
        entry = service.append_entry("aff", "PAYOUT", 40)

        assert entry.balanceBefore == Decimal("100.00")
        assert entry.balanceAfter == Decimal("60.00")
        assert account.balance == Decimal("60.00")
        assert account.totalEarnings == Decimal("100.00")

    def test_entries_chain(self, session, make_affiliate):
        """TEST: each entry starts where the previous one ended"""
        make_affiliate("aff")
        service = LedgerService(session)
        for amount in ("10", "5.25", "1"):
            service.append_entry("aff", LedgerType.BONUS, amount)

        entries = list(reversed(service.get_affiliate_ledger("aff")))
        for previous, current in zip(entries, entries[1:]):
            assert current.balanceBefore == previous.balanceAfter
        assert entries[-1].balanceAfter == Decimal("16.25")

    @pytest.mark.parametrize("entry_type,amount", [
        ("WITHDRAW", 10),
        (LedgerType.COMMISSION, 0),
        (LedgerType.COMMISSION, -5),
        (LedgerType.COMMISSION, "ten"),
        (LedgerType.COMMISSION, "0.001"),
    ])
    def test_rejected(self, session, make_affiliate, entry_type, amount):
        make_affiliate("aff")
        with pytest.raises(LedgerError):
            LedgerService(session).append_entry("aff", entry_type, amount)

    def test_unknown_affiliate(self, session):
        with pytest.raises(LedgerError):
            LedgerService(session).append_entry("ghost", LedgerType.COMMISSION, 5)


# =============================================================================
# APPEND-ONLY PROTECTION
# =============================================================================

class TestAppendOnly:

    def test_update_rejected(self, session, make_affiliate):
        make_affiliate("aff")
        entry = LedgerService(session).append_entry("aff", LedgerType.COMMISSION, 5)

        entry.amount = Decimal("500")
        with pytest.raises(LedgerError):
            session.flush()

    def test_delete_rejected(self, session, make_affiliate):
        make_affiliate("aff")
        entry = LedgerService(session).append_entry("aff", LedgerType.COMMISSION, 5)

        session.delete(entry)
        with pytest.raises(LedgerError):
            session.flush()

    def test_direct_balance_write_warns(self, session, make_affiliate, caplog):
        account = make_affiliate("aff")
        session.commit()
        assert account.balance == Decimal("0")

        with caplog.at_level(logging.WARNING, logger="models.listeners.ledger_listeners"):
            account.balance = Decimal("999")
        assert "DIRECT balance modification" in caplog.text

    def test_ledger_write_does_not_warn(self, session, make_affiliate, caplog):
        make_affiliate("aff")
        session.commit()

        with caplog.at_level(logging.WARNING, logger="models.listeners.ledger_listeners"):
            LedgerService(session).append_entry("aff", LedgerType.COMMISSION, 5)
        assert "DIRECT balance modification" not in caplog.text


class TestHistory:

    def test_paging_and_filter(self, session, make_affiliate):
        make_affiliate("aff")
        service = LedgerService(session)
        for _ in range(5):
            service.append_entry("aff", LedgerType.COMMISSION, 1)
        service.append_entry("aff", LedgerType.PAYOUT, 2)

        page = service.get_ledger_history(page=2, limit=2)
        assert page["total"] == 6
        assert page["totalPages"] == 3
        assert len(page["transactions"]) == 2

        payouts = service.get_ledger_history(entry_type=LedgerType.PAYOUT)
        assert payouts["total"] == 1
        assert payouts["transactions"][0].type == "PAYOUT"
        assert session.query(AffiliateLedger).count() == 6
