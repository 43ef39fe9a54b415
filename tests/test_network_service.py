# tests/test_network_service.py
"""
Tests for sponsor assignment and upline queries.

Run:
    pytest tests/test_network_service.py -v
"""
import pytest

from affiliate_system.errors import NetworkError
from affiliate_system.services.network_service import NetworkService


class TestLookups:

    def test_get_sponsor(self, session, chain):
        service = NetworkService(session)
        assert service.get_sponsor("seller") == "middle"
        assert service.get_sponsor("top") is None
        assert service.get_sponsor("nobody") is None

    def test_get_upline(self, session, chain):
        """TEST: upline is listed from the direct sponsor upwards"""
        upline = NetworkService(session).get_upline("seller", max_levels=2)
        assert upline == [
            {"level": 1, "affiliateId": "middle"},
            {"level": 2, "affiliateId": "upper"},
        ]

    def test_get_downline(self, session, chain, make_affiliate):
        make_affiliate("sibling", sponsor=chain["middle"])
        ids = {a.affiliateID for a in NetworkService(session).get_downline("middle")}
        assert ids == {"seller", "sibling"}

    def test_is_active(self, session, make_affiliate):
        make_affiliate("on")
        make_affiliate("off", status="SUSPENDED")
        service = NetworkService(session)

        assert service.is_active("on") is True
        assert service.is_active("off") is False
        assert service.is_active("missing") is False

    def test_is_active_matches_account_flag(self, session, make_affiliate):
        """TEST: the service and the account agree on who is active"""
        for status in ("ACTIVE", "PENDING", "SUSPENDED"):
            account = make_affiliate(f"acct-{status.lower()}", status=status)
            assert NetworkService(session).is_active(account.affiliateID) is account.isActive
            assert account.isActive is (status == "ACTIVE")


class TestAssignSponsor:

    def test_assign(self, session, chain, make_affiliate):
        make_affiliate("newbie")
        account = NetworkService(session).assign_sponsor("newbie", "seller")
        assert account.sponsorID == "seller"

    def test_clear(self, session, chain):
        account = NetworkService(session).assign_sponsor("seller", None)
        assert account.sponsorID is None

    def test_self_sponsor_rejected(self, session, chain):
        with pytest.raises(NetworkError):
            NetworkService(session).assign_sponsor("seller", "seller")

    def test_cycle_rejected(self, session, chain):
        """TEST: a downline member cannot become the sponsor"""
        with pytest.raises(NetworkError):
            NetworkService(session).assign_sponsor("top", "seller")
        assert chain["top"].sponsorID is None

    def test_unknown_accounts(self, session, chain):
        service = NetworkService(session)
        with pytest.raises(NetworkError):
            service.assign_sponsor("ghost", "top")
        with pytest.raises(NetworkError):
            service.assign_sponsor("seller", "ghost")

    def test_move_subtree(self, session, chain, make_affiliate):
        """TEST: re-parenting to an unrelated branch is allowed"""
        make_affiliate("other-root")
        NetworkService(session).assign_sponsor("middle", "other-root")
        assert NetworkService(session).get_upline("seller")[-1]["affiliateId"] == "other-root"
