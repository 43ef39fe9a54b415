# tests/test_fraud_service.py
"""
Tests for self-referral and velocity checks.

Run:
    pytest tests/test_fraud_service.py -v
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from config import Config
from affiliate_system.services.fraud_service import FraudService
from models import Referral

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def add_referral(session, affiliate_id, order_id, created_at, level=0, status="PENDING"):
    session.add(Referral(
        affiliateID=affiliate_id,
        orderID=order_id,
        level=level,
        orderAmount=Decimal("10"),
        baseAmount=Decimal("10"),
        commissionAmount=Decimal("1"),
        status=status,
        createdAt=created_at,
    ))
    session.flush()


class TestSelfReferral:

    def test_email_match(self, session, make_affiliate):
        make_affiliate("aff", email="Owner@Example.com")
        fraud = FraudService(session)

        assert fraud.is_self_referral("aff", " owner@example.COM ") is True
        assert fraud.is_self_referral("aff", "buyer@example.com") is False
        assert fraud.is_self_referral("aff", None) is False
        assert fraud.is_self_referral("ghost", "owner@example.com") is False


class TestVelocity:

    def test_within_window(self, session, make_affiliate):
        """TEST: limit is reached by pending direct referrals inside the window"""
        Config.set(Config.VELOCITY_LIMIT, 3)
        make_affiliate("aff")
        for i in range(3):
            add_referral(session, "aff", f"o-{i}", NOW - timedelta(minutes=i))

        assert FraudService(session).check_velocity("aff", NOW) is True

    def test_old_and_other_rows_ignored(self, session, make_affiliate):
        """TEST: old, non-pending and MLM referrals do not count"""
        Config.set(Config.VELOCITY_LIMIT, 2)
        make_affiliate("aff")
        add_referral(session, "aff", "o-old", NOW - timedelta(minutes=30))
        add_referral(session, "aff", "o-paid", NOW, status="PAID")
        add_referral(session, "aff", "o-mlm", NOW, level=1)
        add_referral(session, "aff", "o-new", NOW)

        assert FraudService(session).check_velocity("aff", NOW) is False

    def test_offset_now_is_same_instant(self, session, make_affiliate):
        """TEST: a caller time with a non-UTC offset is compared in UTC"""
        Config.set(Config.VELOCITY_LIMIT, 2)
        make_affiliate("aff")
        add_referral(session, "aff", "o-1", NOW - timedelta(minutes=1))
        add_referral(session, "aff", "o-2", NOW - timedelta(minutes=2))

        minus_seven = timezone(timedelta(hours=-7))
        assert FraudService(session).check_velocity("aff", NOW.astimezone(minus_seven)) is True
        later = (NOW + timedelta(hours=1)).astimezone(minus_seven)
        assert FraudService(session).check_velocity("aff", later) is False

    def test_naive_now_is_utc(self, session, make_affiliate):
        Config.set(Config.VELOCITY_LIMIT, 1)
        make_affiliate("aff")
        add_referral(session, "aff", "o-1", NOW)

        assert FraudService(session).check_velocity("aff", NOW.replace(tzinfo=None)) is True
