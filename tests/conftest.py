# tests/conftest.py
"""
Pytest configuration and shared fixtures for the affiliate engine.

Every test gets a fresh in-memory SQLite database.

Run:
    pytest tests -v
"""
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import Config
from models import AffiliateAccount, Base, CommissionRule, register_all_listeners


# =============================================================================
# CONFIG
# =============================================================================

@pytest.fixture(autouse=True)
def test_config():
    """Known configuration for every test, independent of any .env file."""
    Config.reset()
    Config.set(Config.DATABASE_URL, "sqlite://")
    Config.set(Config.PROGRAM_ENABLED, True)
    Config.set(Config.DEFAULT_COMMISSION_RATE, Decimal("10"))
    Config.set(Config.HOLDING_PERIOD_DAYS, 14)
    Config.set(Config.ZERO_VALUE_REFERRALS, False)
    Config.set(Config.ALLOW_SELF_REFERRAL, False)
    Config.set(Config.VELOCITY_LIMIT, 10)
    Config.set(Config.VELOCITY_WINDOW_MINUTES, 5)
    yield
    Config.reset()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_listeners():
    """Register listeners once at test session start."""
    register_all_listeners()


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create database session for each test."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


# =============================================================================
# FACTORY FIXTURES
# =============================================================================

@pytest.fixture
def make_affiliate(session):
    """
    Create an affiliate account.

    Usage:
        seller = make_affiliate("seller", sponsor=parent)
    """

    def _make(affiliate_id, sponsor=None, status="ACTIVE", email=None):
        account = AffiliateAccount(
            affiliateID=affiliate_id,
            email=email or f"{affiliate_id}@example.com",
            name=affiliate_id.title(),
            status=status,
            sponsorID=sponsor.affiliateID if isinstance(sponsor, AffiliateAccount) else sponsor,
            balance=Decimal("0"),
            totalEarnings=Decimal("0"),
        )
        session.add(account)
        session.flush()
        return account

    return _make


@pytest.fixture
def make_rule(session):
    """
    Create a stored commission rule.

    Usage:
        make_rule("Big orders", priority=10, conditions={"minOrderAmount": 300},
                  action={"type": "PERCENTAGE", "value": 8})
    """

    def _make(name, priority=0, conditions=None, action=None, **kwargs):
        rule = CommissionRule(
            name=name,
            priority=priority,
            isActive=kwargs.pop("isActive", True),
            conditions=conditions if conditions is not None else {},
            action=action or {"type": "PERCENTAGE", "value": 5},
            affiliateSpecificIds=kwargs.pop("affiliateSpecificIds", []),
            **kwargs
        )
        session.add(rule)
        session.flush()
        return rule

    return _make


@pytest.fixture
def chain(make_affiliate):
    """
    Linear sponsor chain: top <- upper <- middle <- seller.

    Returns dict with the four accounts.
    """
    top = make_affiliate("top")
    upper = make_affiliate("upper", sponsor=top)
    middle = make_affiliate("middle", sponsor=upper)
    seller = make_affiliate("seller", sponsor=middle)
    return {"top": top, "upper": upper, "middle": middle, "seller": seller}
