# tests/test_db.py
"""
Tests for engine and transactional session handling.

Run:
    pytest tests/test_db.py -v
"""
from decimal import Decimal

import pytest

from core import db
from models import AffiliateAccount


@pytest.fixture
def memory_db():
    db.init_engine("sqlite://")
    db.setup_database()
    yield
    db.reset_engine()


class TestSessionContext:

    def test_commit_on_success(self, memory_db):
        """TEST: in-memory engine shares one database across sessions"""
        with db.get_db_session_ctx() as session:
            session.add(AffiliateAccount(affiliateID="aff", email="aff@example.com", balance=Decimal("0")))

        with db.get_db_session_ctx() as session:
            assert session.query(AffiliateAccount).count() == 1

    def test_rollback_on_error(self, memory_db):
        with pytest.raises(RuntimeError):
            with db.get_db_session_ctx() as session:
                session.add(AffiliateAccount(affiliateID="aff", email="aff@example.com", balance=Decimal("0")))
                session.flush()
                raise RuntimeError("workflow failed")

        with db.get_db_session_ctx() as session:
            assert session.query(AffiliateAccount).count() == 0

    def test_engine_built_from_config(self, memory_db):
        db.reset_engine()
        assert str(db.get_engine().url) == "sqlite://"
