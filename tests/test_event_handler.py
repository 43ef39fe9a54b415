# tests/test_event_handler.py
"""
Tests for the ORDER_COMPLETED handler.

The handler's own transaction is replaced with the test session.

Run:
    pytest tests/test_event_handler.py -v
"""
from contextlib import contextmanager
from decimal import Decimal

import pytest

from affiliate_system.events import handlers
from models import Referral


@pytest.fixture
def handler_session(session, monkeypatch):
    @contextmanager
    def fake_ctx():
        yield session
        session.flush()

    monkeypatch.setattr(handlers, "get_db_session_ctx", fake_ctx)
    return session


class TestHandleOrderCompleted:

    def test_processes_order(self, handler_session, chain):
        result = handlers.handle_order_completed({
            "orderId": "evt-1",
            "affiliateId": "seller",
            "orderTotal": 250,
            "customerType": "NEW",
        })

        assert result["success"] is True
        assert result["commission"] == Decimal("25.00")
        assert handler_session.query(Referral).filter_by(orderID="evt-1").count() == 1

    def test_missing_order_id(self, handler_session):
        assert handlers.handle_order_completed({"affiliateId": "seller"}) is None

    @pytest.mark.parametrize("payload", [
        {"orderId": "evt-2", "orderTotal": "lots"},
        {"orderId": "evt-3", "orderTotal": 10, "customerType": "VIP"},
        {"orderId": "evt-4", "orderTotal": 10, "subtotal": "?"},
        {"orderId": "evt-6", "affiliateId": "seller", "orderTotal": 10, "customerType": "ALL"},
        {"orderId": "evt-7", "affiliateId": "seller", "orderTotal": 10, "items": [{"productId": "p1", "total": 10, "quantity": 0}]},
        {"orderId": "evt-8", "affiliateId": "seller", "orderTotal": 10, "items": [{"total": 10}]},
    ])
    def test_bad_payload(self, handler_session, chain, payload):
        """TEST: malformed payloads are logged and dropped"""
        assert handlers.handle_order_completed(payload) is None
        assert handler_session.query(Referral).count() == 0

    def test_skip_reported(self, handler_session):
        result = handlers.handle_order_completed({"orderId": "evt-5", "orderTotal": 10})
        assert result == {"success": False, "error": "NO_AFFILIATE"}

    def test_items_processed(self, handler_session, chain):
        result = handlers.handle_order_completed({
            "orderId": "evt-9",
            "affiliateId": "seller",
            "orderTotal": 60,
            "items": [
                {"productId": "p1", "total": 40, "quantity": 2, "categoryId": "c1"},
                {"productId": "p2", "total": "20"},
            ],
        })

        assert result["success"] is True
        assert result["commission"] == Decimal("6.00")
        assert [line["productId"] for line in result["items"]] == ["p1", "p2"]
