# affiliate_system/events/handlers.py
"""
Event handlers for the affiliate engine.
"""
import logging
from typing import Any, Dict, Optional

from core.db import get_db_session_ctx
from affiliate_system.services.commission_service import CommissionService, OrderCompletion

logger = logging.getLogger(__name__)


def handle_order_completed(data: Dict[str, Any]) -> Optional[Dict]:
    """
    Handle ORDER_COMPLETED event.

    Runs commission processing in its own transaction. Per-rule and
    per-level problems are absorbed by the engine; an unreadable rule store
    (RuleStoreError) or database failure propagates so the workflow can
    retry or alert.

    Args:
        data: Event payload with 'orderId', 'affiliateId', 'orderTotal', ...

    Returns:
        Result of CommissionService.process_order, or None for bad payloads
    """
    order_id = data.get("orderId")

    if not order_id:
        logger.error("ORDER_COMPLETED event missing orderId")
        return None

    try:
        order = OrderCompletion.from_event(data)
    except (ValueError, ArithmeticError) as e:
        logger.error(f"Invalid ORDER_COMPLETED payload for order {order_id}: {e}")
        return None

    logger.info(f"Processing commissions for order {order_id}")

    with get_db_session_ctx() as session:
        result = CommissionService(session).process_order(order)

    if result.get("success"):
        logger.info(f"✓ Commissions processed for order {order_id}")
    else:
        logger.info(f"Order {order_id} skipped: {result.get('error')}")

    return result
