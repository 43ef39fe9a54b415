# affiliate_system/rules/evaluator.py
"""
Condition evaluator - does a rule's predicate hold for an order?
"""
import logging
from typing import Any, Mapping, Union

from affiliate_system.config.constants import CustomerType
from affiliate_system.errors import ConditionError
from affiliate_system.rules.types import OrderContext, RuleConditions

logger = logging.getLogger(__name__)


def matches(
        conditions: Union[RuleConditions, Mapping[str, Any], None],
        context: OrderContext
) -> bool:
    """
    Evaluate rule conditions against an order (logical AND of present fields).

    Args:
        conditions: Parsed RuleConditions, or raw stored JSON
        context: Order being evaluated

    Returns:
        True if every present predicate holds; True for empty conditions.
        False for malformed raw conditions (logged, never raised).

    Example:
        matches({"minOrderAmount": 100}, ctx(order_amount=100)) -> True
        matches({"minOrderAmount": 100}, ctx(order_amount=99)) -> False
    """
    if not isinstance(conditions, RuleConditions):
        try:
            conditions = RuleConditions.from_json(conditions)
        except ConditionError as e:
            logger.warning(f"Malformed rule conditions treated as non-matching: {e}")
            return False

    if conditions.is_empty:
        return True

    if conditions.min_order_amount is not None:
        if context.order_amount < conditions.min_order_amount:
            return False

    if conditions.max_order_amount is not None:
        if context.order_amount > conditions.max_order_amount:
            return False

    if conditions.customer_type is not None:
        if conditions.customer_type is not CustomerType.ALL \
                and conditions.customer_type is not context.customer_type:
            return False

    if conditions.category_ids:
        if conditions.category_ids.isdisjoint(context.category_ids):
            return False

    return True
