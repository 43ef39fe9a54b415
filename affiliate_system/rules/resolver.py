"""
Action resolver - turn a matched rule's action into a commission amount.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Union

from affiliate_system.config.constants import ActionType
from affiliate_system.errors import ConditionError
from affiliate_system.rules.types import RuleAction
from affiliate_system.utils.money import fits_money_column, percent_of, quantize_money, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def compute_commission(
        action: Union[RuleAction, Mapping[str, Any]],
        base_amount: Any,
        quantity: int = 1
) -> Decimal:
    """
    Compute commission for a rule action.

    PERCENTAGE: base_amount * value / 100
    FIXED: value * quantity, independent of base_amount (also for zero-value orders)

    Negative, non-finite or oversized results are clamped to 0.00 and logged.
    Result is quantized to 2 decimals, ROUND_HALF_UP.

    Example:
        compute_commission({"type": "PERCENTAGE", "value": 10}, 200) -> Decimal("20.00")
        compute_commission({"type": "FIXED", "value": 15}, 0) -> Decimal("15.00")
        compute_commission({"type": "FIXED", "value": 15}, 0, quantity=3) -> Decimal("45.00")
    """
    if not isinstance(action, RuleAction):
        try:
            action = RuleAction.from_json(action)
        except ConditionError as e:
            logger.warning(f"Malformed rule action, commission set to 0: {e}")
            return ZERO

    if not action.value.is_finite():
        logger.warning(f"Non-finite action value {action.value}, commission set to 0")
        return ZERO

    try:
        if action.type is ActionType.FIXED:
            amount = quantize_money(action.value * int(quantity))
        else:
            try:
                base = to_decimal(base_amount)
            except InvalidOperation:
                logger.warning(f"Non-numeric base amount {base_amount!r}, commission set to 0")
                return ZERO
            if not base.is_finite():
                logger.warning(f"Non-finite base amount {base}, commission set to 0")
                return ZERO
            amount = percent_of(base, action.value)
    except InvalidOperation:
        logger.error(
            f"Commission for {action.type.value} {action.value} on {base_amount!r} "
            f"exceeds decimal precision, set to 0"
        )
        return ZERO

    if amount < 0:
        logger.warning(
            f"Negative commission {amount} ({action.type.value} {action.value} "
            f"on {base_amount}) clamped to 0"
        )
        return ZERO

    if not fits_money_column(amount):
        logger.error(f"Commission {amount} exceeds the storable maximum, set to 0")
        return ZERO

    return amount
