# affiliate_system/rules/selector.py
"""
Rule selector - pick the winning commission rule for an order.

Ordering: priority desc, then created_at asc (earliest rule wins a tie),
then id for full determinism.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from affiliate_system.rules.evaluator import matches
from affiliate_system.rules.types import OrderContext, RuleDefinition, as_utc

logger = logging.getLogger(__name__)

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def rule_sort_key(rule: RuleDefinition):
    created = as_utc(rule.created_at) or _FAR_FUTURE
    return (-rule.priority, created, rule.id)


def order_rules(rules: Iterable[RuleDefinition]) -> List[RuleDefinition]:
    """Sort rules in evaluation order."""
    return sorted(rules, key=rule_sort_key)


def select_rule(
        rules: Iterable[RuleDefinition],
        context: OrderContext,
        now: Optional[datetime] = None
) -> Optional[RuleDefinition]:
    """
    Return the first live, applicable, matching rule or None.

    Args:
        rules: Candidate rules (any order)
        context: Order being evaluated
        now: Evaluation time, defaults to current UTC time

    Returns:
        Winning rule; None means the caller falls back to the program default
    """
    now = as_utc(now) or datetime.now(timezone.utc)

    for rule in order_rules(rules):
        try:
            if not rule.is_live(now):
                continue
            if not rule.applies_to(context.affiliate_id):
                continue
            if matches(rule.conditions, context):
                logger.debug(
                    f"Rule '{rule.name}' ({rule.id}, priority {rule.priority}) "
                    f"selected for order {context.order_id}"
                )
                return rule
        except Exception as e:
            logger.error(f"Skipping rule {getattr(rule, 'id', '?')}: evaluation failed: {e}")
            continue

    logger.debug(f"No commission rule matched order {context.order_id}")
    return None
