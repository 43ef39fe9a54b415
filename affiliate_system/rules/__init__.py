"""
Commission rule core: typed rules, condition evaluation, action resolution,
rule selection. Pure functions, no database access.
"""
from affiliate_system.rules.types import (
    OrderContext,
    RuleAction,
    RuleConditions,
    RuleDefinition,
)
from affiliate_system.rules.evaluator import matches
from affiliate_system.rules.resolver import compute_commission
from affiliate_system.rules.selector import select_rule, order_rules

__all__ = [
    'OrderContext',
    'RuleAction',
    'RuleConditions',
    'RuleDefinition',
    'matches',
    'compute_commission',
    'select_rule',
    'order_rules',
]
