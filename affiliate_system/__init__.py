"""
Affiliate System - commission rules, MLM network payouts, affiliate ledger.
"""

# Rule core
from affiliate_system.rules import (
    OrderContext,
    RuleAction,
    RuleConditions,
    RuleDefinition,
    compute_commission,
    matches,
    select_rule,
)

# Network payouts
from affiliate_system.mlm import MLMSettings, UplineDistribution, UplinePayout, distribute_upline

# Configuration
from affiliate_system.config.constants import (
    ActionType,
    CommissionBasis,
    CustomerType,
    LedgerType,
)

__all__ = [
    # Rules
    'OrderContext',
    'RuleAction',
    'RuleConditions',
    'RuleDefinition',
    'compute_commission',
    'matches',
    'select_rule',

    # MLM
    'MLMSettings',
    'UplineDistribution',
    'UplinePayout',
    'distribute_upline',

    # Config
    'ActionType',
    'CommissionBasis',
    'CustomerType',
    'LedgerType',
]
