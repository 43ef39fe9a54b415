"""
Affiliate engine enumerations and constants.
"""
from enum import Enum
from decimal import Decimal


class CustomerType(Enum):
    """Customer segment a rule targets; orders carry NEW or RETURNING."""
    ALL = "ALL"
    NEW = "NEW"
    RETURNING = "RETURNING"


class ActionType(Enum):
    """How a matched rule turns an order into a commission."""
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class CommissionBasis(Enum):
    """Amount MLM level rates apply to."""
    SALES_AMOUNT = "SALES_AMOUNT"
    PROFIT = "PROFIT"


class LedgerType(Enum):
    COMMISSION = "COMMISSION"
    BONUS = "BONUS"
    PAYOUT = "PAYOUT"
    REFUND_DEDUCTION = "REFUND_DEDUCTION"


class AffiliateStatus(Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SUSPENDED = "SUSPENDED"


class ReferralStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"


# Ledger types that increase the balance; the rest decrease it
CREDIT_TYPES = frozenset({LedgerType.COMMISSION, LedgerType.BONUS})

# Currency precision for everything handed to the ledger
MONEY_QUANTUM = Decimal("0.01")

# Admin limits (network settings form)
MAX_MLM_LEVELS = 10
MAX_LEVEL_RATE = Decimal("100")

# Anomaly flags reported by the payout walker
ANOMALY_SPONSOR_CYCLE = "SPONSOR_CYCLE"

# Hard ceiling for any upline walk, independent of configuration
MAX_CHAIN_DEPTH = 50

# Largest amount a DECIMAL(18, 2) money column holds
MAX_MONEY = Decimal("9999999999999999.99")

# Largest rate a DECIMAL(10, 4) rate column holds
MAX_RATE_VALUE = Decimal("999999.9999")

# Where a direct commission rate came from, highest precedence first
SOURCE_PRODUCT_USER_OVERRIDE = "PRODUCT_USER_OVERRIDE"
SOURCE_PRODUCT_GROUP_OVERRIDE = "PRODUCT_GROUP_OVERRIDE"
SOURCE_RULE_PREFIX = "RULE: "
SOURCE_GROUP_DEFAULT = "GROUP_DEFAULT"
SOURCE_TIER_DEFAULT = "TIER_DEFAULT"
SOURCE_GLOBAL_DEFAULT = "GLOBAL_DEFAULT"
SOURCE_MIXED = "MIXED"
