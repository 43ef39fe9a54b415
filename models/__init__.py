"""
Database models for the affiliate engine.
Import all models here for easy access.
"""

# Base and mixins
from models.base import Base, AuditMixin

# Core models
from models.affiliate import AffiliateAccount
from models.affiliate_group import AffiliateGroup, AffiliateTier
from models.product_rate import AffiliateProductRate
from models.commission_rule import CommissionRule
from models.mlm_config import MLMConfig, MLM_CONFIG_ID
from models.referral import Referral
from models.ledger import AffiliateLedger

# Event listeners
from models.listeners import register_all_listeners

__all__ = [
    # Base
    'Base',
    'AuditMixin',

    # Core
    'AffiliateAccount',
    'AffiliateGroup',
    'AffiliateTier',
    'AffiliateProductRate',
    'CommissionRule',
    'MLMConfig',
    'MLM_CONFIG_ID',
    'Referral',
    'AffiliateLedger',

    # Listeners
    'register_all_listeners',
]
