"""
Database-backed affiliate services.
"""
from affiliate_system.services.commission_service import CommissionService, OrderCompletion, OrderItem
from affiliate_system.services.fraud_service import FraudService
from affiliate_system.services.ledger_service import LedgerService
from affiliate_system.services.mlm_config_service import MlmConfigService
from affiliate_system.services.network_service import NetworkService
from affiliate_system.services.rate_service import RateChoice, RateService
from affiliate_system.services.rule_service import RuleService

__all__ = [
    'CommissionService',
    'OrderCompletion',
    'OrderItem',
    'FraudService',
    'LedgerService',
    'MlmConfigService',
    'NetworkService',
    'RateChoice',
    'RateService',
    'RuleService',
]
