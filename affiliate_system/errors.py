# affiliate_system/errors.py
"""
Exception hierarchy for the affiliate engine.

Per-rule and per-level problems are logged and skipped by the engine;
only store-level failures (RuleStoreError) reach the order workflow.
"""


class AffiliateError(Exception):
    """Base class for affiliate engine errors."""
    pass


class ConditionError(AffiliateError, ValueError):
    """Stored rule conditions or action cannot be parsed."""
    pass


class RuleStoreError(AffiliateError):
    """Rule store is unreadable. Fatal for the current order."""
    pass


class RuleValidationError(AffiliateError, ValueError):
    """Admin input for a commission rule is invalid."""

    def __init__(self, message: str, errors: dict = None):
        super().__init__(message)
        self.errors = errors or {}


class RateValidationError(AffiliateError, ValueError):
    """Admin input for a product override, group or tier is invalid."""

    def __init__(self, message: str, errors: dict = None):
        super().__init__(message)
        self.errors = errors or {}


class MLMConfigError(AffiliateError, ValueError):
    """MLM configuration update is invalid."""
    pass


class NetworkError(AffiliateError):
    """Sponsor assignment would break the forest invariant."""
    pass


class LedgerError(AffiliateError):
    """Ledger write rejected."""
    pass
