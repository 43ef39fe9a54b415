"""
Multi-level network payouts.
"""
from affiliate_system.mlm.settings import MLMSettings
from affiliate_system.mlm.payout_walker import (
    UplineDistribution,
    UplinePayout,
    distribute_upline,
)

__all__ = [
    'MLMSettings',
    'UplineDistribution',
    'UplinePayout',
    'distribute_upline',
]
