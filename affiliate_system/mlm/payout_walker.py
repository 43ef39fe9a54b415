# affiliate_system/mlm/payout_walker.py
"""
MLM payout walker - distribute a sale's network commission up the sponsor chain.

Pure computation: sponsor lookups are injected, nothing is persisted.
The caller guarantees a single invocation per sale.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional
import logging

from affiliate_system.config.constants import ANOMALY_SPONSOR_CYCLE, CommissionBasis
from affiliate_system.mlm.settings import MLMSettings
from affiliate_system.utils.chain_walker import ChainWalker, SponsorLookup
from affiliate_system.utils.money import fits_money_column, percent_of, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UplinePayout:
    """One level's share of a sale."""
    affiliate_id: str
    level: int
    amount: Decimal
    rate: Decimal
    basis: CommissionBasis

    def to_record(self, source_order_id: Optional[str]) -> Dict[str, Any]:
        """Record handed to the ledger collaborator."""
        return {
            "affiliateId": self.affiliate_id,
            "level": self.level,
            "amount": self.amount,
            "basis": self.basis.value,
            "sourceOrderId": source_order_id,
        }


@dataclass
class UplineDistribution:
    payouts: List[UplinePayout] = field(default_factory=list)
    anomaly: Optional[str] = None
    anomaly_affiliate_id: Optional[str] = None
    skipped_levels: List[int] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((p.amount for p in self.payouts), Decimal("0.00"))

    def __len__(self):
        return len(self.payouts)

    def __iter__(self):
        return iter(self.payouts)


def distribute_upline(
        sale_affiliate_id: str,
        base_amount: Any,
        config: MLMSettings,
        get_sponsor: SponsorLookup,
        is_eligible: Optional[Callable[[str], bool]] = None
) -> UplineDistribution:
    """
    Compute per-level payouts for the sponsors above sale_affiliate_id.

    Args:
        sale_affiliate_id: Affiliate credited with the sale (level 0, not paid here)
        base_amount: Gross sale for SALES_AMOUNT, margin for PROFIT (caller computes)
        config: Network settings
        get_sponsor: affiliate_id -> sponsor id or None
        is_eligible: Optional filter; ineligible sponsors keep their level but get nothing

    Returns:
        UplineDistribution; on a sponsor cycle the payouts computed so far are
        kept and anomaly is set to SPONSOR_CYCLE

    Example:
        rates {1: 10, 2: 5, 3: 2}, chain seller -> A -> B, base 100
        -> [A level 1: 10.00, B level 2: 5.00]
    """
    distribution = UplineDistribution()

    if not config.is_enabled:
        return distribution

    if config.max_levels <= 0:
        logger.debug("MLM enabled with maxLevels=0, nothing to distribute")
        return distribution

    try:
        base = to_decimal(base_amount)
    except InvalidOperation:
        logger.warning(f"Non-numeric MLM base amount {base_amount!r} for {sale_affiliate_id}")
        return distribution

    if not base.is_finite() or base <= 0:
        logger.info(f"MLM base amount {base} for {sale_affiliate_id} is not positive, nothing to distribute")
        return distribution

    def pay_level(sponsor_id: str, level: int) -> bool:
        rate = config.rate_for(level)

        if rate is None:
            logger.warning(f"MLM config has no rate for level {level}, skipping level")
            distribution.skipped_levels.append(level)
            return True

        if rate <= 0:
            return True

        if is_eligible is not None and not is_eligible(sponsor_id):
            logger.debug(f"Sponsor {sponsor_id} at level {level} not eligible, skipping")
            return True

        try:
            amount = percent_of(base, rate)
        except InvalidOperation:
            logger.error(f"Level {level} payout of {rate}% on {base} exceeds decimal precision, skipping")
            return True

        if amount <= 0:
            return True

        if not fits_money_column(amount):
            logger.error(f"Level {level} payout {amount} exceeds the storable maximum, skipping")
            return True

        distribution.payouts.append(UplinePayout(
            affiliate_id=sponsor_id,
            level=level,
            amount=amount,
            rate=rate,
            basis=config.commission_basis,
        ))
        logger.debug(f"Level {level}: {sponsor_id} gets {amount} ({rate}% of {base})")
        return True

    walker = ChainWalker(get_sponsor)
    result = walker.walk_upline(sale_affiliate_id, pay_level, config.max_levels)

    if result.cycle_detected:
        distribution.anomaly = ANOMALY_SPONSOR_CYCLE
        distribution.anomaly_affiliate_id = result.cycle_at
        logger.error(
            f"Sponsor cycle in upline of {sale_affiliate_id} at {result.cycle_at}; "
            f"returning {len(distribution.payouts)} partial payouts"
        )

    return distribution
