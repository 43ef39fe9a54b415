# affiliate_system/mlm/settings.py
"""
MLM network settings value object.

Loaded from the MLMConfig singleton row by MlmConfigService and passed
explicitly into distribute_upline.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping
import logging

from affiliate_system.config.constants import CommissionBasis
from affiliate_system.utils.money import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MLMSettings:
    is_enabled: bool = False
    max_levels: int = 0
    commission_basis: CommissionBasis = CommissionBasis.SALES_AMOUNT
    level_rates: Dict[int, Decimal] = field(default_factory=dict)

    @classmethod
    def disabled(cls) -> "MLMSettings":
        return cls()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MLMSettings":
        """
        Build settings from a camelCase mapping (model row or admin payload).

        Bad level-rate entries are logged and dropped rather than failing the
        whole configuration; the walker then skips those levels.

        Example:
            MLMSettings.from_dict({
                "isEnabled": True,
                "maxLevels": 3,
                "commissionBasis": "SALES_AMOUNT",
                "levelRates": {"1": 10, "2": 5, "3": 2},
            })
        """
        try:
            max_levels = max(int(raw.get("maxLevels") or 0), 0)
        except (TypeError, ValueError):
            logger.warning(f"Invalid maxLevels {raw.get('maxLevels')!r}, MLM walk disabled")
            max_levels = 0

        basis_raw = raw.get("commissionBasis") or CommissionBasis.SALES_AMOUNT.value
        try:
            basis = CommissionBasis(str(basis_raw).upper())
        except ValueError:
            logger.warning(f"Unknown commissionBasis {basis_raw!r}, using SALES_AMOUNT")
            basis = CommissionBasis.SALES_AMOUNT

        return cls(
            is_enabled=bool(raw.get("isEnabled")),
            max_levels=max_levels,
            commission_basis=basis,
            level_rates=cls._parse_level_rates(raw.get("levelRates") or {}),
        )

    @classmethod
    def from_model(cls, model) -> "MLMSettings":
        return cls.from_dict({
            "isEnabled": model.isEnabled,
            "maxLevels": model.maxLevels,
            "commissionBasis": model.commissionBasis,
            "levelRates": model.levelRates,
        })

    @staticmethod
    def _parse_level_rates(raw: Any) -> Dict[int, Decimal]:
        if not isinstance(raw, Mapping):
            logger.warning(f"levelRates must be an object, got {type(raw).__name__}")
            return {}

        rates = {}
        for key, value in raw.items():
            try:
                level = int(key)
                rate = to_decimal(value)
            except (TypeError, ValueError, InvalidOperation):
                logger.warning(f"Dropping invalid level rate {key!r}: {value!r}")
                continue
            if level < 1 or not rate.is_finite():
                logger.warning(f"Dropping invalid level rate {key!r}: {value!r}")
                continue
            rates[level] = rate
        return rates

    def missing_levels(self) -> List[int]:
        """Levels 1..max_levels without a configured rate."""
        return [lvl for lvl in range(1, self.max_levels + 1) if lvl not in self.level_rates]

    def rate_for(self, level: int):
        return self.level_rates.get(level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isEnabled": self.is_enabled,
            "maxLevels": self.max_levels,
            "commissionBasis": self.commission_basis.value,
            "levelRates": {str(k): str(v) for k, v in sorted(self.level_rates.items())},
        }
