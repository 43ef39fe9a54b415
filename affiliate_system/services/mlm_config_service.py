# affiliate_system/services/mlm_config_service.py
"""
MLM configuration service - singleton network settings row.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict
import logging

from sqlalchemy.orm import Session

from models.mlm_config import MLMConfig, MLM_CONFIG_ID
from affiliate_system.config.constants import CommissionBasis, MAX_LEVEL_RATE, MAX_MLM_LEVELS
from affiliate_system.errors import MLMConfigError
from affiliate_system.mlm.settings import MLMSettings
from affiliate_system.utils.money import to_decimal

logger = logging.getLogger(__name__)


class MlmConfigService:
    """Read and update the network payout settings."""

    def __init__(self, session: Session):
        self.session = session

    def get_mlm_config(self) -> MLMSettings:
        """
        Current settings; a disabled default when the row does not exist.

        Missing level rates are logged here and skipped later by the walker.
        """
        row = self.session.query(MLMConfig).filter_by(configID=MLM_CONFIG_ID).first()
        if not row:
            logger.debug("No MLM config row, network payouts disabled")
            return MLMSettings.disabled()

        settings = MLMSettings.from_model(row)

        if settings.is_enabled:
            missing = settings.missing_levels()
            if missing:
                logger.warning(f"MLM config missing rates for levels {missing}")

        return settings

    def update_mlm_config(self, data: Dict[str, Any]) -> MLMSettings:
        """
        Validate and store network settings.

        Args:
            data: {"isEnabled", "maxLevels", "commissionBasis", "levelRates"}

        Returns:
            Stored settings

        Raises:
            MLMConfigError: validation failed
        """
        try:
            max_levels = int(data.get("maxLevels"))
        except (TypeError, ValueError):
            raise MLMConfigError(f"maxLevels must be an integer, got {data.get('maxLevels')!r}")

        if not 0 <= max_levels <= MAX_MLM_LEVELS:
            raise MLMConfigError(f"maxLevels must be between 0 and {MAX_MLM_LEVELS}")

        try:
            basis = CommissionBasis(str(data.get("commissionBasis", "")).upper())
        except ValueError:
            raise MLMConfigError(f"Unknown commissionBasis {data.get('commissionBasis')!r}")

        raw_rates = data.get("levelRates") or {}
        if not isinstance(raw_rates, dict):
            raise MLMConfigError("levelRates must be an object")

        rates: Dict[int, Decimal] = {}
        for key, value in raw_rates.items():
            try:
                level = int(key)
                rate = to_decimal(value)
            except (TypeError, ValueError, InvalidOperation):
                raise MLMConfigError(f"Invalid rate for level {key!r}: {value!r}")

            if level in rates:
                raise MLMConfigError(f"Duplicate rate for level {level}")
            if level < 1:
                raise MLMConfigError(f"Invalid level {key!r}")
            if level > max_levels:
                logger.warning(f"Dropping rate for level {level} (> maxLevels {max_levels})")
                continue
            if not rate.is_finite() or rate < 0 or rate > MAX_LEVEL_RATE:
                raise MLMConfigError(f"Rate for level {level} must be between 0 and {MAX_LEVEL_RATE}")
            rates[level] = rate

        missing = [lvl for lvl in range(1, max_levels + 1) if lvl not in rates]
        if missing:
            raise MLMConfigError(f"Missing rates for levels {missing}")

        settings = MLMSettings(
            is_enabled=bool(data.get("isEnabled")),
            max_levels=max_levels,
            commission_basis=basis,
            level_rates=rates,
        )
        stored = settings.to_dict()

        row = self.session.query(MLMConfig).filter_by(configID=MLM_CONFIG_ID).first()
        if not row:
            row = MLMConfig(configID=MLM_CONFIG_ID)
            self.session.add(row)

        row.isEnabled = stored["isEnabled"]
        row.maxLevels = stored["maxLevels"]
        row.commissionBasis = stored["commissionBasis"]
        row.levelRates = stored["levelRates"]

        self.session.flush()
        logger.info(
            f"MLM config saved: enabled={settings.is_enabled}, levels={max_levels}, "
            f"basis={basis.value}"
        )
        return settings
