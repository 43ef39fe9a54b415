# config.py
"""
Configuration management for the affiliate commission engine.
Loads from .env, validates critical keys.
"""
import os
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Configuration error exception."""
    pass


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """
    Configuration manager with static and dynamic values.

    Usage:
        # Load from .env
        Config.initialize_from_env()

        # Get value
        rate = Config.get(Config.DEFAULT_COMMISSION_RATE)

        # Override at runtime (tests, admin tooling)
        Config.set(Config.ALLOW_SELF_REFERRAL, True)
    """

    # ═══════════════════════════════════════════════════════════════════════
    # CONFIGURATION KEYS
    # ═══════════════════════════════════════════════════════════════════════

    # Database
    DATABASE_URL = "DATABASE_URL"

    # Logging
    LOG_LEVEL = "LOG_LEVEL"

    # Commission program
    PROGRAM_ENABLED = "PROGRAM_ENABLED"
    DEFAULT_COMMISSION_RATE = "DEFAULT_COMMISSION_RATE"
    HOLDING_PERIOD_DAYS = "HOLDING_PERIOD_DAYS"
    ZERO_VALUE_REFERRALS = "ZERO_VALUE_REFERRALS"

    # Fraud checks
    ALLOW_SELF_REFERRAL = "ALLOW_SELF_REFERRAL"
    VELOCITY_LIMIT = "VELOCITY_LIMIT"
    VELOCITY_WINDOW_MINUTES = "VELOCITY_WINDOW_MINUTES"

    # ═══════════════════════════════════════════════════════════════════════
    # CRITICAL KEYS (must be present)
    # ═══════════════════════════════════════════════════════════════════════

    CRITICAL_KEYS = [
        DATABASE_URL,
    ]

    # ═══════════════════════════════════════════════════════════════════════
    # DEFAULTS
    # ═══════════════════════════════════════════════════════════════════════

    DEFAULTS: Dict[str, Any] = {
        DATABASE_URL: "sqlite:///affiliate.db",
        LOG_LEVEL: "INFO",
        PROGRAM_ENABLED: True,
        DEFAULT_COMMISSION_RATE: Decimal("10"),
        HOLDING_PERIOD_DAYS: 14,
        ZERO_VALUE_REFERRALS: False,
        ALLOW_SELF_REFERRAL: False,
        VELOCITY_LIMIT: 10,
        VELOCITY_WINDOW_MINUTES: 5,
    }

    # ═══════════════════════════════════════════════════════════════════════
    # STORAGE
    # ═══════════════════════════════════════════════════════════════════════

    _config: Dict[str, Any] = {}

    # ═══════════════════════════════════════════════════════════════════════
    # METHODS
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    def initialize_from_env(cls) -> None:
        """
        Load configuration from .env file and process environment.

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        load_dotenv()

        logger.info("Loading configuration from environment...")

        try:
            # Database
            cls._config[cls.DATABASE_URL] = os.getenv(
                "DATABASE_URL",
                cls.DEFAULTS[cls.DATABASE_URL]
            )

            # Logging
            cls._config[cls.LOG_LEVEL] = os.getenv("LOG_LEVEL", "INFO").upper()

            # Commission program
            cls._config[cls.PROGRAM_ENABLED] = _env_bool("PROGRAM_ENABLED", "true")
            cls._config[cls.DEFAULT_COMMISSION_RATE] = Decimal(
                os.getenv("DEFAULT_COMMISSION_RATE", "10")
            )
            cls._config[cls.HOLDING_PERIOD_DAYS] = int(
                os.getenv("HOLDING_PERIOD_DAYS", "14")
            )
            cls._config[cls.ZERO_VALUE_REFERRALS] = _env_bool("ZERO_VALUE_REFERRALS")

            # Fraud checks
            cls._config[cls.ALLOW_SELF_REFERRAL] = _env_bool("ALLOW_SELF_REFERRAL")
            cls._config[cls.VELOCITY_LIMIT] = int(os.getenv("VELOCITY_LIMIT", "10"))
            cls._config[cls.VELOCITY_WINDOW_MINUTES] = int(
                os.getenv("VELOCITY_WINDOW_MINUTES", "5")
            )

            logger.info("Configuration loaded from environment successfully")

        except (ValueError, InvalidOperation) as e:
            logger.error(f"Failed to load configuration: {e}")
            raise ConfigurationError(f"Configuration loading failed: {e}")

    @classmethod
    def validate_critical_keys(cls) -> None:
        """
        Validate that all critical configuration keys are present.

        Raises:
            ConfigurationError: If any critical key is missing
        """
        missing = [key for key in cls.CRITICAL_KEYS if not cls.get(key)]

        if missing:
            error_msg = f"Missing critical configuration keys: {', '.join(missing)}"
            logger.critical(error_msg)
            raise ConfigurationError(error_msg)

        logger.info("All critical configuration keys validated")

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Falls back to the built-in default for known keys when the
        configuration has not been loaded.
        """
        if key in cls._config:
            return cls._config[key]
        if default is not None:
            return default
        return cls.DEFAULTS.get(key)

    @classmethod
    def set(cls, key: str, value: Any, source: str = "runtime") -> None:
        """
        Set configuration value (for dynamic updates).

        Args:
            key: Configuration key
            value: New value
            source: Source of the update (for logging)
        """
        cls._config[key] = value
        logger.debug(f"Config updated: {key} = {value} (source: {source})")

    @classmethod
    def get_all(cls) -> Dict[str, Any]:
        """Get a copy of all configuration values."""
        merged = dict(cls.DEFAULTS)
        merged.update(cls._config)
        return merged

    @classmethod
    def reset(cls) -> None:
        """Drop all loaded values. Used by tests."""
        cls._config = {}
