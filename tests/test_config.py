# tests/test_config.py
"""
Tests for environment-driven configuration.

Run:
    pytest tests/test_config.py -v
"""
from decimal import Decimal

import pytest

from config import Config, ConfigurationError


class TestConfig:

    def test_defaults_without_env(self):
        Config.reset()
        assert Config.get(Config.HOLDING_PERIOD_DAYS) == 14
        assert Config.get(Config.DEFAULT_COMMISSION_RATE) == Decimal("10")

    def test_initialize_from_env(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_COMMISSION_RATE", "7.5")
        monkeypatch.setenv("ALLOW_SELF_REFERRAL", "yes")
        monkeypatch.setenv("VELOCITY_LIMIT", "3")

        Config.initialize_from_env()

        assert Config.get(Config.DEFAULT_COMMISSION_RATE) == Decimal("7.5")
        assert Config.get(Config.ALLOW_SELF_REFERRAL) is True
        assert Config.get(Config.VELOCITY_LIMIT) == 3

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("HOLDING_PERIOD_DAYS", "two weeks")
        with pytest.raises(ConfigurationError):
            Config.initialize_from_env()

    def test_critical_keys(self):
        Config.set(Config.DATABASE_URL, "")
        with pytest.raises(ConfigurationError):
            Config.validate_critical_keys()

    def test_program_enabled_by_default(self, monkeypatch):
        monkeypatch.delenv("PROGRAM_ENABLED", raising=False)
        Config.initialize_from_env()
        assert Config.get(Config.PROGRAM_ENABLED) is True

    def test_program_disabled_from_env(self, monkeypatch):
        monkeypatch.setenv("PROGRAM_ENABLED", "false")
        Config.initialize_from_env()
        assert Config.get(Config.PROGRAM_ENABLED) is False

    def test_reset_drops_loaded_values(self, monkeypatch):
        """TEST: after reset, get falls back to built-in defaults"""
        monkeypatch.setenv("VELOCITY_LIMIT", "3")
        Config.initialize_from_env()
        Config.reset()
        assert Config.get(Config.VELOCITY_LIMIT) == 10
        assert not hasattr(Config, "_initialized")
