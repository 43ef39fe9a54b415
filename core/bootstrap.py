# core/bootstrap.py
"""
Process startup for scripts and workers embedding the engine.

Order matters: configuration first (it carries LOG_LEVEL and
DATABASE_URL), then logging, then the schema and ORM listeners.
"""
import logging
import sys

from config import Config
from core.db import setup_database
from models import register_all_listeners

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = None):
    logging.basicConfig(
        level=getattr(logging, (level or Config.get(Config.LOG_LEVEL)).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def initialize(log_level: str = None):
    """
    Load .env, configure logging, validate keys, create tables, register listeners.

    Args:
        log_level: Overrides LOG_LEVEL (scripts pass WARNING to keep output clean)

    Raises:
        ConfigurationError: bad or missing configuration
    """
    Config.initialize_from_env()
    configure_logging(log_level)

    logger.info("=" * 60)
    logger.info("AFFILIATE ENGINE INITIALIZATION")
    logger.info("=" * 60)

    Config.validate_critical_keys()
    logger.info("✓ Configuration validated")

    setup_database()
    logger.info("✓ Database ready")

    register_all_listeners()
    logger.info("✓ ORM listeners registered")
