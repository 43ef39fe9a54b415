# core/db.py
"""
Engine and session handling for the affiliate engine.

One database per process. The engine is built lazily from
Config.DATABASE_URL; tests and scripts may point it elsewhere with
init_engine().
"""
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import Config
from models.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def _engine_options(database_url: str) -> dict:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}

    options = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        # every connection would otherwise get its own empty database
        options["poolclass"] = StaticPool
    return options


def init_engine(database_url: Optional[str] = None) -> Engine:
    """
    (Re)build the engine and session factory.

    Args:
        database_url: Overrides Config.DATABASE_URL
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    url = database_url or Config.get(Config.DATABASE_URL)
    _engine = create_engine(url, echo=False, **_engine_options(url))
    _SessionFactory = sessionmaker(bind=_engine)

    logger.info(f"Database engine created: {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


def get_session() -> Session:
    """New session bound to the current engine. Caller closes it."""
    if _SessionFactory is None:
        init_engine()
    return _SessionFactory()


@contextmanager
def get_db_session_ctx():
    """
    Transactional scope: commit on success, roll back and re-raise otherwise.

    Usage:
        with get_db_session_ctx() as session:
            CommissionService(session).process_order(order)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Transaction rolled back: {e}")
        raise
    finally:
        session.close()


def setup_database():
    """Create missing tables on the current engine."""
    engine = get_engine()
    Base.metadata.create_all(engine)
    logger.info(f"Database schema ready ({len(Base.metadata.tables)} tables)")


def reset_engine():
    """Dispose the engine; the next call rebuilds it from Config."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
