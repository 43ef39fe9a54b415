# models/base.py
"""
Base model and mixins for all database tables.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _get_current_time():
    return datetime.now(timezone.utc)


class AuditMixin:
    createdAt = Column(DateTime, default=_get_current_time, index=True)
    updatedAt = Column(DateTime, default=_get_current_time, onupdate=_get_current_time)


def new_id() -> str:
    """Opaque string primary key."""
    return uuid.uuid4().hex
