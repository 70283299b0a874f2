"""
SQLite database configuration and ORM models.

Backs the key-value storage with a single table.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from chatwidget.core.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class KeyValueItemORM(Base):
    """One storage key and its string value."""

    __tablename__ = "key_value_items"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Get engine instance."""
    settings = get_settings()
    return create_engine(database_url or settings.SESSION_DATABASE_URL, echo=False)


def get_session_factory(engine: Optional[Engine] = None):
    """Get session factory."""
    return sessionmaker(engine or get_engine(), expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(engine)
