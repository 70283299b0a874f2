"""
SQLite implementation of the key-value storage.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from chatwidget.core.exceptions import StorageError
from chatwidget.infrastructure.local.database import (
    KeyValueItemORM,
    get_engine,
    get_session_factory,
    init_db,
)
from chatwidget.interfaces.key_value_storage import IKeyValueStorage


class SqliteKeyValueStorage(IKeyValueStorage):
    """SQLite implementation of key-value storage."""

    def __init__(self, database_url: Optional[str] = None, session_factory=None):
        if session_factory is None:
            engine = get_engine(database_url)
            init_db(engine)
            session_factory = get_session_factory(engine)
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        """Read a value."""
        try:
            with self._session_factory() as session:
                orm = session.execute(
                    select(KeyValueItemORM).where(KeyValueItemORM.key == key)
                ).scalar_one_or_none()
                return orm.value if orm else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read key {key}: {e}")

    def set_item(self, key: str, value: str) -> None:
        """Write a value."""
        try:
            with self._session_factory() as session:
                orm = session.get(KeyValueItemORM, key)
                if orm:
                    orm.value = value
                    orm.updated_at = datetime.utcnow()
                else:
                    session.add(KeyValueItemORM(key=key, value=value))
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write key {key}: {e}")

    def remove_item(self, key: str) -> None:
        """Remove a key."""
        try:
            with self._session_factory() as session:
                orm = session.get(KeyValueItemORM, key)
                if orm:
                    session.delete(orm)
                    session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove key {key}: {e}")
