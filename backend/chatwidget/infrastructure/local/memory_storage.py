"""
In-memory key-value storage.
"""

from typing import Optional

from chatwidget.interfaces.key_value_storage import IKeyValueStorage


class InMemoryKeyValueStorage(IKeyValueStorage):
    """Dict-backed storage for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
