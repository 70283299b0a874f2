"""
Key-value storage interface.

Defines the contract for the local persistent store used by the session
core. It mirrors browser local storage: string keys, string values,
synchronous access.
"""

from abc import ABC, abstractmethod
from typing import Optional


class IKeyValueStorage(ABC):
    """Abstract interface for local key-value persistence."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is absent

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Args:
            key: Storage key
            value: String value

        Raises:
            StorageError: If the store cannot be written
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Raises:
            StorageError: If the store cannot be written
        """
        pass
