"""Abstract interfaces for infrastructure abstraction."""

from chatwidget.interfaces.key_value_storage import IKeyValueStorage

__all__ = [
    "IKeyValueStorage",
]
