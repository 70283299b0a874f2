"""
Identifier generation and the persisted per-browser user id.
"""

import secrets
import string
import time
from datetime import datetime, timezone

from chatwidget.core.exceptions import StorageError
from chatwidget.core.logger import setup_logger
from chatwidget.interfaces.key_value_storage import IKeyValueStorage

logger = setup_logger(__name__)

EXTERNAL_USER_ID_KEY = "chatbot_external_user_id"

_BASE36 = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def generate_id(prefix: str) -> str:
    """Return `<prefix>_<epoch ms>_<9 random base-36 chars>`."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}_{time.time_ns() // 1_000_000}_{suffix}"


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_or_create_user_id(storage: IKeyValueStorage) -> str:
    """
    Return the persisted external user id, creating it on first use.

    If storage is unavailable a fresh id is returned without being persisted.
    """
    try:
        stored = storage.get_item(EXTERNAL_USER_ID_KEY)
        if stored:
            return stored
    except StorageError as e:
        logger.error("Failed to read external user id: %s", e)
        return generate_id("user")

    user_id = generate_id("user")
    try:
        storage.set_item(EXTERNAL_USER_ID_KEY, user_id)
    except StorageError as e:
        logger.error("Failed to persist external user id: %s", e)
    return user_id
