"""
Session store.

Keeps every chat session of this browser profile in the key-value storage as
one JSON array, plus a pointer to the current session. All operations
degrade to "no sessions" / no-op when the storage is corrupt or unavailable;
faults are logged, never raised to the caller.
"""

import json
from datetime import datetime, timezone
from typing import Optional, Union

from chatwidget.core.config import get_settings
from chatwidget.core.exceptions import StorageError
from chatwidget.core.logger import setup_logger
from chatwidget.interfaces.key_value_storage import IKeyValueStorage
from chatwidget.models.chat_session import ChatSession, Message
from chatwidget.models.enums import FeedbackValue
from chatwidget.services.identity_service import (
    generate_id,
    get_or_create_user_id,
    utc_now_iso,
)

logger = setup_logger(__name__)

SESSIONS_KEY = "chatbot_sessions"
CURRENT_SESSION_KEY = "chatbot_current_session"

# Storage adapters raise StorageError; corrupt payloads surface as ValueError
# (json.JSONDecodeError, pydantic.ValidationError).
_STORAGE_FAULTS = (StorageError, OSError, ValueError, TypeError)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _created_at_key(session: ChatSession) -> datetime:
    try:
        parsed = datetime.fromisoformat(session.created_at.replace("Z", "+00:00"))
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_session_title(now: Optional[datetime] = None) -> str:
    """Default title from local date and time."""
    now = now or datetime.now()
    return f"Conversation du {now:%d/%m/%Y} à {now:%H:%M:%S}"


class SessionStore:
    """Chat sessions persisted in local key-value storage."""

    def __init__(self, storage: IKeyValueStorage, max_sessions: Optional[int] = None):
        self._storage = storage
        self._max_sessions = max_sessions or get_settings().MAX_STORED_SESSIONS

    @property
    def storage(self) -> IKeyValueStorage:
        return self._storage

    # ===========================================
    # Storage access
    # ===========================================

    def _load(self) -> list[ChatSession]:
        try:
            raw = self._storage.get_item(SESSIONS_KEY)
            if not raw:
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("session mapping is not a list")
            return [ChatSession.model_validate(item) for item in data]
        except _STORAGE_FAULTS as e:
            logger.error("Failed to read sessions, treating store as empty: %s", e)
            return []

    def _write(self, sessions: list[ChatSession]) -> bool:
        try:
            payload = json.dumps([s.to_storage() for s in sessions], ensure_ascii=False)
            self._storage.set_item(SESSIONS_KEY, payload)
            return True
        except _STORAGE_FAULTS as e:
            logger.error("Failed to write sessions: %s", e)
            return False

    def _current_id(self) -> Optional[str]:
        try:
            return self._storage.get_item(CURRENT_SESSION_KEY) or None
        except _STORAGE_FAULTS as e:
            logger.error("Failed to read current session pointer: %s", e)
            return None

    def _set_current_id(self, session_id: str) -> None:
        try:
            self._storage.set_item(CURRENT_SESSION_KEY, session_id)
        except _STORAGE_FAULTS as e:
            logger.error("Failed to write current session pointer: %s", e)

    def _clear_current_id(self) -> None:
        try:
            self._storage.remove_item(CURRENT_SESSION_KEY)
        except _STORAGE_FAULTS as e:
            logger.error("Failed to clear current session pointer: %s", e)

    @staticmethod
    def _index_of(sessions: list[ChatSession], session_id: str) -> Optional[int]:
        for index, session in enumerate(sessions):
            if session.session_id == session_id:
                return index
        return None

    # ===========================================
    # Queries
    # ===========================================

    def get_all_sessions(self) -> list[ChatSession]:
        """All stored sessions in storage order."""
        return self._load()

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        sessions = self._load()
        index = self._index_of(sessions, session_id)
        return sessions[index] if index is not None else None

    def get_current_session(self) -> Optional[ChatSession]:
        """
        Session referenced by the current pointer.

        Returns None when no pointer is set or when it points to a session
        that no longer exists.
        """
        current_id = self._current_id()
        if not current_id:
            return None
        return self.get_session(current_id)

    def list_sessions(self, company_id: str) -> list[ChatSession]:
        """Sessions of one company, newest first."""
        sessions = [s for s in self._load() if s.company_id == company_id]
        return sorted(sessions, key=_created_at_key, reverse=True)

    # ===========================================
    # Mutations
    # ===========================================

    def create_session(self, company_id: str) -> ChatSession:
        """Create, persist and select a new empty session."""
        session = ChatSession(
            session_id=generate_id("session"),
            company_id=company_id,
            external_user_id=get_or_create_user_id(self._storage),
            title=build_session_title(),
            created_at=utc_now_iso(),
            messages=[],
        )
        self.save_session(session)
        logger.info("Created session %s for company %s", session.session_id, company_id)
        return session

    def save_session(self, session: ChatSession) -> None:
        """Insert or replace a session and mark it as current."""
        sessions = self._load()
        index = self._index_of(sessions, session.session_id)
        if index is None:
            sessions.append(session)
        else:
            sessions[index] = session
        if self._write(sessions):
            self._set_current_id(session.session_id)

    def set_current_session(self, session_id: str) -> bool:
        """Point the current session at an existing session."""
        if self.get_session(session_id) is None:
            logger.warning("Cannot select unknown session %s", session_id)
            return False
        self._set_current_id(session_id)
        return True

    def append_message(self, session_id: str, message: Message) -> bool:
        """Append a message at the end of a session."""
        sessions = self._load()
        index = self._index_of(sessions, session_id)
        if index is None:
            logger.warning("Cannot append message: session %s not found", session_id)
            return False
        sessions[index].messages.append(message)
        return self._write(sessions)

    def replace_messages(self, session_id: str, messages: list[Message]) -> bool:
        """Replace the whole message list of a session."""
        sessions = self._load()
        index = self._index_of(sessions, session_id)
        if index is None:
            logger.warning("Cannot replace messages: session %s not found", session_id)
            return False
        sessions[index].messages = list(messages)
        return self._write(sessions)

    def rename_session(self, old_id: str, new_id: str) -> bool:
        """
        Give a session its backend-assigned id.

        The mapping is written once with the new id, then the current pointer
        follows if it referenced the old id. A stale entry already holding
        `new_id` is dropped so ids stay unique.
        """
        if old_id == new_id:
            return True

        sessions = self._load()
        index = self._index_of(sessions, old_id)
        if index is None:
            logger.warning("Cannot rename: session %s not found", old_id)
            return False

        target = sessions[index]
        if self._index_of(sessions, new_id) is not None:
            logger.warning("Session %s already exists, replacing it with %s", new_id, old_id)
        sessions = [s for s in sessions if s is target or s.session_id != new_id]
        target.session_id = new_id

        if not self._write(sessions):
            return False
        if self._current_id() == old_id:
            self._set_current_id(new_id)
        logger.info("Renamed session %s -> %s", old_id, new_id)
        return True

    def update_feedback(
        self,
        session_id: str,
        message_index: int,
        feedback: Optional[Union[FeedbackValue, str]],
    ) -> Optional[FeedbackValue]:
        """
        Toggle feedback on one message.

        Setting the value already recorded clears it, as does None.
        Returns the feedback now recorded (None when cleared or on no-op).
        """
        try:
            requested = FeedbackValue(feedback) if feedback is not None else None
        except ValueError:
            logger.warning("Ignoring unknown feedback value %r for session %s", feedback, session_id)
            return None

        sessions = self._load()
        index = self._index_of(sessions, session_id)
        if index is None:
            logger.warning("Cannot update feedback: session %s not found", session_id)
            return None

        messages = sessions[index].messages
        if message_index < 0 or message_index >= len(messages):
            logger.warning(
                "Cannot update feedback: index %s out of range for session %s",
                message_index,
                session_id,
            )
            return None

        message = messages[message_index]
        if requested is not None and message.user_feedback == requested.value:
            requested = None

        if requested is None:
            message.user_feedback = None
            message.feedback_timestamp = None
        else:
            message.user_feedback = requested.value
            message.feedback_timestamp = utc_now_iso()

        if not self._write(sessions):
            return None
        return requested

    def delete_session(self, session_id: str) -> bool:
        """Remove a session; clears the current pointer if it referenced it."""
        sessions = self._load()
        remaining = [s for s in sessions if s.session_id != session_id]
        if len(remaining) == len(sessions):
            return False
        if not self._write(remaining):
            return False
        if self._current_id() == session_id:
            self._clear_current_id()
        return True

    def prune_old_sessions(self, keep: Optional[int] = None) -> int:
        """
        Keep only the `keep` most recently created sessions.

        Survivors stay in storage order. Returns the number of sessions removed.
        """
        keep = self._max_sessions if keep is None else keep
        sessions = self._load()
        if len(sessions) <= keep:
            return 0

        newest = sorted(sessions, key=_created_at_key, reverse=True)[:keep]
        kept_ids = {s.session_id for s in newest}
        survivors = [s for s in sessions if s.session_id in kept_ids]
        if not self._write(survivors):
            return 0

        current_id = self._current_id()
        if current_id and current_id not in kept_ids:
            self._clear_current_id()

        removed = len(sessions) - len(survivors)
        logger.info("Pruned %s old sessions", removed)
        return removed
