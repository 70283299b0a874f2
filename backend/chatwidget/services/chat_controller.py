"""
Chat controller.

Holds the state a chat view renders (current session, displayed messages,
pending flag) and wires the session store, backend sync, stream consumer
and feedback service together. One exchange at a time: while an answer is
streaming, further questions are rejected.
"""

from typing import Optional, Union

import httpx

from chatwidget.core.logger import setup_logger
from chatwidget.interfaces.key_value_storage import IKeyValueStorage
from chatwidget.models.chat_session import ChatSession, Message
from chatwidget.models.enums import FeedbackValue
from chatwidget.services.backend_sync import BackendSync
from chatwidget.services.feedback_service import FeedbackService
from chatwidget.services.session_store import SessionStore
from chatwidget.services.stream_consumer import ExchangeResult, StreamConsumer

logger = setup_logger(__name__)


class ChatController:
    """View state for one chat widget."""

    def __init__(
        self,
        store: SessionStore,
        stream_consumer: StreamConsumer,
        backend_sync: BackendSync,
        feedback_service: FeedbackService,
    ):
        self._store = store
        self._consumer = stream_consumer
        self._sync = backend_sync
        self._feedback = feedback_service

        self.company_id: Optional[str] = None
        self.session: Optional[ChatSession] = None
        self.messages: list[Message] = []
        self.pending = False

    @classmethod
    def create(
        cls,
        storage: IKeyValueStorage,
        http_client: httpx.AsyncClient,
        relay_base_url: Optional[str] = None,
    ) -> "ChatController":
        """Build a controller and its collaborators over one storage and HTTP client."""
        store = SessionStore(storage)
        return cls(
            store=store,
            stream_consumer=StreamConsumer(store, http_client, relay_base_url),
            backend_sync=BackendSync(store, http_client, relay_base_url),
            feedback_service=FeedbackService(store, http_client, relay_base_url),
        )

    @property
    def store(self) -> SessionStore:
        return self._store

    def _show(self, session: ChatSession) -> None:
        self.session = session
        self.messages = list(session.messages)

    async def open(self, company_id: str) -> ChatSession:
        """
        Resume the current session of this company or start a new one.

        A resumed session is synced with the backend history afterwards;
        when the sync fails the local messages stay on screen.
        """
        self.company_id = company_id
        self._store.prune_old_sessions()

        existing = self._store.get_current_session()
        if existing is not None and existing.company_id == company_id:
            self._show(existing)
            await self._sync.sync(existing.session_id, company_id)
            refreshed = self._store.get_current_session()
            if refreshed is not None:
                self._show(refreshed)
        else:
            self._show(self._store.create_session(company_id))

        return self.session

    async def send(self, question: str) -> Optional[ExchangeResult]:
        """
        Ask a question in the current session.

        Returns None without any network call when the question is blank,
        no session is open, or an exchange is already pending.
        """
        if not question or not question.strip() or self.session is None:
            return None
        if self.pending:
            logger.warning("Exchange already pending for session %s", self.session.session_id)
            return None

        self.pending = True
        try:
            result = await self._consumer.ask(
                self.session,
                question,
                on_message=self.messages.append,
            )
        finally:
            self.pending = False

        stored = self._store.get_session(result.session_id)
        if stored is not None:
            self.session = stored
        elif result.session_id != self.session.session_id:
            self.session = self.session.model_copy(update={"session_id": result.session_id})
        return result

    async def toggle_feedback(
        self,
        message_index: int,
        feedback: Union[FeedbackValue, str],
    ) -> Optional[FeedbackValue]:
        """Toggle feedback on a displayed message."""
        if self.session is None or not 0 <= message_index < len(self.messages):
            return None

        recorded = await self._feedback.toggle(
            self.session.session_id,
            message_index,
            feedback,
            self.company_id,
        )

        stored = self._store.get_session(self.session.session_id)
        if stored is not None and message_index < len(stored.messages):
            self.messages[message_index] = stored.messages[message_index]
        return recorded

    def new_session(self) -> Optional[ChatSession]:
        """Start an empty session for the current company."""
        if self.company_id is None:
            return None
        self._show(self._store.create_session(self.company_id))
        return self.session

    def list_sessions(self) -> list[ChatSession]:
        if self.company_id is None:
            return []
        return self._store.list_sessions(self.company_id)

    def select_session(self, session_id: str) -> Optional[ChatSession]:
        """Switch to another stored session."""
        if not self._store.set_current_session(session_id):
            return None
        session = self._store.get_session(session_id)
        if session is not None:
            self._show(session)
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session; deleting the open one starts a replacement."""
        deleted = self._store.delete_session(session_id)
        if deleted and self.session is not None and self.session.session_id == session_id:
            self.new_session()
        return deleted
