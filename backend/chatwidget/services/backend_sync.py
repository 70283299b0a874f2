"""
Backend history sync.

Replaces a local session's messages with the canonical history held by the
remote backend. Local-first: any failure leaves the local cache untouched
and nothing is raised to the caller.
"""

from typing import Optional

import httpx

from chatwidget.core.config import get_settings
from chatwidget.core.logger import setup_logger
from chatwidget.models.chat_session import Message
from chatwidget.services.session_store import SessionStore

logger = setup_logger(__name__)


class BackendSync:
    """Pulls session history through the relay's session-messages route."""

    def __init__(
        self,
        store: SessionStore,
        http_client: httpx.AsyncClient,
        relay_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self._store = store
        self._client = http_client
        self._base_url = (relay_base_url or settings.RELAY_BASE_URL).rstrip("/")
        self._timeout = timeout or settings.HISTORY_TIMEOUT_SECONDS

    async def load_messages(self, session_id: str, company_id: str) -> list[Message]:
        """Fetch canonical messages; empty list on any failure."""
        try:
            response = await self._client.get(
                f"{self._base_url}/api/session-messages",
                params={"session_id": session_id, "company_id": company_id},
                timeout=self._timeout,
            )
            if response.status_code >= 400:
                logger.warning(
                    "History fetch for %s failed with status %s",
                    session_id,
                    response.status_code,
                )
                return []
            data = response.json()
            items = data.get("messages") if isinstance(data, dict) else None
            return [Message.model_validate(item) for item in items or []]
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("History fetch for %s failed: %s", session_id, e)
            return []

    async def sync(self, session_id: str, company_id: str) -> None:
        """Replace local messages with the backend history when it is non-empty."""
        messages = await self.load_messages(session_id, company_id)
        if not messages:
            logger.info("No backend history for %s, keeping local cache", session_id)
            return
        if self._store.replace_messages(session_id, messages):
            logger.info("Session %s synced with backend (%s messages)", session_id, len(messages))
