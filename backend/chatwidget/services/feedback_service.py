"""
Message feedback (like / dislike).

Feedback is recorded locally first; submission to the relay is best effort
and never surfaces an error to the user.
"""

from typing import Optional, Union

import httpx

from chatwidget.core.config import get_settings
from chatwidget.core.logger import setup_logger
from chatwidget.models.enums import FeedbackValue
from chatwidget.models.relay import FeedbackRequest
from chatwidget.services.session_store import SessionStore

logger = setup_logger(__name__)


class FeedbackService:
    """Toggles feedback in the session store and reports it to the relay."""

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
        self._timeout = timeout or settings.FEEDBACK_TIMEOUT_SECONDS

    async def toggle(
        self,
        session_id: str,
        message_index: int,
        feedback: Union[FeedbackValue, str],
        company_id: Optional[str],
    ) -> Optional[FeedbackValue]:
        """
        Apply `feedback` to a message, clearing it if it was already set.

        Returns the feedback now recorded. Only a newly set value on a
        message carrying a message id is sent to the relay.
        """
        session = self._store.get_session(session_id)
        if session is None or not 0 <= message_index < len(session.messages):
            return None

        message = session.messages[message_index]
        recorded = self._store.update_feedback(session_id, message_index, feedback)
        if recorded is not None and message.message_id and company_id:
            await self.submit(session_id, message.message_id, recorded, company_id)
        return recorded

    async def submit(
        self,
        session_id: str,
        message_id: str,
        feedback: FeedbackValue,
        company_id: str,
    ) -> bool:
        """Send feedback to the relay. Returns False on any failure."""
        body = FeedbackRequest(
            session_id=session_id,
            message_id=message_id,
            feedback=FeedbackValue(feedback).value,
            company_id=company_id,
        )
        try:
            response = await self._client.post(
                f"{self._base_url}/api/feedback",
                json=body.model_dump(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Feedback for %s kept locally, relay unreachable: %s", message_id, e)
            return False

        if response.status_code >= 400:
            logger.warning(
                "Feedback for %s kept locally, relay answered %s",
                message_id,
                response.status_code,
            )
            return False

        logger.info("Feedback %s sent for message %s", body.feedback, message_id)
        return True
