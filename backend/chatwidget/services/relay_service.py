"""
Upstream client for the remote question-answering backend.

Used by the relay routes and the Messenger adapter. Requests are forwarded
as-is; there is no retry.
"""

from typing import Any, Optional

import httpx

from chatwidget.core.config import Settings, get_settings
from chatwidget.core.exceptions import BackendError
from chatwidget.core.logger import setup_logger
from chatwidget.models.relay import AskRequest, BackendHistoryMessage, FeedbackRequest

logger = setup_logger(__name__)


class RelayService:
    """Talks to the ask, history and feedback endpoints of the backend."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Optional[Settings] = None):
        self._client = http_client
        self._settings = settings or get_settings()

    @property
    def api_url(self) -> str:
        return self._settings.BACKEND_API_URL.rstrip("/")

    def build_ask_payload(self, request: AskRequest) -> dict[str, Any]:
        """Fill tenant and language defaults."""
        return {
            "question": request.question,
            "company_id": request.company_id or self._settings.DEFAULT_COMPANY_ID,
            "session_id": request.session_id,
            "external_user_id": request.external_user_id,
            "langue": request.langue or self._settings.DEFAULT_LANGUAGE,
        }

    async def open_ask_stream(self, request: AskRequest) -> httpx.Response:
        """
        Start a streaming ask call.

        The returned response is open; the caller must `aclose()` it.
        """
        payload = self.build_ask_payload(request)
        logger.info(
            "Forwarding question for session %s (langue=%s)",
            payload["session_id"],
            payload["langue"],
        )
        upstream = self._client.build_request(
            "POST",
            f"{self.api_url}/ask_public/",
            json=payload,
            headers={"Accept": "text/event-stream"},
            timeout=self._settings.ASK_TIMEOUT_SECONDS,
        )
        return await self._client.send(upstream, stream=True)

    async def ask(self, request: AskRequest) -> str:
        """
        Non-streaming ask; returns the answer text.

        Raises:
            BackendError: On non-2xx answers
        """
        response = await self._client.post(
            f"{self.api_url}/ask_public/",
            json=self.build_ask_payload(request),
            timeout=self._settings.ASK_TIMEOUT_SECONDS,
        )
        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}
        if response.status_code >= 400:
            raise BackendError(
                f"Backend error {response.status_code}: {data}",
                status_code=response.status_code,
                details=data,
            )
        answer = data.get("answer") if isinstance(data, dict) else None
        return answer or "Désolé, je n'ai pas de réponse pour le moment."

    async def fetch_history(self, session_id: str) -> list[BackendHistoryMessage]:
        """
        Canonical message list of a session.

        Raises:
            BackendError: On non-2xx answers
        """
        response = await self._client.get(
            f"{self.api_url}/messages_public/{session_id}",
            timeout=self._settings.HISTORY_TIMEOUT_SECONDS,
        )
        if response.status_code >= 400:
            raise BackendError(
                "Erreur du backend",
                status_code=response.status_code,
                details=response.reason_phrase,
            )
        data = response.json()
        if not isinstance(data, list):
            raise BackendError("Unexpected history payload", status_code=502, details=data)
        return [BackendHistoryMessage.model_validate(item) for item in data]

    async def submit_feedback(self, request: FeedbackRequest) -> Any:
        """
        Forward feedback to the RAG backend.

        Raises:
            BackendError: On non-2xx answers
            httpx.HTTPError: When the backend cannot be reached
        """
        response = await self._client.post(
            f"{self._settings.RAG_BACKEND_URL.rstrip('/')}/feedback",
            json=request.model_dump(),
            timeout=self._settings.FEEDBACK_TIMEOUT_SECONDS,
        )
        if response.status_code >= 400:
            raise BackendError(
                "Feedback rejected by backend",
                status_code=response.status_code,
                details=response.reason_phrase,
            )
        try:
            return response.json()
        except ValueError:
            return None
