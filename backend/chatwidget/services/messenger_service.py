"""
Facebook Messenger adapter.

Relays page messages to the question-answering backend and sends the answer
back through the Graph API. Webhook deliveries are signature-checked,
throttled per sender and de-duplicated by message id.
"""

import asyncio
import hashlib
import hmac
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

from chatwidget.core.config import Settings, get_settings
from chatwidget.core.exceptions import BackendError
from chatwidget.core.logger import setup_logger
from chatwidget.models.enums import SenderAction
from chatwidget.models.relay import AskRequest
from chatwidget.services.expiring_cache import ExpiringCache
from chatwidget.services.language_detector import detect_language
from chatwidget.services.relay_service import RelayService

logger = setup_logger(__name__)

GET_STARTED_PAYLOAD = "GET_STARTED"

GREETING_TEXT = (
    "Bonjour ! Je suis votre assistant virtuel. Posez-moi votre question "
    "et je ferai de mon mieux pour vous aider. 🤖"
)
EMPTY_ANSWER_TEXT = "Désolé, je n'ai pas compris."
OVERLOADED_ANSWER_TEXT = (
    "Je suis temporairement surchargé. Voici une réponse de base : Je suis votre "
    "assistant virtuel. Comment puis-je vous aider aujourd'hui ? 🤖"
)
BUSY_ERROR_TEXT = "Désolé, je suis temporairement surchargé. Réessayez dans quelques minutes. 🤖"
SERVER_ERROR_TEXT = "Oups, un souci côté serveur. Réessayez dans un instant svp. 🔧"
GENERIC_ERROR_TEXT = "Désolé, une erreur inattendue s'est produite. Réessayez plus tard. 😔"


def verify_signature(app_secret: str, raw_body: bytes, signature_header: Optional[str]) -> bool:
    """Check the `X-Hub-Signature-256` header against the raw request body."""
    if not app_secret or not signature_header:
        return False
    expected = "sha256=" + hmac.new(app_secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header)


@dataclass
class MessengerCaches:
    """Per-process delivery state shared by all webhook requests."""

    processed: ExpiringCache
    throttled: ExpiringCache

    @classmethod
    def from_settings(cls, settings: Settings) -> "MessengerCaches":
        return cls(
            processed=ExpiringCache(settings.MESSENGER_DEDUP_TTL_SECONDS),
            throttled=ExpiringCache(settings.MESSENGER_THROTTLE_SECONDS),
        )

    def sweep(self) -> None:
        self.processed.sweep()
        self.throttled.sweep()


class GraphApiClient:
    """Minimal Send API client."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Optional[Settings] = None):
        self._client = http_client
        self._settings = settings or get_settings()

    async def post_message(self, body: dict[str, Any]) -> httpx.Response:
        return await self._client.post(
            f"{self._settings.MESSENGER_GRAPH_API_URL.rstrip('/')}/me/messages",
            params={"access_token": self._settings.MESSENGER_PAGE_TOKEN},
            json=body,
        )

    async def send_sender_action(self, psid: str, action: SenderAction) -> None:
        try:
            await self.post_message({"recipient": {"id": psid}, "sender_action": action.value})
        except httpx.HTTPError as e:
            logger.error("Failed to send %s to %s: %s", action.value, psid, e)

    async def send_text(self, psid: str, text: str) -> None:
        safe = (text or "")[: self._settings.MESSENGER_MAX_TEXT_LENGTH] or EMPTY_ANSWER_TEXT
        try:
            await self.post_message(
                {
                    "recipient": {"id": psid},
                    "message": {"text": safe},
                    "messaging_type": "RESPONSE",
                }
            )
        except httpx.HTTPError as e:
            logger.error("Failed to send message to %s: %s", psid, e)


class MessengerService:
    """Handles verified webhook deliveries."""

    def __init__(
        self,
        relay: RelayService,
        graph: GraphApiClient,
        caches: MessengerCaches,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._relay = relay
        self._graph = graph
        self._caches = caches
        self._settings = settings or get_settings()
        self._sleep = sleep

    def verify_subscription(
        self,
        mode: Optional[str],
        token: Optional[str],
        challenge: Optional[str],
    ) -> Optional[str]:
        """Return the challenge to echo, or None if verification fails."""
        verify_token = self._settings.MESSENGER_VERIFY_TOKEN
        if mode == "subscribe" and verify_token and token == verify_token:
            return challenge or ""
        return None

    async def handle_payload(self, body: dict[str, Any]) -> int:
        """Process every messaging event of a page delivery. Returns events handled."""
        self._caches.sweep()
        handled = 0
        for entry in body.get("entry") or []:
            for event in entry.get("messaging") or []:
                if await self.handle_event(event):
                    handled += 1
        return handled

    def _admit(self, psid: str, message_id: Optional[str]) -> bool:
        if not self._caches.throttled.add_if_absent(psid):
            logger.info("Throttled sender %s", psid)
            return False
        if message_id and not self._caches.processed.add_if_absent(f"{psid}:{message_id}"):
            logger.info("Duplicate delivery %s ignored", message_id)
            return False
        return True

    async def handle_event(self, event: dict[str, Any]) -> bool:
        """Answer one messaging event. Returns True if a reply was attempted."""
        psid = (event.get("sender") or {}).get("id")
        if not psid:
            return False

        message = event.get("message") or {}
        postback = event.get("postback") or {}
        if not self._admit(psid, message.get("mid") or postback.get("mid")):
            return False

        await self._graph.send_sender_action(psid, SenderAction.MARK_SEEN)

        text = message.get("text")
        payload = postback.get("payload")
        incoming = text or (payload if payload and payload != GET_STARTED_PAYLOAD else None)

        if not incoming:
            if payload == GET_STARTED_PAYLOAD:
                await self._graph.send_text(psid, GREETING_TEXT)
                return True
            return False

        await self._graph.send_sender_action(psid, SenderAction.TYPING_ON)
        try:
            if self._settings.MESSENGER_REPLY_DELAY_SECONDS > 0:
                await self._sleep(self._settings.MESSENGER_REPLY_DELAY_SECONDS)
            answer = await self._ask(psid, incoming)
            await self._graph.send_text(psid, answer)
        except (BackendError, httpx.HTTPError) as e:
            logger.error("Messenger handler error for %s: %s", psid, e)
            await self._graph.send_text(psid, self._error_reply(e))
        finally:
            await self._graph.send_sender_action(psid, SenderAction.TYPING_OFF)
        return True

    async def _ask(self, psid: str, question: str) -> str:
        request = AskRequest(
            question=question,
            company_id=self._settings.MESSENGER_COMPANY_ID,
            session_id=f"messenger_{psid}",
            external_user_id=psid,
            langue=detect_language(question).value,
        )
        try:
            return await self._relay.ask(request)
        except BackendError as e:
            if e.status_code == 429:
                return OVERLOADED_ANSWER_TEXT
            raise

    @staticmethod
    def _error_reply(error: Exception) -> str:
        message = str(error).lower()
        status_code = getattr(error, "status_code", None)
        if status_code == 429 or "capacity exceeded" in message:
            return BUSY_ERROR_TEXT
        if status_code is not None and status_code >= 500:
            return SERVER_ERROR_TEXT
        return GENERIC_ERROR_TEXT
