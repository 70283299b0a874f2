"""
Ask stream consumer.

Drives one question/answer exchange against the relay's /api/ask route.
The response is a line-oriented event stream (`data: {json}` per line);
each event is turned into a message appended, in parse order, to the
session store and to the caller's displayed state.
"""

import codecs
import json
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from chatwidget.core.config import get_settings
from chatwidget.core.exceptions import BackendError
from chatwidget.core.logger import setup_logger
from chatwidget.models.chat_session import ChatSession, Message
from chatwidget.models.enums import Language
from chatwidget.models.relay import AskRequest
from chatwidget.models.stream_events import (
    AnswerEvent,
    ErrorEvent,
    HeartbeatEvent,
    parse_stream_event,
)
from chatwidget.services.identity_service import generate_id, utc_now_iso
from chatwidget.services.language_detector import detect_language
from chatwidget.services.session_store import SessionStore

logger = setup_logger(__name__)

DATA_PREFIX = "data: "
ERROR_MESSAGE_PREFIX = "Erreur: "
TRANSPORT_ERROR_TEXT = (
    "Désolé, une erreur s'est produite lors de la communication avec le serveur."
)

MessageCallback = Callable[[Message], None]


class StreamLineBuffer:
    """
    Splits a byte stream into complete lines.

    UTF-8 sequences cut across chunks are decoded correctly, and a partial
    trailing line is kept until the next chunk completes it.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, chunk: bytes) -> list[str]:
        self._pending += self._decoder.decode(chunk)
        *lines, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> str:
        """Return and drop whatever incomplete line is left."""
        remainder = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        return remainder


@dataclass
class ExchangeResult:
    """Outcome of one exchange."""

    session_id: str
    language: Language
    messages: list[Message] = field(default_factory=list)
    renamed_from: Optional[str] = None
    failed: bool = False


class StreamConsumer:
    """Sends a question and consumes the streamed answer."""

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
        self._timeout = timeout or settings.ASK_TIMEOUT_SECONDS

    async def ask(
        self,
        session: ChatSession,
        question: str,
        on_message: Optional[MessageCallback] = None,
    ) -> ExchangeResult:
        """
        Run one exchange for `session`.

        The user message is appended first. Transport failures and non-2xx
        answers are reported as an assistant message; nothing is raised.
        """
        language = detect_language(question)
        result = ExchangeResult(session_id=session.session_id, language=language)

        self._emit(
            result,
            Message(
                text=question,
                is_user=True,
                timestamp=utc_now_iso(),
                message_id=generate_id("user"),
            ),
            on_message,
        )

        request = AskRequest(
            question=question,
            company_id=session.company_id,
            session_id=session.session_id,
            external_user_id=session.external_user_id,
            langue=language.value,
        )

        try:
            async with self._client.stream(
                "POST",
                f"{self._base_url}/api/ask",
                json=request.model_dump(exclude_none=True),
                timeout=self._timeout,
            ) as response:
                if response.status_code >= 400:
                    body = await response.aread()
                    raise BackendError(
                        f"Relay answered {response.status_code}",
                        status_code=response.status_code,
                        details=body.decode("utf-8", errors="replace"),
                    )

                buffer = StreamLineBuffer()
                async for chunk in response.aiter_bytes():
                    for line in buffer.feed(chunk):
                        self._handle_line(line, result, on_message)

                remainder = buffer.flush()
                if remainder:
                    logger.debug("Discarding incomplete line at end of stream: %r", remainder)
        except (httpx.HTTPError, BackendError) as e:
            logger.error("Ask exchange for session %s failed: %s", result.session_id, e)
            result.failed = True
            self._emit(
                result,
                Message(text=TRANSPORT_ERROR_TEXT, is_user=False, timestamp=utc_now_iso()),
                on_message,
            )

        return result

    def _handle_line(
        self,
        line: str,
        result: ExchangeResult,
        on_message: Optional[MessageCallback],
    ) -> None:
        if not line.startswith(DATA_PREFIX):
            return

        try:
            payload = json.loads(line[len(DATA_PREFIX):])
        except json.JSONDecodeError:
            logger.warning("Skipping malformed stream line: %r", line)
            return

        event = parse_stream_event(payload)
        if event is None or isinstance(event, HeartbeatEvent):
            return

        if isinstance(event, ErrorEvent):
            logger.error("Backend reported an error: %s", event.error)
            self._emit(
                result,
                Message(
                    text=f"{ERROR_MESSAGE_PREFIX}{event.error}",
                    is_user=False,
                    timestamp=utc_now_iso(),
                ),
                on_message,
            )
            return

        if isinstance(event, AnswerEvent):
            self._emit(
                result,
                Message(
                    text=event.answer,
                    is_user=False,
                    timestamp=utc_now_iso(),
                    message_id=generate_id("bot"),
                ),
                on_message,
            )
            if event.session_id and event.session_id != result.session_id:
                if self._store.rename_session(result.session_id, event.session_id):
                    result.renamed_from = result.renamed_from or result.session_id
                    result.session_id = event.session_id

    def _emit(
        self,
        result: ExchangeResult,
        message: Message,
        on_message: Optional[MessageCallback],
    ) -> None:
        result.messages.append(message)
        if on_message is not None:
            on_message(message)
        self._store.append_message(result.session_id, message)
