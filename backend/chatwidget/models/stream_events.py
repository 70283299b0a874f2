"""
Typed events carried by the ask stream.

Each stream line `data: {...}` is decoded into exactly one of these variants.
Payloads that match none of them are ignored by the consumer.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from chatwidget.models.enums import StreamEventKind

HEARTBEAT_TAGS = frozenset({"heartbeat", "ping_disconnect"})


class HeartbeatEvent(BaseModel):
    """Keep-alive event, no user-visible content."""

    kind: Literal[StreamEventKind.HEARTBEAT] = StreamEventKind.HEARTBEAT
    tag: str


class ErrorEvent(BaseModel):
    """Backend-reported error. Not necessarily terminal."""

    kind: Literal[StreamEventKind.ERROR] = StreamEventKind.ERROR
    error: str


class AnswerEvent(BaseModel):
    """Answer text, optionally with the canonical session id."""

    kind: Literal[StreamEventKind.ANSWER] = StreamEventKind.ANSWER
    answer: str
    session_id: Optional[str] = Field(None, description="Backend-assigned session id")


StreamEvent = Union[HeartbeatEvent, ErrorEvent, AnswerEvent]


def parse_stream_event(payload: Any) -> Optional[StreamEvent]:
    """
    Classify a decoded JSON payload.

    Heartbeats win over everything, then errors, then answers. Returns None
    for payloads carrying none of them.
    """
    if not isinstance(payload, dict):
        return None

    tag = payload.get("event")
    if isinstance(tag, str) and tag in HEARTBEAT_TAGS:
        return HeartbeatEvent(tag=tag)

    error = payload.get("error")
    if error:
        return ErrorEvent(error=str(error))

    answer = payload.get("answer")
    if isinstance(answer, str) and answer:
        session_id = payload.get("session_id")
        return AnswerEvent(
            answer=answer,
            session_id=session_id if isinstance(session_id, str) and session_id else None,
        )

    return None
