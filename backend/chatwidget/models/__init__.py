"""Pydantic models (schemas) for the application."""

from chatwidget.models.chat_session import ChatSession, Message
from chatwidget.models.enums import (
    FeedbackValue,
    Language,
    MessageRole,
    SenderAction,
    StreamEventKind,
)
from chatwidget.models.relay import (
    AskRequest,
    BackendHistoryMessage,
    FeedbackRequest,
    SessionMessagesResponse,
)
from chatwidget.models.stream_events import (
    AnswerEvent,
    ErrorEvent,
    HeartbeatEvent,
    StreamEvent,
    parse_stream_event,
)

__all__ = [
    "AnswerEvent",
    "AskRequest",
    "BackendHistoryMessage",
    "ChatSession",
    "ErrorEvent",
    "FeedbackRequest",
    "FeedbackValue",
    "HeartbeatEvent",
    "Language",
    "Message",
    "MessageRole",
    "SenderAction",
    "SessionMessagesResponse",
    "StreamEvent",
    "StreamEventKind",
    "parse_stream_event",
]
