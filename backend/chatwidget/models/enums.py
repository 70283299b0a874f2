"""
Enum definitions for the application.

Values are the strings exchanged with the remote backend and stored locally.
"""

from enum import Enum


class Language(str, Enum):
    """Reply language sent to the backend as `langue`."""

    MALAGASY = "malgache"
    FRENCH = "français"
    ENGLISH = "anglais"


class FeedbackValue(str, Enum):
    """User feedback on an assistant message."""

    LIKE = "like"
    DISLIKE = "dislike"


class MessageRole(str, Enum):
    """Message author as reported by the backend history API."""

    USER = "user"
    ASSISTANT = "assistant"


class StreamEventKind(str, Enum):
    """Kinds of events carried by the ask stream."""

    HEARTBEAT = "heartbeat"
    ANSWER = "answer"
    ERROR = "error"


class SenderAction(str, Enum):
    """Messenger sender actions."""

    TYPING_ON = "typing_on"
    TYPING_OFF = "typing_off"
    MARK_SEEN = "mark_seen"
