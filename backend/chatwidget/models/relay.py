"""
Request and response models for the proxy relay.
"""

from typing import Optional

from pydantic import BaseModel, Field

from chatwidget.models.chat_session import Message
from chatwidget.models.enums import MessageRole


class AskRequest(BaseModel):
    """Question forwarded to the backend ask endpoint."""

    question: Optional[str] = Field(None, description="User question")
    company_id: Optional[str] = Field(None, description="Tenant context")
    session_id: Optional[str] = Field(None, description="Session id for continuity")
    external_user_id: Optional[str] = Field(None, description="Per-browser user id")
    langue: Optional[str] = Field(None, description="Reply language")


class FeedbackRequest(BaseModel):
    """Like/dislike submitted for an assistant message."""

    session_id: Optional[str] = None
    message_id: Optional[str] = None
    feedback: Optional[str] = None
    company_id: Optional[str] = None


class BackendHistoryMessage(BaseModel):
    """Message as returned by the backend history endpoint."""

    content: str = ""
    role: str = MessageRole.USER.value
    created_at: str = ""

    def to_message(self) -> Message:
        return Message(
            text=self.content,
            is_user=self.role == MessageRole.USER.value,
            timestamp=self.created_at,
        )


class SessionMessagesResponse(BaseModel):
    """History returned by the relay to the widget."""

    messages: list[dict] = Field(default_factory=list)

    @classmethod
    def from_backend(cls, items: list[BackendHistoryMessage]) -> "SessionMessagesResponse":
        return cls(
            messages=[
                item.to_message().model_dump(by_alias=True, exclude_none=True)
                for item in items
            ]
        )
