"""
Chat session and message models.

These models are persisted in local key-value storage as camelCase JSON,
so the widget and the Python client share one storage layout.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chatwidget.models.enums import FeedbackValue


class _StoredModel(BaseModel):
    """Base for models stored with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class Message(_StoredModel):
    """A single chat message."""

    text: str = Field("", description="Message body")
    is_user: bool = Field(..., description="True for user-authored messages")
    timestamp: str = Field(..., description="ISO-8601 creation time")
    message_id: Optional[str] = Field(None, description="Id used for feedback")
    user_feedback: Optional[FeedbackValue] = Field(None, description="like / dislike")
    feedback_timestamp: Optional[str] = Field(None, description="When feedback was recorded")


class ChatSession(_StoredModel):
    """A conversation thread scoped to one company."""

    session_id: str = Field(..., description="Chat session ID")
    company_id: str = Field(..., description="Tenant context")
    external_user_id: Optional[str] = Field(None, description="Per-browser user id")
    title: str = Field(..., description="Session title")
    created_at: str = Field(..., description="ISO-8601 creation time")
    messages: list[Message] = Field(default_factory=list)

    def to_storage(self) -> dict:
        """Serialize with storage keys, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
