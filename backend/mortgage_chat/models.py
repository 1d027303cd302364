"""
Pydantic models for persisted records and HTTP payloads.

Persisted documents use the camelCase keys of the original JSON files
(firstName, conversationHistory, ...); attribute names are snake_case and
every model accepts either form.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ============================================================================
# Enums
# ============================================================================

class Role(str, Enum):
    """Conversation turn roles."""
    USER = "user"
    ASSISTANT = "assistant"


class ReplySource(str, Enum):
    """Where a chat reply came from."""
    FAQ = "faq"
    MODEL = "model"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize to the JSON-ready shape written to disk."""
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Persisted records
# ============================================================================

class Turn(BaseModel):
    """
    One role-tagged message in a conversation history.
    Immutable once created.
    """
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class UserRecord(_CamelModel):
    """A registered widget user and their full conversation history."""
    first_name: str = Field(default="", alias="firstName")
    phone: str = ""
    email: str = ""
    conversation_history: List[Turn] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Append-only, chronological"
    )


class FAQEntry(_CamelModel):
    """A canned answer served without calling the model."""
    id: str
    question: str
    answer: str
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


class InteractionLogEntry(_CamelModel):
    """Audit record appended once per completed exchange."""
    timestamp: str
    user_id: str = Field(..., alias="userId")
    user_message: str = Field(..., alias="userMessage")
    ai_reply: str = Field(..., alias="aiReply")


# ============================================================================
# Client → Server payloads
# ============================================================================

class RegisterRequest(_CamelModel):
    first_name: str = Field(..., alias="firstName", min_length=1)
    phone: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)


class ChatRequest(_CamelModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    message: str = Field(..., min_length=1, description="User's latest message")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Reject messages that are only whitespace."""
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


class FAQCreateRequest(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class FAQUpdateRequest(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)


# ============================================================================
# Server → Client payloads
# ============================================================================

class RegisterResponse(_CamelModel):
    user_id: str = Field(..., alias="userId")
    first_name: str = Field(..., alias="firstName")


class ChatResponse(BaseModel):
    reply: str


class TranscriptionResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str


class UserSummary(_CamelModel):
    """Admin listing row for one user."""
    user_id: str = Field(..., alias="userId")
    first_name: str = Field(..., alias="firstName")
    phone: str
    email: str
    message_count: int = Field(..., alias="messageCount")


class Transcript(_CamelModel):
    user_id: str = Field(..., alias="userId")
    first_name: str = Field(..., alias="firstName")
    conversation_history: List[Turn] = Field(..., alias="conversationHistory")
