"""Pydantic schemas for the chat, conversation and favorites API.

Request models declare required fields as optional. Missing values are
rejected by the service layer with a specific 400 message
(``"Message and user_id are required"``) rather than a generic validation
error.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


# === Requests ===


class ChatRequest(BaseModel):
    """Body for POST /api/chat."""

    message: str | None = Field(default=None, description="User message text")
    conversation_id: str | None = Field(
        default=None, description="Existing conversation; omit to start a new one"
    )
    user_id: str | None = Field(default=None, description="Opaque user identifier")


class CreateConversationRequest(BaseModel):
    """Body for POST /api/conversations/new."""

    user_id: str | None = None
    title: str | None = Field(default=None, max_length=255)


class UserScopedRequest(BaseModel):
    """Body carrying only the caller's user id (used by DELETE routes)."""

    user_id: str | None = None


class AddFavoriteRequest(BaseModel):
    """Body for POST /api/favorites."""

    user_id: str | None = None
    message_id: str | None = None
    conversation_id: str | None = None


# === Responses ===


class ChatResponse(BaseModel):
    """Result of one chat turn."""

    response: str
    conversation_id: str
    message_id: str
    timestamp: datetime


class ConversationResponse(BaseModel):
    """Conversation summary row."""

    conversation_id: str
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    message_count: int
    last_message_preview: str


class MessageResponse(BaseModel):
    """Stored chat message."""

    message_id: str
    conversation_id: str
    type: Literal["user", "ai"]
    content: str
    timestamp: datetime
    metadata: dict[str, Any] | None = None


class ConversationListResponse(BaseModel):
    conversations: list[ConversationResponse]


class ConversationDetailResponse(BaseModel):
    """Conversation with all of its messages in timestamp order."""

    conversation: ConversationResponse
    messages: list[MessageResponse]
    total_messages: int


class CreateConversationResponse(BaseModel):
    conversation_id: str
    message: str


class StatusMessageResponse(BaseModel):
    message: str


class FavoriteResponse(BaseModel):
    """Favorite with its denormalized message snapshot."""

    favorite_id: str
    user_id: str
    message_id: str
    conversation_id: str
    message_content: str
    message_timestamp: datetime
    favorited_at: datetime
    metadata: dict[str, Any] | None = None
    conversation_title: str


class PaginationResponse(BaseModel):
    """Pagination block; field names match the web client's expectations."""

    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


class FavoriteListResponse(BaseModel):
    favorites: list[FavoriteResponse]
    pagination: PaginationResponse


class AddFavoriteResponse(BaseModel):
    favorite_id: str
    message: str
    favorited_at: datetime


class FavoriteCheckResponse(BaseModel):
    is_favorited: bool
    favorite_id: str | None


class HealthResponse(BaseModel):
    """Dependency probe result for /api/health."""

    status: Literal["healthy", "unhealthy"]
    database: Literal["connected", "error"]
    ai_service: Literal["connected", "error"]
    timestamp: datetime
    error: str | None = None
