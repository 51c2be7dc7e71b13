"""SQLAlchemy ORM models for the prenatal chat store.

Defines the three record types persisted by the backend: conversations,
their messages, and per-user favorites of AI messages. Uses SQLAlchemy 2.0
style with Mapped and mapped_column.

Messages reference their conversation by id only. There is no
ForeignKey: messages and favorites may outlive the conversation row when a
multi-step delete is interrupted, and favorites are never cascade-deleted.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Preview/title truncation limits shared by the orchestrator and services.
TITLE_MAX_CHARS = 50
PREVIEW_MAX_CHARS = 100
DEFAULT_CONVERSATION_TITLE = "New Conversation"
UNTITLED_CONVERSATION = "Untitled Conversation"


def generate_uuid() -> str:
    """Generate a UUID4 string for record identifiers."""
    return str(uuid4())


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class MessageType(str, Enum):
    """Author of a message."""

    user = "user"
    ai = "ai"


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Conversation(Base):
    """A named thread of user/AI messages owned by one user.

    Attributes:
        conversation_id: UUID identifier (unique).
        user_id: Opaque client-supplied owner id.
        title: Display title (first 50 chars of the opening message).
        created_at: Creation timestamp.
        updated_at: Timestamp of the latest AI reply.
        message_count: Independently incremented counter (+2 per turn).
            Not reconciled against stored messages.
        last_message_preview: First 100 chars of the latest message.
    """

    __tablename__ = "conversations"
    __table_args__ = (
        Index("ix_conversations_user_updated", "user_id", "updated_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(
        String(255), nullable=False, default=DEFAULT_CONVERSATION_TITLE
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_message_preview: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape returned by the API."""
        return {
            "conversation_id": self.conversation_id,
            "user_id": self.user_id,
            "title": self.title,
            "created_at": as_utc(self.created_at),
            "updated_at": as_utc(self.updated_at),
            "message_count": self.message_count,
            "last_message_preview": self.last_message_preview,
        }

    def __repr__(self) -> str:
        return (
            f"<Conversation(conversation_id={self.conversation_id!r}, "
            f"user_id={self.user_id!r})>"
        )


class Message(Base):
    """A single immutable chat message.

    Ordered within its conversation by timestamp only; two messages with
    the same timestamp have no defined relative order.

    Attributes:
        message_id: UUID identifier.
        conversation_id: Owning conversation id (not a foreign key).
        type: 'user' or 'ai'.
        content: Message text.
        timestamp: Creation timestamp.
        metadata_json: Free-form metadata (submitting user id, model used).
    """

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_timestamp", "conversation_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True, default=generate_uuid
    )
    conversation_id: Mapped[str] = mapped_column(String(36), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape returned by the API."""
        return {
            "message_id": self.message_id,
            "conversation_id": self.conversation_id,
            "type": self.type,
            "content": self.content,
            "timestamp": as_utc(self.timestamp),
            "metadata": self.metadata_json,
        }

    def __repr__(self) -> str:
        return f"<Message(message_id={self.message_id!r}, type={self.type!r})>"


class Favorite(Base):
    """A user's bookmark on one AI message.

    Stores a denormalized snapshot of the message so the favorite stays
    readable after its conversation is deleted.

    Attributes:
        favorite_id: UUID identifier.
        user_id: Owner of the bookmark.
        message_id: Bookmarked message id.
        conversation_id: Conversation the message belonged to.
        message_content: Snapshot of the message text.
        message_timestamp: Snapshot of the message timestamp.
        favorited_at: When the bookmark was created.
        metadata_json: Snapshot of message type and original metadata.
    """

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "message_id", name="uq_favorites_user_message"),
        Index("ix_favorites_user_favorited", "user_id", "favorited_at"),
        Index("ix_favorites_conversation", "conversation_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    favorite_id: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    message_id: Mapped[str] = mapped_column(String(36), nullable=False)
    conversation_id: Mapped[str] = mapped_column(String(36), nullable=False)
    message_content: Mapped[str] = mapped_column(Text, nullable=False)
    message_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    favorited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape returned by the API."""
        return {
            "favorite_id": self.favorite_id,
            "user_id": self.user_id,
            "message_id": self.message_id,
            "conversation_id": self.conversation_id,
            "message_content": self.message_content,
            "message_timestamp": as_utc(self.message_timestamp),
            "favorited_at": as_utc(self.favorited_at),
            "metadata": self.metadata_json,
        }

    def __repr__(self) -> str:
        return (
            f"<Favorite(favorite_id={self.favorite_id!r}, "
            f"message_id={self.message_id!r})>"
        )
