"""Persistence and query service for conversations and their messages.

Thin layer between API routes and SQLAlchemy models. All conversation
and message reads and writes go through this service. Every write commits
on its own; multi-step sequences (a chat turn, a delete) are
not wrapped in a single transaction.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from prenatal_chat.db.models import (
    DEFAULT_CONVERSATION_TITLE,
    PREVIEW_MAX_CHARS,
    TITLE_MAX_CHARS,
    Conversation,
    Message,
    generate_uuid,
    utc_now,
)
from prenatal_chat.errors.domain import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONVERSATION_LIMIT = 50


def make_title(text: str) -> str:
    """Derive a conversation title from its opening message.

    Args:
        text: First user message.

    Returns:
        First 50 characters, with '...' appended when truncated.
    """
    if len(text) > TITLE_MAX_CHARS:
        return text[:TITLE_MAX_CHARS] + "..."
    return text


def make_preview(text: str) -> str:
    """Truncate text to the stored preview length."""
    return text[:PREVIEW_MAX_CHARS]


class ConversationService:
    """CRUD operations for conversations and messages.

    Args:
        db: SQLAlchemy session (sync).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def create_conversation(
        self,
        user_id: str,
        title: str | None = None,
        preview: str = "",
        conversation_id: str | None = None,
    ) -> Conversation:
        """Create and commit a new conversation row.

        Args:
            user_id: Owner id.
            title: Display title (defaults to 'New Conversation').
            preview: Initial last-message preview.
            conversation_id: Explicit id; a UUID is allocated when omitted.

        Returns:
            The created Conversation.

        Raises:
            ValidationError: If user_id is empty.
        """
        if not user_id:
            raise ValidationError("user_id is required")
        now = utc_now()
        conversation = Conversation(
            conversation_id=conversation_id or generate_uuid(),
            user_id=user_id,
            title=title or DEFAULT_CONVERSATION_TITLE,
            created_at=now,
            updated_at=now,
            message_count=0,
            last_message_preview=preview,
        )
        self._db.add(conversation)
        self._db.commit()
        logger.info("Created conversation %s for user %s", conversation.conversation_id, user_id)
        return conversation

    def save_message(
        self,
        conversation_id: str,
        message_type: str,
        content: str,
        metadata: dict[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> Message:
        """Append and commit a message. Does not touch the conversation row.

        Args:
            conversation_id: Owning conversation id.
            message_type: 'user' or 'ai'.
            content: Message text.
            metadata: Optional free-form metadata.
            timestamp: Explicit timestamp (defaults to now).

        Returns:
            The created Message.
        """
        msg = Message(
            message_id=generate_uuid(),
            conversation_id=conversation_id,
            type=message_type,
            content=content,
            timestamp=timestamp or utc_now(),
            metadata_json=metadata,
        )
        self._db.add(msg)
        self._db.commit()
        return msg

    def record_turn(
        self, conversation_id: str, updated_at: datetime, preview_source: str
    ) -> bool:
        """Update summary fields after a completed turn.

        ``message_count`` is incremented in SQL rather than recomputed, so
        concurrent turns never lose an increment.

        Args:
            conversation_id: Conversation id.
            updated_at: Timestamp of the AI reply.
            preview_source: Reply text; truncated to the preview length.

        Returns:
            True if a conversation row was updated.
        """
        result = self._db.execute(
            update(Conversation)
            .where(Conversation.conversation_id == conversation_id)
            .values(
                updated_at=updated_at,
                last_message_preview=make_preview(preview_source),
                message_count=Conversation.message_count + 2,
            )
        )
        self._db.commit()
        return result.rowcount > 0

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Look up a conversation by id."""
        return self._db.scalars(
            select(Conversation).where(Conversation.conversation_id == conversation_id)
        ).first()

    def list_conversations(
        self, user_id: str, limit: int = DEFAULT_CONVERSATION_LIMIT
    ) -> list[Conversation]:
        """List a user's conversations, most recently updated first.

        Args:
            user_id: Owner id.
            limit: Maximum rows returned.

        Returns:
            Up to ``limit`` conversations.
        """
        return list(
            self._db.scalars(
                select(Conversation)
                .where(Conversation.user_id == user_id)
                .order_by(Conversation.updated_at.desc())
                .limit(limit)
            )
        )

    def list_messages(self, conversation_id: str) -> list[Message]:
        """All messages of a conversation in timestamp order."""
        return list(
            self._db.scalars(
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(Message.timestamp.asc(), Message.id.asc())
            )
        )

    def get_conversation_with_messages(
        self, conversation_id: str
    ) -> dict[str, Any]:
        """Load a conversation with all of its messages.

        Args:
            conversation_id: Conversation id.

        Returns:
            Dict with 'conversation' and 'messages' keys.

        Raises:
            NotFoundError: If the conversation does not exist.
        """
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        return {
            "conversation": conversation,
            "messages": self.list_messages(conversation_id),
        }

    def delete_conversation(self, conversation_id: str, user_id: str) -> None:
        """Delete a conversation and its messages.

        Absent and foreign-owned conversations raise the same error so the
        caller cannot probe for existence. Messages are deleted and committed
        before the conversation row; favorites are left in place.

        Args:
            conversation_id: Conversation id.
            user_id: Caller's user id; must own the conversation.

        Raises:
            ValidationError: If user_id is empty.
            NotFoundError: If not found or not owned by ``user_id``.
        """
        if not user_id:
            raise ValidationError("user_id is required")
        owned = self._db.scalars(
            select(Conversation).where(
                Conversation.conversation_id == conversation_id,
                Conversation.user_id == user_id,
            )
        ).first()
        if owned is None:
            raise NotFoundError("Conversation", conversation_id)

        deleted = self._db.execute(
            delete(Message).where(Message.conversation_id == conversation_id)
        )
        self._db.commit()
        self._db.execute(
            delete(Conversation).where(Conversation.conversation_id == conversation_id)
        )
        self._db.commit()
        logger.info(
            "Deleted conversation %s (%d messages) for user %s",
            conversation_id,
            deleted.rowcount,
            user_id,
        )
