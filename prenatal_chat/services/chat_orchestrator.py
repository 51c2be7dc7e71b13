"""Chat turn orchestration.

One turn is a fixed sequence of independently committed steps:

    1. ensure conversation   (create when no id was supplied)
    2. save user message     (committed before the AI call)
    3. call AI service
    4. save AI message
    5. update conversation summary (+2 message_count, preview, updated_at)

There is no enclosing transaction and no compensation: if a later step
fails, earlier steps stay committed. A user's input is never lost to an AI
failure, at the cost of message_count/preview drifting from the stored
messages.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from prenatal_chat.db.models import MessageType
from prenatal_chat.errors.domain import GatewayError, ValidationError
from prenatal_chat.services.ai_gateway_client import AIGatewayClient
from prenatal_chat.services.conversation_service import (
    ConversationService,
    make_preview,
    make_title,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "gpt-4o-mini"


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a completed chat turn.

    Attributes:
        reply_text: AI reply.
        conversation_id: Conversation the turn was stored in.
        reply_message_id: Id of the stored AI message.
        timestamp: Timestamp of the AI message.
    """

    reply_text: str
    conversation_id: str
    reply_message_id: str
    timestamp: datetime


class ChatOrchestrator:
    """Runs chat turns against the store and the AI service.

    Args:
        conversations: Conversation persistence service.
        gateway: AI service client.
        model_name: Recorded in AI message metadata when the service does
            not report a model itself.
    """

    def __init__(
        self,
        conversations: ConversationService,
        gateway: AIGatewayClient,
        model_name: str = DEFAULT_MODEL_NAME,
    ) -> None:
        self._conversations = conversations
        self._gateway = gateway
        self._model_name = model_name

    def submit_turn(
        self,
        user_text: str | None,
        user_id: str | None,
        conversation_id: str | None = None,
    ) -> TurnResult:
        """Process one user message end to end.

        Args:
            user_text: Message text (required, non-empty).
            user_id: Submitting user's opaque id (required, non-empty).
            conversation_id: Existing conversation; a new one is created
                when omitted.

        Returns:
            TurnResult describing the stored AI reply.

        Raises:
            ValidationError: If user_text or user_id is missing.
            GatewayError: Any gateway failure. The user message stays stored.
        """
        if not user_text or not user_id:
            raise ValidationError("Message and user_id are required")

        if not conversation_id:
            conversation = self._conversations.create_conversation(
                user_id=user_id,
                title=make_title(user_text),
                preview=make_preview(user_text),
            )
            conversation_id = conversation.conversation_id

        user_msg = self._conversations.save_message(
            conversation_id,
            MessageType.user.value,
            user_text,
            metadata={"user_id": user_id},
        )
        logger.info("Saved user message %s in %s", user_msg.message_id, conversation_id)

        try:
            reply = self._gateway.complete(user_text, conversation_id, user_id)
        except GatewayError as e:
            logger.warning(
                "AI call failed for conversation %s; user message %s kept: %s",
                conversation_id,
                user_msg.message_id,
                e,
            )
            raise

        ai_msg = self._conversations.save_message(
            conversation_id,
            MessageType.ai.value,
            reply.text,
            metadata={
                "fastapi_thread_id": reply.thread_id,
                "model_used": reply.model or self._model_name,
            },
        )
        logger.info("Saved AI message %s in %s", ai_msg.message_id, conversation_id)

        if not self._conversations.record_turn(conversation_id, ai_msg.timestamp, reply.text):
            logger.warning("Conversation %s not found when recording turn", conversation_id)

        return TurnResult(
            reply_text=reply.text,
            conversation_id=conversation_id,
            reply_message_id=ai_msg.message_id,
            timestamp=ai_msg.timestamp,
        )
