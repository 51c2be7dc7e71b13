"""Chat turn endpoint.

POST /api/chat runs one turn through the ChatOrchestrator: the user
message is stored, the AI service is called, and the reply is stored.
Errors propagate as DomainError subclasses and are rendered by the
app-level exception handlers (503 for an unreachable AI service, 400 for a
payload it rejects).
"""

import logging

from fastapi import APIRouter, Depends

from prenatal_chat.api.dependencies import (
    get_config,
    get_conversation_service,
    get_gateway,
)
from prenatal_chat.api.schemas import ChatRequest, ChatResponse
from prenatal_chat.config import PrenatalChatConfig
from prenatal_chat.db.models import as_utc
from prenatal_chat.services.ai_gateway_client import AIGatewayClient
from prenatal_chat.services.chat_orchestrator import ChatOrchestrator
from prenatal_chat.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def _get_orchestrator(
    conversations: ConversationService = Depends(get_conversation_service),
    gateway: AIGatewayClient = Depends(get_gateway),
    config: PrenatalChatConfig = Depends(get_config),
) -> ChatOrchestrator:
    """Dependency injector for ChatOrchestrator."""
    return ChatOrchestrator(
        conversations, gateway, model_name=config.gateway.model_name
    )


@router.post("/chat", response_model=ChatResponse)
def send_chat_message(
    body: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(_get_orchestrator),
) -> ChatResponse:
    """Submit one user message and return the AI reply.

    Args:
        body: Message text, user id and optional conversation id.
        orchestrator: ChatOrchestrator (injected).

    Returns:
        The reply with its conversation id, message id and timestamp.
    """
    result = orchestrator.submit_turn(
        body.message,
        body.user_id,
        conversation_id=body.conversation_id,
    )
    return ChatResponse(
        response=result.reply_text,
        conversation_id=result.conversation_id,
        message_id=result.reply_message_id,
        timestamp=as_utc(result.timestamp),
    )
