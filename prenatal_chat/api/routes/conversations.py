"""API routes for conversation history.

Endpoints:
    GET    /api/conversations/{user_id}                   List a user's conversations
    GET    /api/conversations/{conversation_id}/messages  Conversation with messages
    POST   /api/conversations/new                         Create an empty conversation
    DELETE /api/conversations/{conversation_id}           Delete (owner only)
"""

import logging

from fastapi import APIRouter, Depends

from prenatal_chat.api.dependencies import get_conversation_service
from prenatal_chat.api.schemas import (
    ConversationDetailResponse,
    ConversationListResponse,
    CreateConversationRequest,
    CreateConversationResponse,
    StatusMessageResponse,
    UserScopedRequest,
)
from prenatal_chat.services.conversation_service import (
    DEFAULT_CONVERSATION_LIMIT,
    ConversationService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("/{user_id}", response_model=ConversationListResponse)
def list_conversations(
    user_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> dict:
    """List a user's conversations, most recently updated first (max 50)."""
    conversations = service.list_conversations(user_id, limit=DEFAULT_CONVERSATION_LIMIT)
    return {"conversations": [c.to_dict() for c in conversations]}


@router.get("/{conversation_id}/messages", response_model=ConversationDetailResponse)
def get_conversation_messages(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> dict:
    """Load a conversation with all of its messages.

    Args:
        conversation_id: Conversation id.
        service: ConversationService (injected).

    Returns:
        Conversation, messages in timestamp order, and their count.

    Raises:
        NotFoundError: 404 if the conversation does not exist.
    """
    result = service.get_conversation_with_messages(conversation_id)
    messages = [m.to_dict() for m in result["messages"]]
    return {
        "conversation": result["conversation"].to_dict(),
        "messages": messages,
        "total_messages": len(messages),
    }


@router.post("/new", response_model=CreateConversationResponse)
def create_conversation(
    body: CreateConversationRequest,
    service: ConversationService = Depends(get_conversation_service),
) -> CreateConversationResponse:
    """Create an empty conversation ahead of its first message."""
    conversation = service.create_conversation(body.user_id, title=body.title)
    return CreateConversationResponse(
        conversation_id=conversation.conversation_id,
        message="New conversation created",
    )


@router.delete("/{conversation_id}", response_model=StatusMessageResponse)
def delete_conversation(
    conversation_id: str,
    body: UserScopedRequest | None = None,
    service: ConversationService = Depends(get_conversation_service),
) -> StatusMessageResponse:
    """Delete a conversation and its messages.

    Args:
        conversation_id: Conversation id.
        body: Caller's user id; must own the conversation.
        service: ConversationService (injected).

    Raises:
        NotFoundError: 404 if absent or owned by another user.
    """
    service.delete_conversation(conversation_id, body.user_id if body else None)
    return StatusMessageResponse(message="Conversation deleted successfully")
