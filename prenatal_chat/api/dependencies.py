"""Shared FastAPI dependencies.

Resources built by the application lifespan live on ``app.state``; these
functions hand them to route handlers so tests can swap them through
``app.dependency_overrides``.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from prenatal_chat.config import PrenatalChatConfig
from prenatal_chat.db.connection import get_db
from prenatal_chat.services.ai_gateway_client import AIGatewayClient
from prenatal_chat.services.conversation_service import ConversationService
from prenatal_chat.services.favorite_service import FavoriteService


def get_config(request: Request) -> PrenatalChatConfig:
    """Configuration the app was built with."""
    return request.app.state.config


def get_gateway(request: Request) -> AIGatewayClient:
    """Process-wide AI service client opened in the lifespan."""
    return request.app.state.gateway


def get_conversation_service(db: Session = Depends(get_db)) -> ConversationService:
    """Dependency injector for ConversationService."""
    return ConversationService(db)


def get_favorite_service(db: Session = Depends(get_db)) -> FavoriteService:
    """Dependency injector for FavoriteService."""
    return FavoriteService(db)
