"""Database module for conversation, message and favorite persistence."""

from prenatal_chat.db.connection import (
    create_db_engine,
    create_session_factory,
    get_db,
    init_db,
    session_scope,
)
from prenatal_chat.db.models import (
    Base,
    Conversation,
    Favorite,
    Message,
    MessageType,
)

__all__ = [
    # Models
    "Conversation",
    "Message",
    "Favorite",
    "Base",
    # Enums
    "MessageType",
    # Connection
    "create_db_engine",
    "create_session_factory",
    "get_db",
    "init_db",
    "session_scope",
]
