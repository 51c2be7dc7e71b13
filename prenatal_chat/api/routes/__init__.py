"""API route modules for the prenatal chat backend."""

from prenatal_chat.api.routes import chat, conversations, favorites, health

__all__ = ["chat", "conversations", "favorites", "health"]
