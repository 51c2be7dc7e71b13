"""CLI data models and the client error type.

Response payloads from the backend are parsed into these dataclasses by
``from_api`` constructors that tolerate extra fields, so the CLI keeps
working when the server adds keys.
"""

from dataclasses import dataclass, field


@dataclass
class ChatReply:
    """Result of one chat turn (POST /api/chat)."""

    response: str
    conversation_id: str
    message_id: str
    timestamp: str

    @classmethod
    def from_api(cls, data: dict) -> "ChatReply":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            response=data["response"],
            conversation_id=data["conversation_id"],
            message_id=data["message_id"],
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class ConversationSummary:
    """One row of a user's conversation list."""

    conversation_id: str
    user_id: str
    title: str
    created_at: str
    updated_at: str
    message_count: int = 0
    last_message_preview: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "ConversationSummary":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            conversation_id=data["conversation_id"],
            user_id=data.get("user_id", ""),
            title=data.get("title", ""),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            message_count=data.get("message_count", 0),
            last_message_preview=data.get("last_message_preview", ""),
        )


@dataclass
class MessageRecord:
    """A stored user or AI message."""

    message_id: str
    conversation_id: str
    type: str
    content: str
    timestamp: str
    metadata: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict) -> "MessageRecord":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            message_id=data["message_id"],
            conversation_id=data.get("conversation_id", ""),
            type=data["type"],
            content=data.get("content", ""),
            timestamp=data.get("timestamp", ""),
            metadata=data.get("metadata") or {},
        )


@dataclass
class ConversationDetail:
    """A conversation with its messages in chronological order.

    ``total_messages`` is the number of stored messages. It can differ from
    ``conversation.message_count`` after a turn failed part-way.
    """

    conversation: ConversationSummary
    messages: list[MessageRecord]
    total_messages: int

    @property
    def count_mismatch(self) -> bool:
        return self.conversation.message_count != self.total_messages

    @classmethod
    def from_api(cls, data: dict) -> "ConversationDetail":
        """Construct from API JSON, tolerating extra fields."""
        messages = [MessageRecord.from_api(m) for m in data.get("messages", [])]
        return cls(
            conversation=ConversationSummary.from_api(data["conversation"]),
            messages=messages,
            total_messages=data.get("total_messages", len(messages)),
        )


@dataclass
class FavoriteRecord:
    """A bookmarked AI reply snapshot."""

    favorite_id: str
    message_id: str
    conversation_id: str
    message_content: str
    favorited_at: str
    conversation_title: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "FavoriteRecord":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            favorite_id=data["favorite_id"],
            message_id=data["message_id"],
            conversation_id=data.get("conversation_id", ""),
            message_content=data.get("message_content", ""),
            favorited_at=data.get("favorited_at", ""),
            conversation_title=data.get("conversation_title", ""),
        )


@dataclass
class Pagination:
    """Pagination block of GET /api/favorites/{user_id}."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_api(cls, data: dict) -> "Pagination":
        """Construct from API JSON (camelCase keys)."""
        return cls(
            page=data["page"],
            limit=data["limit"],
            total=data["total"],
            total_pages=data.get("totalPages", 0),
            has_next=data.get("hasNext", False),
            has_prev=data.get("hasPrev", False),
        )


@dataclass
class FavoritesPage:
    """One page of a user's favorites."""

    favorites: list[FavoriteRecord]
    pagination: Pagination

    @classmethod
    def from_api(cls, data: dict) -> "FavoritesPage":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            favorites=[FavoriteRecord.from_api(f) for f in data.get("favorites", [])],
            pagination=Pagination.from_api(data["pagination"]),
        )


@dataclass
class HealthStatus:
    """Result of GET /api/health."""

    status: str
    database: str
    ai_service: str
    timestamp: str = ""
    error: str | None = None

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"

    @classmethod
    def from_api(cls, data: dict) -> "HealthStatus":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            status=data.get("status", "unhealthy"),
            database=data.get("database", "unknown"),
            ai_service=data.get("ai_service", "unknown"),
            timestamp=data.get("timestamp", ""),
            error=data.get("error"),
        )


class ChatClientError(Exception):
    """Error raised by HttpClient for failed requests.

    CLI commands catch this and convert it to a Rich error message plus
    ``typer.Exit(1)``; the REPL records it on the failed transcript entry.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
