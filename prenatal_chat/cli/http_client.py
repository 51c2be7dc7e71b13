"""Async HTTP client for the prenatal chat backend.

Thin wrapper around httpx. Every method maps to one REST endpoint. Error
responses raise ChatClientError, never typer.Exit, so the client is
reusable from scripts and tests.
"""

import logging

import httpx

from prenatal_chat.cli.protocol import (
    ChatClientError,
    ChatReply,
    ConversationDetail,
    ConversationSummary,
    FavoritesPage,
    HealthStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

# Status codes whose server text is replaced by a fixed, user-facing line.
_STATUS_MESSAGES = {
    503: "AI service temporarily unavailable",
    429: "Too many requests - please wait a moment",
}
TIMEOUT_MESSAGE = "Request timeout - please try again"


class HttpClient:
    """Talks to the backend API over HTTP.

    Args:
        base_url: Backend root, e.g. ``http://127.0.0.1:3001``.
        timeout: Per-request ceiling in seconds.
        transport: Optional httpx transport (tests inject a fake one).
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3001",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Open httpx async client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close httpx async client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("HttpClient used outside 'async with'")
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ChatClientError(TIMEOUT_MESSAGE) from e
        except httpx.TransportError as e:
            raise ChatClientError(
                f"Cannot reach backend at {self._base_url}: {e}"
            ) from e
        logger.debug("%s %s -> %d", method, path, resp.status_code)
        self._raise_for_status(resp)
        return resp

    def _raise_for_status(self, resp: httpx.Response) -> None:
        """Raise ChatClientError on non-2xx responses.

        Args:
            resp: httpx.Response to check.

        Raises:
            ChatClientError: On non-2xx status codes.
        """
        if resp.status_code < 400:
            return
        message = _STATUS_MESSAGES.get(resp.status_code)
        if message is None:
            try:
                message = str(resp.json().get("error") or resp.text)
            except ValueError:
                message = resp.text or f"HTTP {resp.status_code}"
        raise ChatClientError(message=message, status_code=resp.status_code)

    async def send_message(
        self, message: str, user_id: str, conversation_id: str | None = None
    ) -> ChatReply:
        """Submit one turn via POST /api/chat."""
        resp = await self._request(
            "POST",
            "/api/chat",
            json={
                "message": message,
                "conversation_id": conversation_id,
                "user_id": user_id,
            },
        )
        return ChatReply.from_api(resp.json())

    async def list_conversations(self, user_id: str) -> list[ConversationSummary]:
        """List a user's conversations, most recently updated first."""
        resp = await self._request("GET", f"/api/conversations/{user_id}")
        return [
            ConversationSummary.from_api(c) for c in resp.json().get("conversations", [])
        ]

    async def get_conversation(self, conversation_id: str) -> ConversationDetail:
        """Fetch a conversation and its messages."""
        resp = await self._request(
            "GET", f"/api/conversations/{conversation_id}/messages"
        )
        return ConversationDetail.from_api(resp.json())

    async def create_conversation(
        self, user_id: str, title: str | None = None
    ) -> str:
        """Create an empty conversation and return its id."""
        body: dict = {"user_id": user_id}
        if title:
            body["title"] = title
        resp = await self._request("POST", "/api/conversations/new", json=body)
        return resp.json()["conversation_id"]

    async def delete_conversation(self, conversation_id: str, user_id: str) -> None:
        """Delete a conversation owned by ``user_id`` together with its messages."""
        await self._request(
            "DELETE",
            f"/api/conversations/{conversation_id}",
            json={"user_id": user_id},
        )

    async def add_favorite(
        self, user_id: str, message_id: str, conversation_id: str
    ) -> str:
        """Bookmark a message and return the new favorite id."""
        resp = await self._request(
            "POST",
            "/api/favorites",
            json={
                "user_id": user_id,
                "message_id": message_id,
                "conversation_id": conversation_id,
            },
        )
        return resp.json()["favorite_id"]

    async def remove_favorite(self, user_id: str, message_id: str) -> None:
        """Remove a bookmark."""
        await self._request(
            "DELETE", f"/api/favorites/{message_id}", json={"user_id": user_id}
        )

    async def list_favorites(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> FavoritesPage:
        """Fetch one page of favorites, newest first."""
        resp = await self._request(
            "GET",
            f"/api/favorites/{user_id}",
            params={"page": page, "limit": limit},
        )
        return FavoritesPage.from_api(resp.json())

    async def check_favorite(
        self, user_id: str, message_id: str
    ) -> tuple[bool, str | None]:
        """Return ``(is_favorited, favorite_id)`` for a message."""
        resp = await self._request(
            "GET", f"/api/favorites/{user_id}/check/{message_id}"
        )
        data = resp.json()
        return bool(data.get("is_favorited")), data.get("favorite_id")

    async def health(self) -> HealthStatus:
        """Probe GET /api/health.

        A 503 still carries a health body, so it is parsed rather than raised.
        """
        if self._client is None:
            raise RuntimeError("HttpClient used outside 'async with'")
        try:
            resp = await self._client.get("/api/health")
        except httpx.TimeoutException as e:
            raise ChatClientError(TIMEOUT_MESSAGE) from e
        except httpx.TransportError as e:
            raise ChatClientError(
                f"Cannot reach backend at {self._base_url}: {e}"
            ) from e
        if resp.status_code == 503:
            try:
                return HealthStatus.from_api(resp.json())
            except ValueError:
                pass
        self._raise_for_status(resp)
        return HealthStatus.from_api(resp.json())
