"""HTTP client for the external AI completion service.

Thin wrapper around a long-lived ``httpx.Client``. One attempt per call,
no retry or backoff: transport failures are surfaced as typed gateway
errors and the caller decides whether to resubmit.

Contract:
    POST {base_url}/chat  {message, thread_id, user_id} -> {response, thread_id}
    GET  {base_url}/      liveness
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from prenatal_chat.errors.domain import (
    GatewayBadRequestError,
    GatewayError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_HEALTH_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class GatewayReply:
    """Reply returned by the AI service for one chat turn.

    Attributes:
        text: Generated reply.
        thread_id: Thread id echoed back by the service.
        model: Model identifier, when the service reports one.
    """

    text: str
    thread_id: str | None = None
    model: str | None = None


class AIGatewayClient:
    """Synchronous client for the AI service.

    Args:
        base_url: Service root, e.g. ``http://localhost:8001``.
        timeout: Overall ceiling for a chat completion, in seconds. Also
            bounds each connect and read step; checked between body chunks.
        health_timeout: Ceiling for the liveness probe, in seconds.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        health_timeout: float = DEFAULT_HEALTH_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._health_timeout = health_timeout
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    def __enter__(self) -> "AIGatewayClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def complete(self, text: str, thread_id: str, user_id: str) -> GatewayReply:
        """Request a completion for one user message.

        Args:
            text: User message text.
            thread_id: Conversation id, used as the service's thread id.
            user_id: Opaque id of the submitting user.

        Returns:
            GatewayReply with the generated text.

        Raises:
            GatewayTimeoutError: No response within the timeout.
            GatewayUnavailableError: Service unreachable.
            GatewayBadRequestError: Service answered 422.
            GatewayError: Any other non-2xx or malformed reply.
        """
        payload = {"message": text, "thread_id": thread_id, "user_id": user_id}
        deadline = time.monotonic() + self._timeout
        try:
            with self._client.stream(
                "POST", "/chat", json=payload, timeout=self._timeout
            ) as response:
                raw = _read_until(response, deadline)
        except httpx.TimeoutException as e:
            logger.warning("AI service timed out after %.0fs: %s", self._timeout, e)
            raise GatewayTimeoutError("Please try again in a moment") from e
        except httpx.TransportError as e:
            logger.warning("AI service unreachable at %s: %s", self._base_url, e)
            raise GatewayUnavailableError("Please try again in a moment") from e

        if response.status_code == 422:
            raise GatewayBadRequestError(
                "AI service rejected the request payload",
                details=_safe_json(raw),
            )
        if response.status_code >= 400:
            logger.warning(
                "AI service returned HTTP %d for thread %s",
                response.status_code,
                thread_id,
            )
            raise GatewayError(f"AI service returned HTTP {response.status_code}")

        body = _safe_json(raw)
        if not isinstance(body, dict) or not isinstance(body.get("response"), str):
            raise GatewayError("AI service returned an unexpected payload")

        return GatewayReply(
            text=body["response"],
            thread_id=body.get("thread_id"),
            model=body.get("model"),
        )

    def ping(self) -> bool:
        """Probe ``GET /`` with the short health timeout.

        Returns:
            True if the service answered 200, False otherwise.
        """
        try:
            response = self._client.get("/", timeout=self._health_timeout)
        except httpx.HTTPError as e:
            logger.debug("AI service health probe failed: %s", e)
            return False
        return response.status_code == 200


def _read_until(response: httpx.Response, deadline: float) -> bytes:
    """Read the whole body, failing once the monotonic deadline passes.

    The per-read httpx timeout only bounds each chunk; a service trickling
    its reply would otherwise hold the call open indefinitely.
    """
    chunks = []
    for chunk in response.iter_bytes():
        if time.monotonic() > deadline:
            raise httpx.ReadTimeout(
                "AI service exceeded the response deadline", request=response.request
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _safe_json(raw: bytes) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")
