"""Root-level pytest fixtures for all tests.

Provides:
- An in-memory SQLite store (engine, session factory, session)
- A scriptable fake of the external AI service behind httpx.MockTransport
"""

import json
from collections.abc import Generator

import httpx
import pytest
from sqlalchemy.orm import Session

from prenatal_chat.db.connection import create_db_engine, create_session_factory, init_db
from prenatal_chat.services.ai_gateway_client import AIGatewayClient


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services"
    )


class FakeAIService:
    """Scriptable stand-in for the AI completion service.

    Attributes:
        reply: Text returned by POST /chat.
        status_code: Status returned by POST /chat.
        error: Exception raised instead of answering (e.g. httpx.ConnectError).
        healthy: Whether GET / answers 200.
        requests: JSON bodies received by POST /chat.
    """

    def __init__(self) -> None:
        self.reply = "Drink plenty of water and rest when you can."
        self.model: str | None = None
        self.status_code = 200
        self.error: Exception | None = None
        self.healthy = True
        self.requests: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path == "/":
            if not self.healthy:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"status": "ok"})

        body = json.loads(request.content)
        self.requests.append(body)
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"detail": "rejected"})
        payload = {"response": self.reply, "thread_id": body.get("thread_id")}
        if self.model:
            payload["model"] = self.model
        return httpx.Response(200, json=payload)


@pytest.fixture
def fake_ai() -> FakeAIService:
    """Fresh fake AI service per test."""
    return FakeAIService()


@pytest.fixture
def gateway(fake_ai: FakeAIService) -> Generator[AIGatewayClient, None, None]:
    """AIGatewayClient wired to the fake AI service."""
    client = AIGatewayClient(
        "http://ai.test", transport=httpx.MockTransport(fake_ai.handler)
    )
    yield client
    client.close()


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    """Session bound to the in-memory store."""
    session = create_session_factory(db_engine)()
    try:
        yield session
    finally:
        session.close()
