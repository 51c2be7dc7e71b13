"""Pytest fixtures for API tests.

The app is built with an in-memory store and rate limiting off; the AI
service client is swapped for one backed by the fake AI service.
"""

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from prenatal_chat.api.dependencies import get_gateway
from prenatal_chat.api.main import create_app
from prenatal_chat.config import (
    DatabaseConfig,
    GatewayConfig,
    PrenatalChatConfig,
    RateLimitConfig,
    ServerConfig,
)


@pytest.fixture
def app_config() -> PrenatalChatConfig:
    """Configuration for a test app."""
    return PrenatalChatConfig(
        server=ServerConfig(allowed_origins=["http://localhost:5173"]),
        database=DatabaseConfig(url="sqlite://"),
        gateway=GatewayConfig(url="http://ai.test"),
        rate_limit=RateLimitConfig(enabled=False),
    )


@pytest.fixture
def app(app_config: PrenatalChatConfig, gateway) -> FastAPI:
    """App under test with the gateway dependency overridden."""
    application = create_app(app_config)
    application.dependency_overrides[get_gateway] = lambda: gateway
    return application


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient running the app lifespan.

    Yields:
        TestClient configured for testing.
    """
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def store(client: TestClient) -> Generator[Session, None, None]:
    """Session on the app's own store, for arranging and inspecting rows."""
    session = client.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def send_chat(client: TestClient):
    """POST /api/chat helper."""

    def _send(message: str, user_id: str = "u1", conversation_id: str | None = None):
        return client.post(
            "/api/chat",
            json={
                "message": message,
                "user_id": user_id,
                "conversation_id": conversation_id,
            },
        )

    return _send
