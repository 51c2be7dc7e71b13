"""CLI command smoke tests via typer's CliRunner.

HttpClient is replaced by a stub so no backend is needed.
"""

import pytest
from typer.testing import CliRunner

from prenatal_chat.cli import main as cli_main
from prenatal_chat.cli.main import app
from prenatal_chat.cli.protocol import (
    ChatClientError,
    ConversationSummary,
    FavoritesPage,
    HealthStatus,
    Pagination,
)

runner = CliRunner()


class StubClient:
    """Async stand-in for HttpClient."""

    instances: list["StubClient"] = []

    def __init__(self, base_url: str = "", **kwargs):
        self.base_url = base_url
        self.calls: list[tuple] = []
        self.health_status = HealthStatus(
            status="healthy", database="connected", ai_service="connected"
        )
        StubClient.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None

    async def health(self):
        return self.health_status

    async def list_conversations(self, user_id):
        self.calls.append(("list_conversations", user_id))
        return [
            ConversationSummary(
                conversation_id="c1",
                user_id=user_id,
                title="Hello",
                created_at="2026-01-01T10:00:00+00:00",
                updated_at="2026-01-01T10:00:05+00:00",
                message_count=2,
                last_message_preview="Hi there",
            )
        ]

    async def create_conversation(self, user_id, title=None):
        self.calls.append(("create_conversation", user_id, title))
        return "c-new"

    async def delete_conversation(self, conversation_id, user_id):
        self.calls.append(("delete_conversation", conversation_id, user_id))
        raise ChatClientError("Conversation not found", 404)

    async def list_favorites(self, user_id, page=1, limit=10):
        self.calls.append(("list_favorites", user_id, page, limit))
        return FavoritesPage(
            favorites=[],
            pagination=Pagination(
                page=page, limit=limit, total=0, total_pages=0,
                has_next=False, has_prev=False,
            ),
        )

    async def check_favorite(self, user_id, message_id):
        return True, "f1"


@pytest.fixture(autouse=True)
def stub_client(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PRENATAL_CHAT_CONFIG_PATH", raising=False)
    StubClient.instances = []
    monkeypatch.setattr(cli_main, "HttpClient", StubClient)
    return StubClient


class TestHelp:
    def test_root_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "conversations" in result.output
        assert "favorites" in result.output

    def test_favorites_help(self):
        result = runner.invoke(app, ["favorites", "--help"])
        assert result.exit_code == 0
        assert "check" in result.output


class TestCommands:
    def test_health_ok(self):
        result = runner.invoke(app, ["health"])
        assert result.exit_code == 0
        assert "healthy" in result.output

    def test_conversations_list_uses_user_and_url(self):
        result = runner.invoke(
            app, ["--url", "http://backend:3001", "--user", "u9", "conversations", "list"]
        )
        assert result.exit_code == 0
        client = StubClient.instances[0]
        assert client.base_url == "http://backend:3001"
        assert client.calls == [("list_conversations", "u9")]
        assert "c1" in result.output

    def test_conversations_list_json(self):
        result = runner.invoke(app, ["conversations", "list", "--json"])
        assert result.exit_code == 0
        assert '"conversation_id": "c1"' in result.output

    def test_conversations_new(self):
        result = runner.invoke(app, ["conversations", "new", "--title", "Week 20"])
        assert result.exit_code == 0
        assert "c-new" in result.output
        assert StubClient.instances[0].calls == [
            ("create_conversation", "default-user", "Week 20")
        ]

    def test_client_error_exits_1(self):
        result = runner.invoke(app, ["conversations", "delete", "c1", "--yes"])
        assert result.exit_code == 1
        assert "Conversation not found" in result.output

    def test_favorites_list_empty(self):
        result = runner.invoke(app, ["favorites", "list", "--page", "2", "--limit", "5"])
        assert result.exit_code == 0
        assert "No favorites found." in result.output
        assert StubClient.instances[0].calls == [("list_favorites", "default-user", 2, 5)]

    def test_favorites_check(self):
        result = runner.invoke(app, ["favorites", "check", "m2"])
        assert result.exit_code == 0
        assert "Favorited" in result.output

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(
            app, ["--config", str(tmp_path / "nope.yaml"), "conversations", "list"]
        )
        assert result.exit_code == 1
