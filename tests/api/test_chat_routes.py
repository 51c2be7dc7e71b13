"""Tests for POST /api/chat."""

import httpx
from sqlalchemy import select

from prenatal_chat.db.models import Conversation, Message


class TestNewConversationTurn:
    def test_returns_reply_with_fresh_ids(self, send_chat, fake_ai):
        fake_ai.reply = "Hi there"
        resp = send_chat("Hello")
        assert resp.status_code == 200
        data = resp.json()
        assert data["response"] == "Hi there"
        assert data["conversation_id"]
        assert data["message_id"]
        assert data["timestamp"]

    def test_creates_conversation_and_both_messages(self, send_chat, store):
        data = send_chat("Hello").json()

        conv = store.scalars(
            select(Conversation).where(Conversation.conversation_id == data["conversation_id"])
        ).one()
        assert conv.user_id == "u1"
        assert conv.title == "Hello"
        assert conv.message_count == 2

        msgs = list(
            store.scalars(
                select(Message)
                .where(Message.conversation_id == data["conversation_id"])
                .order_by(Message.timestamp)
            )
        )
        assert [m.type for m in msgs] == ["user", "ai"]
        assert msgs[1].message_id == data["message_id"]

    def test_long_first_message_is_truncated_into_title(self, send_chat, store):
        text = "x" * 120
        data = send_chat(text).json()
        conv = store.scalars(
            select(Conversation).where(Conversation.conversation_id == data["conversation_id"])
        ).one()
        assert conv.title == "x" * 50 + "..."

    def test_conversation_id_is_sent_as_thread_id(self, send_chat, fake_ai):
        data = send_chat("Hello", user_id="u7").json()
        assert fake_ai.requests == [
            {"message": "Hello", "thread_id": data["conversation_id"], "user_id": "u7"}
        ]

    def test_ai_message_metadata(self, send_chat, client, fake_ai):
        fake_ai.reply = "Hi there"
        data = send_chat("Hello").json()
        detail = client.get(f"/api/conversations/{data['conversation_id']}/messages").json()
        ai_msg = detail["messages"][1]
        assert ai_msg["metadata"] == {
            "fastapi_thread_id": data["conversation_id"],
            "model_used": "gpt-4o-mini",
        }
        assert detail["messages"][0]["metadata"] == {"user_id": "u1"}


class TestExistingConversationTurn:
    def test_second_turn_appends_and_counts(self, send_chat, client):
        first = send_chat("Hello").json()
        second = send_chat("How much water?", conversation_id=first["conversation_id"])
        assert second.status_code == 200
        assert second.json()["conversation_id"] == first["conversation_id"]

        detail = client.get(f"/api/conversations/{first['conversation_id']}/messages").json()
        assert detail["total_messages"] == 4
        assert detail["conversation"]["message_count"] == 4
        assert detail["conversation"]["title"] == "Hello"

    def test_preview_tracks_latest_reply(self, send_chat, client, fake_ai):
        first = send_chat("Hello").json()
        fake_ai.reply = "y" * 150
        send_chat("Again", conversation_id=first["conversation_id"])
        convs = client.get("/api/conversations/u1").json()["conversations"]
        assert convs[0]["last_message_preview"] == "y" * 100


class TestChatValidation:
    def test_missing_message_is_400(self, client):
        resp = client.post("/api/chat", json={"user_id": "u1"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Message and user_id are required"}

    def test_missing_user_is_400(self, client):
        resp = client.post("/api/chat", json={"message": "Hello"})
        assert resp.status_code == 400

    def test_empty_message_is_400(self, send_chat, fake_ai):
        resp = send_chat("")
        assert resp.status_code == 400
        assert fake_ai.requests == []


class TestGatewayFailures:
    def test_connection_refused_is_503_and_keeps_user_message(
        self, send_chat, client, fake_ai, store
    ):
        fake_ai.error = httpx.ConnectError("connection refused")
        resp = send_chat("Hello")
        assert resp.status_code == 503
        assert resp.json()["error"] == "AI service temporarily unavailable"

        conv = store.scalars(select(Conversation)).one()
        detail = client.get(f"/api/conversations/{conv.conversation_id}/messages").json()
        assert [m["type"] for m in detail["messages"]] == ["user"]
        assert detail["messages"][0]["content"] == "Hello"
        assert detail["conversation"]["message_count"] == 0

    def test_timeout_is_503(self, send_chat, fake_ai):
        fake_ai.error = httpx.ReadTimeout("timed out")
        resp = send_chat("Hello")
        assert resp.status_code == 503
        assert resp.json()["error"] == "AI service timed out"

    def test_422_is_400_invalid_request_format(self, send_chat, fake_ai):
        fake_ai.status_code = 422
        resp = send_chat("Hello")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request format"

    def test_other_upstream_error_is_500(self, send_chat, fake_ai):
        fake_ai.status_code = 502
        resp = send_chat("Hello")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"
