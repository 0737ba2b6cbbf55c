"""
API tests through FastAPI's TestClient with faked Sleeper and OpenAI backends.
"""

import pytest
from fastapi.testclient import TestClient

from sleeper_chat.agents.chat_turn import ChatTurnHandler
from sleeper_chat.config import settings
from sleeper_chat.dependencies import get_chat_turn_handler, get_conversation_store
from sleeper_chat.main import app
from sleeper_chat.session.conversation import ConversationStore
from tests.sample_data import SAMPLE_LEAGUES, SAMPLE_USER


@pytest.fixture
def store():
    return ConversationStore()


@pytest.fixture
def client_factory(store, sleeper_factory, players, llm_factory, monkeypatch):
    monkeypatch.setattr(settings, "PURCHASE_STEP_DELAY", 0)

    def factory(*responses):
        handler = ChatTurnHandler(
            llm_client=llm_factory(*responses),
            sleeper_service=sleeper_factory({
                "/user/gridironguru": SAMPLE_USER,
                "/user/U9/leagues/nfl/2023": SAMPLE_LEAGUES
            }),
            player_directory=players,
            max_history_messages=0
        )
        app.dependency_overrides[get_conversation_store] = lambda: store
        app.dependency_overrides[get_chat_turn_handler] = lambda: handler
        return TestClient(app)

    yield factory
    app.dependency_overrides.clear()


def test_root_and_health(client_factory):
    client = client_factory()

    assert client.get("/").json()["message"] == "Sleeper Chat Assistant API"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["players_loaded"] > 0
    assert health["active_chats"] == 0


def test_start_chat(client_factory, store):
    client = client_factory()

    response = client.post("/api/chat/start", json={})

    assert response.status_code == 200
    chat_id = response.json()["chat_id"]
    assert store.get(chat_id) is not None


def test_message_turn_returns_events_and_fragments(client_factory, sse):
    client = client_factory(sse.function_call("getUserInfo", {"username": "gridironguru"}))
    chat_id = client.post("/api/chat/start", json={"chat_id": "chat-api"}).json()["chat_id"]

    response = client.post(f"/api/chat/{chat_id}/message", json={"message": "I'm gridironguru"})

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "function"
    assert body["function_name"] == "getUserInfo"
    assert body["states"][-1] == "committed"
    assert body["events"][0]["state"] == "pending"
    assert body["fragments"][0]["kind"] == "user_card"
    assert body["fragments"][0]["profile"]["handle"] == "@gridironguru"


def test_message_to_unknown_chat_is_404(client_factory):
    client = client_factory()

    response = client.post("/api/chat/missing/message", json={"message": "hi"})

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "chat_not_found"


def test_empty_message_is_rejected(client_factory):
    client = client_factory()
    client.post("/api/chat/start", json={"chat_id": "chat-api"})

    response = client.post("/api/chat/chat-api/message", json={"message": ""})

    assert response.status_code == 422


def test_purchase_and_history(client_factory):
    client = client_factory()
    client.post("/api/chat/start", json={"chat_id": "chat-api"})

    purchase = client.post("/api/chat/chat-api/purchase", json={"symbol": "AAPL", "price": 150, "amount": 3})

    assert purchase.status_code == 200
    assert purchase.json()["system_message"] == "[User has purchased 3 shares of AAPL at 150. Total cost = 450]"
    assert purchase.json()["total"] == 450

    history = client.get("/api/chat/chat-api/history").json()
    assert history["message_count"] == 3
    assert [m["role"] for m in history["messages"]] == ["assistant", "function", "system"]
    assert [item["fragment"]["kind"] for item in history["ui"]] == ["purchase_status", "system_notice"]


def test_purchase_validation(client_factory):
    client = client_factory()
    client.post("/api/chat/start", json={"chat_id": "chat-api"})

    response = client.post("/api/chat/chat-api/purchase", json={"symbol": "AAPL", "price": -1, "amount": 3})

    assert response.status_code == 422


def test_end_chat(client_factory, store):
    client = client_factory()
    client.post("/api/chat/start", json={"chat_id": "chat-api"})

    assert client.delete("/api/chat/chat-api").status_code == 200
    assert store.get("chat-api") is None
    assert client.delete("/api/chat/chat-api").status_code == 404


def test_websocket_turn(client_factory, sse, store):
    client = client_factory(sse.text("Hello! ", "What's your username?"))

    with client.websocket_connect("/ws/chat/chat-ws") as websocket:
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json()["type"] == "pong"

        websocket.send_json({"type": "user_message", "content": "hi"})
        messages = []
        while True:
            message = websocket.receive_json()
            messages.append(message)
            if message["type"] == "turn_complete":
                break

    ui_events = [m["data"] for m in messages if m["type"] == "ui_event"]
    assert [event["state"] for event in ui_events] == ["pending", "updating", "updating", "final"]
    assert ui_events[-1]["fragment"]["content"] == "Hello! What's your username?"
    assert messages[-1]["data"]["outcome"] == "text"
    assert [m.role for m in store.get("chat-ws").messages] == ["user", "assistant"]


def test_websocket_rejects_bad_messages(client_factory):
    client = client_factory()

    with client.websocket_connect("/ws/chat/chat-ws") as websocket:
        websocket.send_text("{oops")
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "teleport"})
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "user_message", "content": "   "})
        assert websocket.receive_json()["type"] == "error"
