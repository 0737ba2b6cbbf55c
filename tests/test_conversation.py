"""
Tests for chat sessions and the conversation store.
"""

import json

from sleeper_chat.session.conversation import ChatSession, ConversationStore


def test_function_result_round_trips_byte_identical():
    session = ChatSession("chat-1")
    snapshot = json.dumps({"userInfo": {"user_id": "U9", "display_name": "Gridiron Guru ✓"}, "userLeagues": []})

    session.append_user("I'm gridironguru")
    session.append_function_call("getUserInfo", '{"username": "gridironguru"}')
    session.append_function_result("getUserInfo", snapshot)

    history = session.llm_history()

    assert history[-1] == {"role": "function", "name": "getUserInfo", "content": snapshot}
    assert history[-2] == {
        "role": "assistant",
        "content": None,
        "function_call": {"name": "getUserInfo", "arguments": '{"username": "gridironguru"}'}
    }


def test_history_excludes_data_and_tool_roles():
    session = ChatSession("chat-1")
    session.append_user("hi")
    session.append(session.messages[0].model_copy(update={"id": "x", "role": "data"}))
    session.append_assistant("hello")

    assert [m["role"] for m in session.llm_history()] == ["user", "assistant"]


def test_truncated_history_never_starts_with_function_result():
    session = ChatSession("chat-1")
    session.append_user("who am I")
    session.append_function_call("getUserInfo", "{}")
    session.append_function_result("getUserInfo", "{}")
    session.append_assistant("You are U9")

    history = session.llm_history(max_messages=2)

    assert [m["role"] for m in history] == ["assistant"]
    assert len(session.llm_history(max_messages=0)) == 4


def test_appends_track_last_message_time():
    session = ChatSession("chat-1")
    assert session.last_message_at is None

    message = session.append_system("[User has set their draft position to 5]")

    assert session.last_message_at == message.created_at
    assert session.messages[-1].role == "system"


def test_store_lifecycle():
    store = ConversationStore()

    session = store.create()
    same = store.create(session.chat_id)

    assert same is session
    assert store.get(session.chat_id) is session
    assert store.get_or_create("other").chat_id == "other"
    assert len(store) == 2

    assert store.end(session.chat_id) is True
    assert store.end(session.chat_id) is False
    assert store.get(session.chat_id) is None
    assert [s.chat_id for s in store.list_sessions()] == ["other"]


def test_sessions_have_separate_roster_caches():
    store = ConversationStore()
    first = store.create("a")
    second = store.create("b")

    first.roster_owners.populate("L1", [{"roster_id": 1, "owner_id": "U1"}])

    assert second.roster_owners.owner_of("L1", "1") is None
