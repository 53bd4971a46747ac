"""Client tests: API wrapper against the app, optimistic updates with rollback."""
from datetime import date, datetime

import httpx
import pytest

from chatapp.client import cli
from chatapp.client.api import ChatAPIClient, ChatAPIError
from chatapp.client.state import ChatViewState, ViewChat, ViewMessage, date_label
from chatapp.client.typewriter import reveal
from conftest import make_token


@pytest.fixture
def api(client):
    return ChatAPIClient("http://testserver", make_token("u1"), "u1", http_client=client)


@pytest.fixture
def state(api):
    return ChatViewState(api)


def failing_api(status_code=503):
    def handler(request):
        return httpx.Response(status_code, json={"detail": "Chat service temporarily unavailable"})

    http_client = httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(handler))
    return ChatAPIClient("http://testserver", "token", "u1", http_client=http_client)


def loaded_chat():
    now = datetime(2026, 10, 19, 12, 0)
    return ViewChat(
        id="abc",
        title="Existing",
        created_at=now,
        updated_at=now,
        messages=[
            ViewMessage(id="1", role="user", content="hi", timestamp=now),
            ViewMessage(id="2", role="assistant", content="hello", timestamp=now),
        ],
    )


def test_send_without_active_chat_creates_and_reconciles(state, provider):
    reply = state.send("Explain recursion")

    assert reply.role == "assistant"
    assert reply.content == provider.reply
    assert not state.active.is_temporary
    assert state.active.title == "Recursion Explained"
    assert [c.id for c in state.chats] == [state.active.id]
    assert state.streaming_message_id == reply.id
    assert state.is_generating is False


def test_send_in_active_chat_appends_turn_and_moves_chat_to_front(state):
    state.send("first chat")
    first_id = state.active.id
    state.new_chat()
    state.send("second chat")

    state.open(first_id)
    state.send("follow up")

    assert [m.content for m in state.active.messages][-2] == "follow up"
    assert len(state.active.messages) == 4
    assert state.chats[0].id == first_id


def test_refresh_and_delete_round_trip(state, api):
    state.send("to be deleted")
    chat_id = state.active.id

    assert [c.id for c in state.refresh()] == [chat_id]

    state.delete(chat_id)

    assert state.chats == []
    assert state.active is None
    assert api.list_chats() == []


def test_failed_new_chat_is_rolled_back():
    state = ChatViewState(failing_api())

    with pytest.raises(ChatAPIError) as excinfo:
        state.send("hello")

    assert excinfo.value.status_code == 503
    assert excinfo.value.detail == "Chat service temporarily unavailable"
    assert state.chats == []
    assert state.active is None
    assert state.is_generating is False


def test_failed_message_in_existing_chat_is_rolled_back():
    state = ChatViewState(failing_api())
    chat = loaded_chat()
    state.chats = [chat]
    state.active = chat

    with pytest.raises(ChatAPIError):
        state.send("this will fail")

    assert [m.content for m in state.active.messages] == ["hi", "hello"]
    assert state.chats[0] is state.active


def test_failed_delete_restores_chat():
    state = ChatViewState(failing_api(status_code=404))
    chat = loaded_chat()
    state.chats = [chat]
    state.active = chat

    with pytest.raises(ChatAPIError):
        state.delete("abc")

    assert [c.id for c in state.chats] == ["abc"]
    assert state.active.id == "abc"


def test_blank_message_is_rejected_locally():
    state = ChatViewState(failing_api())

    with pytest.raises(ValueError):
        state.send("   ")


def test_grouped_chats_uses_date_labels():
    today = date(2026, 10, 19)

    assert date_label(today, today) == "Today"
    assert date_label(date(2026, 10, 18), today) == "Yesterday"
    assert date_label(date(2026, 10, 14), today) == "Previous 7 Days"
    assert date_label(date(2026, 9, 25), today) == "Previous 30 Days"
    assert date_label(date(2026, 3, 2), today) == "March 2026"

    state = ChatViewState(failing_api())
    state.chats = [loaded_chat()]
    assert list(state.grouped_chats(today=today)) == ["Today"]


def test_reveal_writes_one_character_per_delay():
    written, slept = [], []

    reveal("abc", delay=0.5, write=written.append, sleep=slept.append)

    assert written == ["a", "b", "c", "\n"]
    assert slept == [0.5, 0.5, 0.5]


def test_cli_sends_messages_and_handles_commands(state, capsys):
    assert cli.handle_command(state, "Explain recursion", delay=0) is True
    assert cli.handle_command(state, "/list", delay=0) is True
    assert cli.handle_command(state, "/bogus", delay=0) is True
    assert cli.handle_command(state, "/exit", delay=0) is False

    out = capsys.readouterr().out
    assert "[Recursion Explained]" in out
    assert "Assistant: Recursion is a function calling itself." in out
    assert "Today" in out
    assert "Unknown command." in out
    assert state.streaming_message_id is None
