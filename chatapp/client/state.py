"""Client-side view state with optimistic updates.

Every mutating operation applies its local change immediately, keeps a
snapshot of the state before the change, and restores that snapshot if the
paired API call fails.
"""
from copy import deepcopy
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4
import logging

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chatapp.client.api import ChatAPIClient

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp-"
PLACEHOLDER_TITLE = "New conversation"


def _temp_id() -> str:
    return f"{TEMP_PREFIX}{uuid4().hex}"


class ViewModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ViewMessage(ViewModel):
    id: str = Field(alias="_id")
    role: str
    content: str
    timestamp: datetime

    @classmethod
    def from_api(cls, data: dict) -> "ViewMessage":
        return cls.model_validate({**data, "_id": str(data["_id"])})


class ViewChat(ViewModel):
    id: str = Field(alias="_id")
    title: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    messages: list[ViewMessage] = []

    @property
    def is_temporary(self) -> bool:
        return self.id.startswith(TEMP_PREFIX)

    @classmethod
    def from_api(cls, data: dict) -> "ViewChat":
        messages = [ViewMessage.from_api(m) for m in data.get("messages", [])]
        return cls.model_validate({**data, "messages": messages})


class ChatViewState:
    """
    Local mirror of the user's chats.

    Attributes:
        chats: Summaries (and loaded chats), most recent first
        active: Chat currently open, or None for a fresh conversation
        streaming_message_id: Assistant message whose text is being revealed
        is_generating: True while a chat turn is in flight
    """

    def __init__(self, api: ChatAPIClient):
        self.api = api
        self.chats: list[ViewChat] = []
        self.active: Optional[ViewChat] = None
        self.streaming_message_id: Optional[str] = None
        self.is_generating = False

    def _snapshot(self) -> tuple:
        return deepcopy((self.chats, self.active, self.streaming_message_id))

    def _restore(self, snapshot: tuple) -> None:
        self.chats, self.active, self.streaming_message_id = snapshot

    def _move_to_front(self, chat: ViewChat) -> None:
        self.chats = [chat] + [c for c in self.chats if c.id != chat.id]

    def refresh(self) -> list[ViewChat]:
        """Reload chat summaries from the server."""
        self.chats = [ViewChat.from_api(c) for c in self.api.list_chats()]
        if self.active is not None and not self.active.is_temporary:
            # Keep the loaded messages of the open chat
            self.chats = [self.active if c.id == self.active.id else c for c in self.chats]
        return self.chats

    def open(self, chat_id: str) -> ViewChat:
        """Load a full chat and make it active."""
        chat = ViewChat.from_api(self.api.get_chat(chat_id))
        self.chats = [chat if c.id == chat.id else c for c in self.chats]
        self.active = chat
        self.streaming_message_id = None
        return chat

    def new_chat(self) -> None:
        """Clear the active chat; the next send starts a new one."""
        self.active = None
        self.streaming_message_id = None

    def send(self, message: str) -> ViewMessage:
        """
        Send a message in the active chat (or start a new chat).

        Returns:
            The assistant reply, also recorded as streaming_message_id

        Raises:
            ValueError: If message is blank
            ChatAPIError: If the request fails; local state is rolled back
        """
        text = message.strip()
        if not text:
            raise ValueError("Message cannot be empty")

        snapshot = self._snapshot()
        now = datetime.now(timezone.utc)
        user_msg = ViewMessage(id=_temp_id(), role="user", content=text, timestamp=now)

        self.is_generating = True
        try:
            if self.active is None:
                reply = self._send_new(text, user_msg, now)
            else:
                reply = self._send_existing(text, user_msg)
        except Exception:
            logger.debug("Chat turn failed, restoring previous state")
            self._restore(snapshot)
            raise
        finally:
            self.is_generating = False

        self.streaming_message_id = reply.id
        return reply

    def _send_new(self, text: str, user_msg: ViewMessage, now: datetime) -> ViewMessage:
        temp = ViewChat(
            id=_temp_id(),
            title=PLACEHOLDER_TITLE,
            created_at=now,
            updated_at=now,
            messages=[user_msg],
        )
        self.chats.insert(0, temp)
        self.active = temp

        body = self.api.send_message(text)

        chat = ViewChat.from_api(body["chat"])
        self.chats = [chat if c.id == temp.id else c for c in self.chats]
        self.active = chat
        return chat.messages[-1]

    def _send_existing(self, text: str, user_msg: ViewMessage) -> ViewMessage:
        chat = self.active
        chat.messages.append(user_msg)

        body = self.api.send_message(text, chat_id=chat.id)

        reply = ViewMessage.from_api(body["message"])
        chat.messages.append(reply)
        chat.updated_at = reply.timestamp
        self._move_to_front(chat)
        return reply

    def finish_streaming(self) -> None:
        self.streaming_message_id = None

    def delete(self, chat_id: str) -> None:
        """
        Delete a chat, removing it locally first.

        Raises:
            ChatAPIError: If the server delete fails; the chat is restored
        """
        snapshot = self._snapshot()

        self.chats = [c for c in self.chats if c.id != chat_id]
        if self.active is not None and self.active.id == chat_id:
            self.active = None
            self.streaming_message_id = None

        try:
            self.api.delete_chat(chat_id)
        except Exception:
            self._restore(snapshot)
            raise

    def grouped_chats(self, today: Optional[date] = None) -> dict[str, list[ViewChat]]:
        """Group chats by creation date for display, preserving order."""
        today = today or datetime.now(timezone.utc).date()
        groups: dict[str, list[ViewChat]] = {}
        for chat in self.chats:
            groups.setdefault(date_label(chat.created_at.date(), today), []).append(chat)
        return groups


def date_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    if day > today - timedelta(days=7):
        return "Previous 7 Days"
    if day > today - timedelta(days=30):
        return "Previous 30 Days"
    return day.strftime("%B %Y")
