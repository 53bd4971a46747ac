"""Chat service layer.

Handles:
- Chat creation and continuation (user turn + assistant turn)
- Best-effort title generation
- Ownership-filtered listing, retrieval and deletion
"""
from typing import Optional
import logging
import re

from sqlmodel import Session, select

from chatapp.models.chat import Chat, Message, MessageRole, utc_now
from chatapp.services.completion import CompletionProvider

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New conversation"
REPLY_FALLBACK = (
    "I apologize, but I encountered an issue processing your request. Please try again."
)
TITLE_MAX_WORDS = 6
TITLE_MAX_TOKENS = 20

_QUOTED = re.compile(r"""^["'](.+)["']$""", re.DOTALL)


class ChatNotFoundError(Exception):
    """Raised when a chat does not exist or is not owned by the caller."""


class ChatService:
    """Service layer for chat operations."""

    def __init__(self, provider: Optional[CompletionProvider] = None):
        """Initialize chat service."""
        self.provider = provider or CompletionProvider()

    def generate_title(self, user_message: str) -> str:
        """
        Derive a short chat title from the first user message.

        Never raises: any provider failure or unusable output yields
        DEFAULT_TITLE.
        """
        prompt = (
            "Based on the following user message, generate a short, concise title "
            "(3-6 words only). Return ONLY the title, no quotes or additional text.\n\n"
            f'User message: "{user_message}"'
        )
        try:
            response = self.provider.complete(prompt, max_tokens=TITLE_MAX_TOKENS)
        except Exception as e:
            logger.error(f"Error generating title: {str(e)}")
            return DEFAULT_TITLE

        title = (response or "").strip()
        title = _QUOTED.sub(r"\1", title).strip()
        title = " ".join(title.split()[:TITLE_MAX_WORDS])

        if len(title) < 2:
            return DEFAULT_TITLE

        return title[:255]

    def generate_reply(self, user_message: str) -> str:
        """
        Ask the provider for an assistant reply.

        Never raises: any failure yields REPLY_FALLBACK.
        """
        prompt = (
            "Please respond to the following message in a helpful and concise way: "
            f'"{user_message}"'
        )
        try:
            return self.provider.complete(prompt)
        except Exception as e:
            logger.error(f"Error generating response: {str(e)}")
            return REPLY_FALLBACK

    def get_chat(self, session: Session, user_id: str, chat_id: str) -> Chat:
        """
        Get a chat owned by user_id.

        Raises:
            ChatNotFoundError: If chat does not exist or is not owned by user
        """
        statement = select(Chat).where(
            Chat.id == chat_id,
            Chat.user_id == user_id,
        )
        chat = session.exec(statement).first()

        if not chat:
            raise ChatNotFoundError(f"Chat {chat_id} not found or not owned by user")

        return chat

    def list_chats(self, session: Session, user_id: str) -> list[Chat]:
        """List chats owned by user_id, most recently updated first."""
        statement = select(Chat).where(
            Chat.user_id == user_id
        ).order_by(Chat.updated_at.desc())

        return list(session.exec(statement).all())

    def delete_chat(self, session: Session, user_id: str, chat_id: str) -> bool:
        """
        Delete a chat and its messages.

        Returns:
            True if a chat was deleted, False if nothing matched
        """
        try:
            chat = self.get_chat(session, user_id, chat_id)
        except ChatNotFoundError:
            return False

        session.delete(chat)
        session.commit()
        return True

    def create_chat(self, session: Session, user_id: str, message_text: str) -> Chat:
        """
        Start a new chat from the first user message.

        Flow:
        1. Generate title (falls back to DEFAULT_TITLE)
        2. Store chat with the user message
        3. Generate assistant reply (falls back to REPLY_FALLBACK)
        4. Store assistant message

        Returns:
            The persisted Chat holding one user and one assistant message
        """
        title = self.generate_title(message_text)

        chat = Chat(user_id=user_id, title=title)
        chat.messages.append(Message(role=MessageRole.USER.value, content=message_text))
        self._save(session, chat)

        reply = self.generate_reply(message_text)
        chat.messages.append(Message(role=MessageRole.ASSISTANT.value, content=reply))
        self._save(session, chat)

        logger.info(
            f"Chat created: user={user_id}, chat={chat.id}, messages={len(chat.messages)}"
        )
        return chat

    def add_message(
        self,
        session: Session,
        user_id: str,
        chat_id: str,
        message_text: str,
    ) -> tuple[Chat, Message]:
        """
        Continue an existing chat with a user message and assistant reply.

        Returns:
            Tuple of (chat, assistant_message)

        Raises:
            ChatNotFoundError: If chat does not exist or is not owned by user
        """
        chat = self.get_chat(session, user_id, chat_id)

        chat.messages.append(Message(role=MessageRole.USER.value, content=message_text))
        self._save(session, chat)

        reply = self.generate_reply(message_text)
        assistant_msg = Message(role=MessageRole.ASSISTANT.value, content=reply)
        chat.messages.append(assistant_msg)
        self._save(session, chat)
        session.refresh(assistant_msg)

        logger.info(
            f"Chat message processed: user={user_id}, chat={chat.id}, "
            f"response_id={assistant_msg.id}"
        )
        return chat, assistant_msg

    def _save(self, session: Session, chat: Chat) -> None:
        """Persist the chat, refreshing updated_at."""
        chat.updated_at = utc_now()
        session.add(chat)
        session.commit()
        session.refresh(chat)
