"""SQLModel table definitions."""
from chatapp.models.chat import Chat, Message, MessageRole
from chatapp.models.user import User

__all__ = ["Chat", "Message", "MessageRole", "User"]
