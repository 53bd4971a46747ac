"""Chat and Message SQLModel definitions.

Models:
- Chat: Conversation entity with user ownership
- Message: Individual turn in a chat
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, Relationship, SQLModel


def new_chat_id() -> str:
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """Message sender role."""
    USER = "user"
    ASSISTANT = "assistant"


class Chat(SQLModel, table=True):
    """
    Chat entity.

    Ownership: Each chat belongs to exactly one user via user_id.
    All queries MUST filter by user_id; there is no foreign key to user.
    """
    __tablename__ = "chat"

    id: str = Field(default_factory=new_chat_id, primary_key=True, max_length=32)
    user_id: str = Field(index=True, nullable=False)
    title: str = Field(max_length=255, nullable=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True), index=True
    )

    messages: List["Message"] = Relationship(
        back_populates="chat",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "Message.id",
        },
    )


class Message(SQLModel, table=True):
    """
    Message entity.

    Messages are append-only: never updated, reordered or deleted on their
    own. Insertion order (id) is conversation order.
    """
    __tablename__ = "message"

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: str = Field(foreign_key="chat.id", index=True, nullable=False)
    role: str = Field(max_length=20)  # "user" or "assistant"
    content: str = Field(sa_column=Column(Text, nullable=False))
    timestamp: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    chat: Optional[Chat] = Relationship(back_populates="messages")
