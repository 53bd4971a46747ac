"""Chat endpoint routes.

Provides:
- POST /chats - Start a chat or continue an existing one
- GET /chats?userId= - List user's chats
- GET /chats/{chat_id}?userId= - Get chat with messages
- DELETE /chats/{chat_id} - Delete chat
"""
from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from chatapp.core.deps import get_chat_service, get_current_user, get_db
from chatapp.models.chat import Chat, Message
from chatapp.services.chat_service import ChatNotFoundError, ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["chats"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(CamelModel):
    """Request model for a chat turn."""
    message: Optional[str] = None
    user_id: Optional[str] = None
    chat_id: Optional[str] = None


class DeleteChatRequest(CamelModel):
    user_id: Optional[str] = None


class MessageResponse(CamelModel):
    """Response model for a single message."""
    id: int = Field(alias="_id")
    role: str
    content: str
    timestamp: datetime


class ChatSummary(CamelModel):
    """Response model for chat list entries (no messages)."""
    id: str = Field(alias="_id")
    title: str
    created_at: datetime
    updated_at: datetime


class ChatDetail(ChatSummary):
    """Response model for chat with messages."""
    messages: list[MessageResponse]


class CreateChatResponse(CamelModel):
    success: bool = True
    chat: ChatDetail


class AddMessageResponse(CamelModel):
    success: bool = True
    message: MessageResponse
    chat_id: str


class ChatListResponse(CamelModel):
    chats: list[ChatSummary]


class ChatDetailResponse(CamelModel):
    chat: ChatDetail


class DeleteChatResponse(CamelModel):
    success: bool = True
    message: str


def _message_response(msg: Message) -> MessageResponse:
    return MessageResponse(
        id=msg.id,
        role=msg.role,
        content=msg.content,
        timestamp=msg.timestamp,
    )


def _chat_detail(chat: Chat) -> ChatDetail:
    return ChatDetail(
        id=chat.id,
        title=chat.title,
        created_at=chat.created_at,
        updated_at=chat.updated_at,
        messages=[_message_response(msg) for msg in chat.messages],
    )


def _verify_owner(user_id: str, current_user_id: str) -> None:
    """Reject requests whose userId differs from the token's subject."""
    if user_id != current_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User ID mismatch",
        )


@router.post("", status_code=status.HTTP_201_CREATED)
def handle_chat(
    request: ChatRequest,
    current_user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> JSONResponse:
    """
    Send a message to the assistant.

    Flow:
    1. Validate body and verify ownership of userId
    2. Without chatId: create chat (title + user message + reply), 201
    3. With chatId: append user message + reply to owned chat, 200

    Raises:
        HTTPException: 400 if message or userId missing
        HTTPException: 401 if userId doesn't match the token
        HTTPException: 404 if chat not found or not owned
        HTTPException: 500 on unexpected failure
    """
    if not request.message or not request.message.strip() or not request.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message and userId are required",
        )

    _verify_owner(request.user_id, current_user_id)

    if request.chat_id:
        return _add_message(session, chat_service, request)

    return _create_chat(session, chat_service, request)


def _create_chat(session: Session, chat_service: ChatService, request: ChatRequest) -> JSONResponse:
    try:
        chat = chat_service.create_chat(session, request.user_id, request.message)
        body = CreateChatResponse(chat=_chat_detail(chat))
    except Exception:
        logger.exception(f"Error creating new chat for user {request.user_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create new chat",
        )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=body.model_dump(mode="json", by_alias=True),
    )


def _add_message(session: Session, chat_service: ChatService, request: ChatRequest) -> JSONResponse:
    try:
        chat, assistant_msg = chat_service.add_message(
            session, request.user_id, request.chat_id, request.message
        )
        body = AddMessageResponse(message=_message_response(assistant_msg), chat_id=chat.id)
    except ChatNotFoundError as e:
        logger.warning(f"Chat error for user {request.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chat not found",
        )
    except Exception:
        logger.exception(f"Error adding message to chat {request.chat_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add message to chat",
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=body.model_dump(mode="json", by_alias=True),
    )


@router.get("", response_model=ChatListResponse)
def list_chats(
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatListResponse:
    """
    List chat summaries for the authenticated user, newest activity first.

    Raises:
        HTTPException: 400 if userId missing
        HTTPException: 401 if userId doesn't match the token
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID is required",
        )

    _verify_owner(user_id, current_user_id)

    try:
        chats = chat_service.list_chats(session, user_id)
    except Exception:
        logger.exception(f"Error fetching chats for user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch chats",
        )

    return ChatListResponse(
        chats=[
            ChatSummary(
                id=chat.id,
                title=chat.title,
                created_at=chat.created_at,
                updated_at=chat.updated_at,
            )
            for chat in chats
        ]
    )


@router.get("/{chat_id}", response_model=ChatDetailResponse)
def get_chat(
    chat_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatDetailResponse:
    """
    Get chat with all messages.

    Raises:
        HTTPException: 400 if userId missing
        HTTPException: 401 if userId doesn't match the token
        HTTPException: 404 if chat not found or not owned
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID is required",
        )

    _verify_owner(user_id, current_user_id)

    try:
        chat = chat_service.get_chat(session, user_id, chat_id)
        return ChatDetailResponse(chat=_chat_detail(chat))
    except ChatNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chat not found",
        )
    except Exception:
        logger.exception(f"Error fetching chat {chat_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch chat",
        )


@router.delete("/{chat_id}", response_model=DeleteChatResponse)
def delete_chat(
    chat_id: str,
    request: Optional[DeleteChatRequest] = None,
    current_user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> DeleteChatResponse:
    """
    Delete chat and all its messages.

    Raises:
        HTTPException: 400 if userId missing
        HTTPException: 401 if userId doesn't match the token
        HTTPException: 404 if chat not found or not owned
    """
    if request is None or not request.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID is required",
        )

    _verify_owner(request.user_id, current_user_id)

    try:
        deleted = chat_service.delete_chat(session, request.user_id, chat_id)
    except Exception:
        logger.exception(f"Error deleting chat {chat_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete chat",
        )

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chat not found or not authorized to delete",
        )

    return DeleteChatResponse(message="Chat deleted successfully")
