"""FastAPI dependencies: database session, auth gate, services."""
from functools import lru_cache
from typing import Iterator, Optional
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session
from svix.webhooks import Webhook

from chatapp.config import settings
from chatapp.core.auth import AuthError, TokenVerifier, build_verifier
from chatapp.database import get_session
from chatapp.services.chat_service import ChatService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Iterator[Session]:
    yield from get_session()


@lru_cache
def get_token_verifier() -> TokenVerifier:
    return build_verifier()


@lru_cache
def get_webhook_verifier() -> Optional[Webhook]:
    if not settings.CLERK_WEBHOOK_SECRET:
        return None
    return Webhook(settings.CLERK_WEBHOOK_SECRET)


@lru_cache
def get_chat_service() -> ChatService:
    # Stateless, shared across requests
    return ChatService()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> str:
    """
    Verify the bearer session token and return the caller's user id.

    The id is also stored on request.state for middleware.

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized()

    try:
        user_id = verifier.verify(credentials.credentials)
    except AuthError as e:
        logger.warning(f"Rejected session token: {str(e)}")
        raise _unauthorized()

    request.state.user_id = user_id
    return user_id


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Request Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
