"""Identity-provider webhook receivers.

Provides:
- POST /users/create - Mirror a newly created user
- POST /users/delete - Drop a deleted user
- POST /users/update - Refresh a user's primary email

Every event must carry a valid svix signature from the identity provider.
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from sqlmodel import Session
from svix.webhooks import Webhook, WebhookVerificationError

from chatapp.core.deps import get_db, get_webhook_verifier
from chatapp.core.responses import send_error, send_success
from chatapp.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


class EmailAddress(BaseModel):
    id: str
    email_address: str


class WebhookUserData(BaseModel):
    """User payload as sent by the identity provider."""
    id: str
    primary_email_address_id: Optional[str] = None
    email_addresses: list[EmailAddress] = []

    def primary_email(self) -> Optional[str]:
        for email in self.email_addresses:
            if email.id == self.primary_email_address_id:
                return email.email_address
        return None


class WebhookEvent(BaseModel):
    data: WebhookUserData


async def verified_event(
    request: Request,
    verifier: Optional[Webhook] = Depends(get_webhook_verifier),
) -> WebhookEvent:
    """
    Check the svix signature headers against the raw body and parse the event.

    Raises:
        HTTPException: 401 if the signature is missing or invalid,
            400 if the signed payload is not a user event
    """
    if verifier is None:
        logger.error("Webhook received but CLERK_WEBHOOK_SECRET is not configured")
        raise _unauthorized()

    body = await request.body()
    try:
        payload = verifier.verify(body, dict(request.headers))
    except WebhookVerificationError as e:
        logger.warning(f"Rejected webhook: {str(e)}")
        raise _unauthorized()

    try:
        return WebhookEvent.model_validate(payload)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload",
        )


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Request Unauthorized",
    )


@router.post("/create")
def user_created(
    event: WebhookEvent = Depends(verified_event),
    session: Session = Depends(get_db),
) -> JSONResponse:
    email = event.data.primary_email()
    if not email:
        return send_error(status.HTTP_400_BAD_REQUEST, "Primary email address missing")

    try:
        user = user_service.create_user(session, event.data.id, email)
    except Exception as e:
        logger.error(f"Failed to create user {event.data.id}: {str(e)}")
        return send_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create user")

    return send_success(status.HTTP_200_OK, "User created successfully", {"_id": user.id})


@router.post("/delete")
def user_deleted(
    event: WebhookEvent = Depends(verified_event),
    session: Session = Depends(get_db),
) -> JSONResponse:
    try:
        user_service.delete_user(session, event.data.id)
    except Exception as e:
        logger.error(f"Failed to delete user {event.data.id}: {str(e)}")
        return send_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete user")

    return send_success(status.HTTP_200_OK, "User deleted successfully")


@router.post("/update")
def user_updated(
    event: WebhookEvent = Depends(verified_event),
    session: Session = Depends(get_db),
) -> JSONResponse:
    email = event.data.primary_email()
    if not email:
        return send_error(status.HTTP_400_BAD_REQUEST, "Primary email address missing")

    try:
        user = user_service.update_user_email(session, event.data.id, email)
    except Exception as e:
        logger.error(f"Failed to update user {event.data.id}: {str(e)}")
        return send_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update user")

    if user is None:
        return send_error(status.HTTP_404_NOT_FOUND, "User not found")

    return send_success(status.HTTP_200_OK, "User updated successfully")
