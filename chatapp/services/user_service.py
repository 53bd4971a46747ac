"""User mirror maintenance driven by identity-provider webhooks."""
from typing import Optional
import logging

from sqlmodel import Session, select

from chatapp.models.chat import utc_now
from chatapp.models.user import User

logger = logging.getLogger(__name__)


def get_by_clerk_id(session: Session, clerk_id: str) -> Optional[User]:
    statement = select(User).where(User.clerk_id == clerk_id)
    return session.exec(statement).first()


def create_user(session: Session, clerk_id: str, email: str) -> User:
    user = User(clerk_id=clerk_id, email=email)
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"User created: clerk_id={clerk_id}, id={user.id}")
    return user


def delete_user(session: Session, clerk_id: str) -> bool:
    """
    Delete the mirrored user if present.

    Returns:
        True if a row was deleted, False if the user was unknown
    """
    user = get_by_clerk_id(session, clerk_id)
    if not user:
        return False

    session.delete(user)
    session.commit()
    logger.info(f"User deleted: clerk_id={clerk_id}")
    return True


def update_user_email(session: Session, clerk_id: str, email: str) -> Optional[User]:
    """
    Update the mirrored email.

    Returns:
        Updated User, or None if the user is unknown
    """
    user = get_by_clerk_id(session, clerk_id)
    if not user:
        return None

    user.email = email
    user.updated_at = utc_now()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user
