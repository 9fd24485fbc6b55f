"""User lookup and soft deletion."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from taskify.core.errors import NotFound
from taskify.models import User
from taskify.schemas.auth import UserProfile
from taskify.services.tokens import revoke_user_refresh_tokens

logger = logging.getLogger(__name__)


def get_active_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if user is None:
        raise NotFound("user not found")
    return user


def list_active_users(db: Session) -> list[User]:
    return db.query(User).filter(User.deleted_at.is_(None)).order_by(User.username).all()


def to_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        username=user.username,
        email=user.email,
        roles=user.role_names,
        created_at=user.created_at,
    )


def soft_delete_user(db: Session, user_id: UUID) -> None:
    """
    Mark a user deleted and drop their refresh tokens.

    Access tokens already issued stay valid until they expire.
    """
    user = get_active_user(db, user_id)
    user.deleted_at = datetime.now(UTC)
    revoked = revoke_user_refresh_tokens(db, user.id)
    db.commit()
    logger.info("User soft-deleted: user_id=%s refresh_tokens_revoked=%s", user_id, revoked)
