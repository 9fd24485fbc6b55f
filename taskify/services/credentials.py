"""Credential verification (login) and account registration."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskify.core.authorization import USER_ROLE
from taskify.core.errors import Conflict, InvalidCredentials
from taskify.core.security import dummy_password_hash, hash_password, verify_password
from taskify.models import User
from taskify.services.policy import get_role

logger = logging.getLogger(__name__)


def get_active_user_by_username(db: Session, username: str) -> User | None:
    return (
        db.query(User)
        .filter(User.username == username, User.deleted_at.is_(None))
        .first()
    )


def authenticate_user(db: Session, username: str, password: str) -> User:
    """
    Return the user whose username and password match.

    Raises InvalidCredentials for an unknown user and for a wrong password
    alike, so the caller cannot tell which factor was wrong.
    """
    user = get_active_user_by_username(db, username)
    if user is None:
        # Burn the same bcrypt cost as a real comparison.
        verify_password(password, dummy_password_hash())
        logger.info("Login failed: unknown username")
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        logger.info("Login failed: bad password for user_id=%s", user.id)
        raise InvalidCredentials()
    return user


def register_user(db: Session, username: str, email: str, password: str) -> User:
    """
    Create an account with the default 'user' role.

    Raises Conflict when the username or email is already taken.
    """
    if db.query(User).filter(User.username == username).first() is not None:
        raise Conflict("username already exists")
    if db.query(User).filter(User.email == email).first() is not None:
        raise Conflict("email already exists")

    user = User(username=username, email=email, password_hash=hash_password(password))
    role = get_role(db, USER_ROLE)
    if role is None:
        logger.warning("Default role '%s' missing; user %s created without roles", USER_ROLE, username)
    else:
        user.roles.append(role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("username or email already exists", cause=e) from e
    db.refresh(user)
    logger.info("User registered: user_id=%s", user.id)
    return user
