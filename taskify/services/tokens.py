"""
Token service: access-token issuance/verification and refresh-token rotation.

Access tokens are HS256 JWTs carrying a snapshot of the user's roles and
permissions; they are verified without touching the database. Refresh tokens
are opaque UUIDs persisted in refresh_tokens and consumed exactly once.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskify.core.errors import (
    ExpiredToken,
    InvalidRefreshToken,
    InvalidToken,
    RefreshTokenExpired,
    TokenIssuanceFailed,
)
from taskify.models import RefreshToken, User
from taskify.schemas.auth import AccessClaims
from taskify.services.policy import resolve_grants

if TYPE_CHECKING:
    from taskify.core.config import Settings

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["user_id", "username", "roles", "permissions", "iat", "exp"]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class TokenService:
    """
    Issues, validates and rotates tokens.

    The signing secret is injected at construction and never read from the
    environment here, so tests can run with a fixed secret and clock.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret")
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock or _utc_now

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    @property
    def expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_ttl.total_seconds())

    def now(self) -> datetime:
        return self._clock()

    def create_access_token(self, user: User, roles: list[str], permissions: list[str]) -> str:
        """Sign a claims snapshot for user."""
        issued_at = int(self.now().timestamp())
        payload: dict[str, Any] = {
            "user_id": str(user.id),
            "username": user.username,
            "roles": roles,
            "permissions": permissions,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def _mint(self, db: Session, user: User) -> TokenPair:
        """Build the pair and stage the refresh-token row; the caller commits."""
        roles, permissions = resolve_grants(db, user)
        access_token = self.create_access_token(user, roles, permissions)
        refresh_value = uuid.uuid4()
        db.add(
            RefreshToken(
                id=uuid.uuid4(),
                user_id=user.id,
                refresh_token=refresh_value,
                expires_at=self.now() + self.refresh_ttl,
            )
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=str(refresh_value),
            expires_in=self.expires_in,
        )

    def issue_tokens(self, db: Session, user: User) -> TokenPair:
        """
        Issue an access token and a persisted refresh token for user.

        Raises TokenIssuanceFailed if the refresh token cannot be stored.
        """
        try:
            pair = self._mint(db, user)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Token issuance failed for user_id=%s: %s", user.id, e)
            raise TokenIssuanceFailed(cause=e) from e
        logger.info("Tokens issued for user_id=%s", user.id)
        return pair

    def validate_access_token(self, token: str) -> AccessClaims:
        """
        Verify signature and expiry; return the embedded claims unchanged.

        Raises InvalidToken (malformed, bad signature, bad claims) or
        ExpiredToken (well-formed and correctly signed but past exp).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS, "verify_exp": False},
            )
            claims = AccessClaims.model_validate(payload)
        except (jwt.PyJWTError, ValidationError) as e:
            raise InvalidToken(cause=e) from e
        if self.now() >= claims.exp:
            raise ExpiredToken()
        return claims

    def refresh_tokens(self, db: Session, refresh_token_value: str) -> TokenPair:
        """
        Exchange a live refresh token for a new pair (rotation).

        The old row is deleted and the new one inserted in the same
        transaction. A delete that removes nothing means a concurrent
        redemption won, so this one fails with InvalidRefreshToken.
        """
        try:
            token_value = uuid.UUID(refresh_token_value)
        except (TypeError, ValueError, AttributeError) as e:
            raise InvalidRefreshToken(cause=e) from e

        record = (
            db.query(RefreshToken)
            .filter(RefreshToken.refresh_token == token_value)
            .first()
        )
        if record is None:
            raise InvalidRefreshToken()
        if self.now() > _as_utc(record.expires_at):
            raise RefreshTokenExpired()

        user = (
            db.query(User)
            .filter(User.id == record.user_id, User.deleted_at.is_(None))
            .first()
        )
        if user is None:
            logger.info("Refresh rejected: owner of token %s is missing or deleted", record.id)
            raise InvalidRefreshToken()

        try:
            deleted = (
                db.query(RefreshToken)
                .filter(RefreshToken.id == record.id)
                .delete(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Refresh token delete failed for token %s: %s", record.id, e)
            raise TokenIssuanceFailed(cause=e) from e
        if deleted == 0:
            db.rollback()
            logger.warning("Refresh token %s already consumed", record.id)
            raise InvalidRefreshToken()

        pair = self.issue_tokens(db, user)
        logger.info("Refresh token rotated for user_id=%s", user.id)
        return pair


def revoke_user_refresh_tokens(db: Session, user_id: uuid.UUID) -> int:
    """Delete every outstanding refresh token of a user (caller commits)."""
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id)
        .delete(synchronize_session=False)
    )
