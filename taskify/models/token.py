"""ORM model for persisted refresh tokens (one row per outstanding token)."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Uuid, func

from taskify.models.base import Base


class RefreshToken(Base):
    """
    Opaque, single-use refresh token.

    refresh_token is the value handed to the client; id is the row key.
    Redeeming a token deletes its row.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    refresh_token = Column(Uuid, nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
