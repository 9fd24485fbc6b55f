"""Removal of refresh tokens past their expiry."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Query, Session

from taskify.models import RefreshToken

if TYPE_CHECKING:
    from taskify.core.config import Settings

logger = logging.getLogger(__name__)


def _expired(session: Session, cutoff: datetime) -> Query:
    return session.query(RefreshToken).filter(RefreshToken.expires_at < cutoff)


def count_expired_refresh_tokens(session: Session, now: datetime | None = None) -> int:
    return _expired(session, now or datetime.now(UTC)).count()


def purge_expired_refresh_tokens(
    session: Session,
    settings: "Settings",
    now: datetime | None = None,
) -> int:
    """
    Delete refresh tokens that expired before now; returns how many.

    Redemption already rejects expired rows, so this only bounds table
    growth. Safe to run repeatedly, and from several hosts at once.
    """
    if not settings.TOKEN_PURGE_ENABLED:
        logger.info("Token purge skipped: TOKEN_PURGE_ENABLED is false")
        return 0

    cutoff = now or datetime.now(UTC)
    deleted = _expired(session, cutoff).delete(synchronize_session=False)
    session.commit()
    if deleted:
        logger.info("Purged %s expired refresh tokens (cutoff=%s)", deleted, cutoff.isoformat())
    return deleted
