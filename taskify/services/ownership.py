"""
Handler-level ownership enforcement.

For resources addressed by their own id (a task id rather than a user id)
the gate chain cannot know the owner; the handler loads the record first and
then calls into this module before reading or mutating it.
"""

import logging
from uuid import UUID

from taskify.core.authorization import is_admin
from taskify.core.errors import Forbidden
from taskify.schemas.auth import AccessClaims

logger = logging.getLogger(__name__)


def ensure_owner_or_admin(claims: AccessClaims, owner_id: UUID, resource: str = "resource") -> None:
    """Allow admins and the resource owner; everyone else gets Forbidden."""
    if is_admin(claims) or owner_id == claims.user_id:
        return
    logger.info(
        "Ownership denied: user_id=%s resource=%s owner_id=%s",
        claims.user_id,
        resource,
        owner_id,
    )
    raise Forbidden("access denied - resource ownership required")


def owner_for_create(claims: AccessClaims, requested_owner_id: UUID | None) -> UUID:
    """
    Owner to stamp on a new record.

    Non-admins always own what they create, whatever they asked for. Admins
    may create on behalf of someone else and default to themselves.
    """
    if is_admin(claims) and requested_owner_id is not None:
        return requested_owner_id
    return claims.user_id


def owner_for_update(claims: AccessClaims, current_owner_id: UUID, requested_owner_id: UUID | None) -> UUID:
    """Only admins may reassign an existing record; other callers keep the current owner."""
    if is_admin(claims) and requested_owner_id is not None:
        return requested_owner_id
    return current_owner_id
