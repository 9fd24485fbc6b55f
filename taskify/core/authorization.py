"""
Pure authorization gates evaluated against access-token claims.

Each gate takes the caller's claims (plus a route parameter where needed) and
either returns None (pass) or raises Forbidden / BadRequest (fail). Gates never
touch the database, so a chain of them is O(1) and side-effect free; the
FastAPI wiring lives in taskify.api.dependencies.
"""

import logging
from uuid import UUID

from taskify.core.errors import BadRequest, Forbidden
from taskify.schemas.auth import AccessClaims

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
USER_ROLE = "user"


def permission_key(resource: str, action: str) -> str:
    """Wire form of a permission: 'resource:action'."""
    return f"{resource}:{action}"


def is_admin(claims: AccessClaims) -> bool:
    return claims.has_role(ADMIN_ROLE)


def check_role(claims: AccessClaims, *allowed: str) -> None:
    """Pass if the caller holds any of the allowed roles."""
    if claims.has_role(*allowed):
        return
    logger.debug("Role check denied: user_id=%s required_any=%s", claims.user_id, allowed)
    raise Forbidden("insufficient permissions - role required")


def check_permission(claims: AccessClaims, resource: str, action: str) -> None:
    """Pass if 'resource:action' is among the caller's permissions."""
    required = permission_key(resource, action)
    if claims.has_permission(required):
        return
    logger.debug("Permission check denied: user_id=%s required=%s", claims.user_id, required)
    raise Forbidden("insufficient permissions - permission required")


def check_role_and_permission(
    claims: AccessClaims, role: str, resource: str, action: str
) -> None:
    """Role first, then permission; the first failure short-circuits."""
    check_role(claims, role)
    check_permission(claims, resource, action)


def parse_uuid(value: str | None, message: str) -> UUID:
    """Parse an identifier taken from the request; BadRequest if it is not a UUID."""
    if not value:
        raise BadRequest(message)
    try:
        return UUID(value)
    except (TypeError, ValueError) as e:
        raise BadRequest(message, cause=e) from e


def check_ownership_or_admin(claims: AccessClaims, owner_id: str | None) -> None:
    """
    Pass for admins; otherwise owner_id (a raw route parameter) must be the
    caller's own user id.
    """
    if is_admin(claims):
        return
    if not owner_id:
        raise BadRequest("resource ID not provided")
    resource_owner = parse_uuid(owner_id, "invalid resource ID format")
    if resource_owner == claims.user_id:
        return
    logger.debug(
        "Ownership check denied: user_id=%s resource_owner=%s",
        claims.user_id,
        resource_owner,
    )
    raise Forbidden("access denied - resource ownership required")
