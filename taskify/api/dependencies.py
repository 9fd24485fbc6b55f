"""
FastAPI dependencies forming the authorization chain.

authenticate turns the Authorization header into typed AccessClaims; the
require_* factories wrap the pure gates in taskify.core.authorization. Every
gate depends on authenticate, so it only ever sees verified claims, and a
route's dependencies run in order, stopping at the first failure.

Usage:
    @router.get("", dependencies=[Depends(require_role_and_permission("admin", "tasks", "read"))])
    def list_tasks(...): ...

    @router.get("/{task_id}")
    def get_task(claims: Annotated[AccessClaims, Depends(require_permission("tasks", "read"))]): ...
"""

from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from taskify.core.authorization import (
    check_ownership_or_admin,
    check_permission,
    check_role,
    check_role_and_permission,
)
from taskify.core.config import get_settings
from taskify.core.errors import Unauthorized
from taskify.schemas.auth import AccessClaims
from taskify.services.tokens import TokenService

# Declared as an API key header (not HTTPBearer) so a missing header and a
# malformed scheme can be told apart.
authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Bearer <access_token>",
)


@lru_cache
def get_token_service() -> TokenService:
    """Token service built once from settings; overridden in tests."""
    return TokenService.from_settings(get_settings())


def parse_bearer_token(header_value: str | None) -> str:
    """Extract the token from 'Bearer <token>'; Unauthorized otherwise."""
    if not header_value:
        raise Unauthorized("authorization header is required")
    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise Unauthorized("invalid authorization header format")
    return parts[1]


def authenticate(
    request: Request,
    header_value: Annotated[str | None, Depends(authorization_header)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> AccessClaims:
    """Verify the bearer token and attach its claims to the request."""
    token = parse_bearer_token(header_value)
    claims = token_service.validate_access_token(token)
    request.state.claims = claims
    return claims


CurrentClaims = Annotated[AccessClaims, Depends(authenticate)]


def require_role(*allowed: str) -> Callable[..., AccessClaims]:
    """Dependency: caller must hold at least one of the allowed roles (403 otherwise)."""

    def role_gate(claims: CurrentClaims) -> AccessClaims:
        check_role(claims, *allowed)
        return claims

    return role_gate


def require_permission(resource: str, action: str) -> Callable[..., AccessClaims]:
    """Dependency: caller's permissions must include 'resource:action' (403 otherwise)."""

    def permission_gate(claims: CurrentClaims) -> AccessClaims:
        check_permission(claims, resource, action)
        return claims

    return permission_gate


def require_role_and_permission(role: str, resource: str, action: str) -> Callable[..., AccessClaims]:
    """Dependency: role check, then permission check; either failure is a 403."""

    def role_and_permission_gate(claims: CurrentClaims) -> AccessClaims:
        check_role_and_permission(claims, role, resource, action)
        return claims

    return role_and_permission_gate


def require_ownership_or_admin(param_name: str) -> Callable[..., AccessClaims]:
    """
    Dependency: admins pass; others must be the user named by the path
    parameter param_name (400 if it is missing or not a UUID, 403 if it is
    someone else).
    """

    def ownership_gate(request: Request, claims: CurrentClaims) -> AccessClaims:
        check_ownership_or_admin(claims, request.path_params.get(param_name))
        return claims

    return ownership_gate
