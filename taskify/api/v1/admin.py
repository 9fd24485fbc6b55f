"""Admin endpoints: dashboard, role assignment and role permission grants."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskify.api.dependencies import require_permission, require_role, require_role_and_permission
from taskify.core.authorization import ADMIN_ROLE, parse_uuid
from taskify.core.database import get_db
from taskify.schemas.auth import (
    MessageResponse,
    PermissionGrantRequest,
    RoleAssignmentRequest,
    RolePermissionsResponse,
    UserProfile,
)
from taskify.services import policy
from taskify.services import users as user_service

router = APIRouter()

INVALID_USER_ID = "invalid user ID format"


@router.get(
    "/dashboard",
    response_model=MessageResponse,
    dependencies=[Depends(require_role(ADMIN_ROLE))],
)
def dashboard() -> MessageResponse:
    return MessageResponse(message="admin access granted")


@router.post(
    "/users/{user_id}/roles",
    response_model=UserProfile,
    dependencies=[Depends(require_permission("roles", "assign"))],
)
def assign_role(
    user_id: str,
    body: RoleAssignmentRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserProfile:
    """
    Assign a role. The user's tokens keep their old claims until the next
    login or refresh.
    """
    user = user_service.get_active_user(db, parse_uuid(user_id, INVALID_USER_ID))
    policy.assign_role(db, user, body.role)
    return user_service.to_profile(user)


@router.delete(
    "/users/{user_id}/roles/{role_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("roles", "revoke"))],
)
def revoke_role(
    user_id: str,
    role_name: str,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    user = user_service.get_active_user(db, parse_uuid(user_id, INVALID_USER_ID))
    policy.revoke_role(db, user, role_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/roles/{role_name}/permissions",
    response_model=RolePermissionsResponse,
    dependencies=[Depends(require_role(ADMIN_ROLE))],
)
def list_role_permissions(
    role_name: str,
    db: Annotated[Session, Depends(get_db)],
) -> RolePermissionsResponse:
    return RolePermissionsResponse(role=role_name, permissions=policy.role_permission_keys(db, role_name))


@router.post(
    "/roles/{role_name}/permissions",
    response_model=RolePermissionsResponse,
    dependencies=[Depends(require_role_and_permission(ADMIN_ROLE, "roles", "assign"))],
)
def grant_role_permission(
    role_name: str,
    body: PermissionGrantRequest,
    db: Annotated[Session, Depends(get_db)],
) -> RolePermissionsResponse:
    """
    Grant (resource, action) to a role. Holders of the role see it from their
    next login or refresh.
    """
    policy.grant_permission(db, role_name, body.resource, body.action)
    return RolePermissionsResponse(role=role_name, permissions=policy.role_permission_keys(db, role_name))


@router.delete(
    "/roles/{role_name}/permissions/{resource}/{action}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_role_and_permission(ADMIN_ROLE, "roles", "revoke"))],
)
def revoke_role_permission(
    role_name: str,
    resource: str,
    action: str,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    policy.revoke_permission(db, role_name, resource, action)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
