"""User endpoints: profiles, listing, per-user tasks and soft deletion."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskify.api.dependencies import (
    CurrentClaims,
    require_ownership_or_admin,
    require_permission,
    require_role_and_permission,
)
from taskify.core.authorization import ADMIN_ROLE, parse_uuid
from taskify.core.database import get_db
from taskify.schemas.auth import UserProfile, UsersListResponse
from taskify.schemas.task import TaskRead, TasksListResponse
from taskify.services import tasks as task_service
from taskify.services import users as user_service

router = APIRouter()

INVALID_USER_ID = "invalid user ID format"


@router.get(
    "",
    response_model=UsersListResponse,
    dependencies=[Depends(require_role_and_permission(ADMIN_ROLE, "users", "read"))],
)
def list_users(db: Annotated[Session, Depends(get_db)]) -> UsersListResponse:
    """List all active users (admin only)."""
    users = user_service.list_active_users(db)
    return UsersListResponse(users=[user_service.to_profile(u) for u in users])


@router.get("/profile", response_model=UserProfile)
def get_own_profile(
    claims: CurrentClaims,
    db: Annotated[Session, Depends(get_db)],
) -> UserProfile:
    """Profile of the caller."""
    return user_service.to_profile(user_service.get_active_user(db, claims.user_id))


@router.get(
    "/profile/{user_id}",
    response_model=UserProfile,
    dependencies=[Depends(require_ownership_or_admin("user_id"))],
)
def get_profile(
    user_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> UserProfile:
    """Profile by id: the user themselves or an admin."""
    user = user_service.get_active_user(db, parse_uuid(user_id, INVALID_USER_ID))
    return user_service.to_profile(user)


@router.get(
    "/{user_id}/tasks",
    response_model=TasksListResponse,
    dependencies=[
        Depends(require_ownership_or_admin("user_id")),
        Depends(require_permission("tasks", "read")),
    ],
)
def list_user_tasks(
    user_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> TasksListResponse:
    """Tasks owned by a user: the user themselves or an admin."""
    tasks = task_service.list_tasks_for_user(db, parse_uuid(user_id, INVALID_USER_ID))
    return TasksListResponse(tasks=[TaskRead.model_validate(t) for t in tasks])


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_role_and_permission(ADMIN_ROLE, "users", "delete"))],
)
def delete_user(
    user_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Soft-delete a user and revoke their refresh tokens (admin only)."""
    user_service.soft_delete_user(db, parse_uuid(user_id, INVALID_USER_ID))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
