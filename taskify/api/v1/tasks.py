"""Task endpoints: permission gates on the route, ownership checked in the handler."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskify.api.dependencies import require_permission, require_role_and_permission
from taskify.core.authorization import ADMIN_ROLE, parse_uuid
from taskify.core.database import get_db
from taskify.schemas.auth import AccessClaims
from taskify.schemas.task import TaskCreate, TaskRead, TasksListResponse, TaskUpdate
from taskify.services import tasks as task_service

router = APIRouter()

INVALID_TASK_ID = "invalid task ID"


@router.get(
    "",
    response_model=TasksListResponse,
    dependencies=[Depends(require_role_and_permission(ADMIN_ROLE, "tasks", "read"))],
)
def list_tasks(db: Annotated[Session, Depends(get_db)]) -> TasksListResponse:
    """List every task (admin only)."""
    tasks = task_service.list_tasks(db)
    return TasksListResponse(tasks=[TaskRead.model_validate(t) for t in tasks])


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    db: Annotated[Session, Depends(get_db)],
    claims: Annotated[AccessClaims, Depends(require_permission("tasks", "create"))],
) -> TaskRead:
    """Create a task owned by the caller (admins may set user_id)."""
    task = task_service.create_task(db, claims, body)
    return TaskRead.model_validate(task)


@router.get("/{task_id}", response_model=TaskRead)
def get_task(
    task_id: str,
    db: Annotated[Session, Depends(get_db)],
    claims: Annotated[AccessClaims, Depends(require_permission("tasks", "read"))],
) -> TaskRead:
    """Return a task the caller owns (any task for admins)."""
    task = task_service.load_task_for_caller(db, parse_uuid(task_id, INVALID_TASK_ID), claims)
    return TaskRead.model_validate(task)


@router.put("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: str,
    body: TaskUpdate,
    db: Annotated[Session, Depends(get_db)],
    claims: Annotated[AccessClaims, Depends(require_permission("tasks", "update"))],
) -> TaskRead:
    task = task_service.update_task(db, claims, parse_uuid(task_id, INVALID_TASK_ID), body)
    return TaskRead.model_validate(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    db: Annotated[Session, Depends(get_db)],
    claims: Annotated[AccessClaims, Depends(require_permission("tasks", "delete"))],
) -> Response:
    task_service.delete_task(db, claims, parse_uuid(task_id, INVALID_TASK_ID))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
