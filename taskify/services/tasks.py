"""Task CRUD with ownership enforced after each record is loaded."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from taskify.core.errors import NotFound
from taskify.models import Task, User
from taskify.schemas.auth import AccessClaims
from taskify.schemas.task import TaskCreate, TaskUpdate
from taskify.services.ownership import ensure_owner_or_admin, owner_for_create, owner_for_update

logger = logging.getLogger(__name__)


def _active_tasks(db: Session):
    return db.query(Task).filter(Task.deleted_at.is_(None))


def _ensure_user_exists(db: Session, user_id: UUID) -> None:
    exists = db.query(User.id).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if exists is None:
        raise NotFound("user not found")


def load_task_for_caller(db: Session, task_id: UUID, claims: AccessClaims) -> Task:
    """
    Load a task and check the caller may act on it.

    NotFound is reported before the ownership comparison; existence of a
    task id is not treated as sensitive.
    """
    task = _active_tasks(db).filter(Task.id == task_id).first()
    if task is None:
        raise NotFound("task not found")
    ensure_owner_or_admin(claims, task.user_id, resource="task")
    return task


def list_tasks(db: Session) -> list[Task]:
    return _active_tasks(db).order_by(Task.created_at, Task.id).all()


def list_tasks_for_user(db: Session, user_id: UUID) -> list[Task]:
    return (
        _active_tasks(db)
        .filter(Task.user_id == user_id)
        .order_by(Task.created_at, Task.id)
        .all()
    )


def create_task(db: Session, claims: AccessClaims, body: TaskCreate) -> Task:
    owner_id = owner_for_create(claims, body.user_id)
    if owner_id != claims.user_id:
        _ensure_user_exists(db, owner_id)
    task = Task(
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
        due_date=body.due_date,
        user_id=owner_id,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Task created: task_id=%s owner_id=%s", task.id, owner_id)
    return task


def update_task(db: Session, claims: AccessClaims, task_id: UUID, body: TaskUpdate) -> Task:
    task = load_task_for_caller(db, task_id, claims)
    changes = body.model_dump(exclude_unset=True, exclude={"user_id"})
    for field, value in changes.items():
        setattr(task, field, value)
    new_owner = owner_for_update(claims, task.user_id, body.user_id)
    if new_owner != task.user_id:
        _ensure_user_exists(db, new_owner)
        logger.info("Task reassigned: task_id=%s from=%s to=%s", task.id, task.user_id, new_owner)
        task.user_id = new_owner
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, claims: AccessClaims, task_id: UUID) -> None:
    """Soft delete: the row stays, flagged with deleted_at."""
    task = load_task_for_caller(db, task_id, claims)
    task.deleted_at = datetime.now(UTC)
    db.commit()
    logger.info("Task deleted: task_id=%s by user_id=%s", task.id, claims.user_id)
