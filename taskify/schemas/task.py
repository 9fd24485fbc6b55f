"""Request/response schemas for task endpoints."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator

TaskStatus = Literal["pending", "in_progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]


class TaskCreate(BaseModel):
    """
    New task. user_id is honoured only for admins; everyone else always
    creates tasks they own.
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10_000)
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: datetime | None = None
    user_id: UUID | None = Field(default=None, description="Owner (admin only)")


class TaskUpdate(BaseModel):
    """
    Partial update; omitted fields are left unchanged. title, status and
    priority may be omitted but not cleared.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10_000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    user_id: UUID | None = Field(default=None, description="Reassign owner (admin only)")

    @field_validator("title", "status", "priority")
    @classmethod
    def reject_null(cls, v: str | None, info: ValidationInfo) -> str:
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class TaskRead(BaseModel):
    id: UUID
    title: str
    description: str | None
    status: str
    priority: str
    due_date: datetime | None
    user_id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class TasksListResponse(BaseModel):
    tasks: list[TaskRead]
