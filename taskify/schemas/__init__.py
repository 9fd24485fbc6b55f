"""Pydantic request/response schemas."""

from taskify.schemas.auth import (
    AccessClaims,
    LoginRequest,
    MessageResponse,
    PermissionGrantRequest,
    RefreshRequest,
    RegisterRequest,
    RoleAssignmentRequest,
    RolePermissionsResponse,
    TokenPairResponse,
    UserProfile,
    UsersListResponse,
)
from taskify.schemas.health import HealthResponse
from taskify.schemas.task import TaskCreate, TaskRead, TasksListResponse, TaskUpdate

__all__ = [
    "AccessClaims",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PermissionGrantRequest",
    "RefreshRequest",
    "RegisterRequest",
    "RoleAssignmentRequest",
    "RolePermissionsResponse",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "TasksListResponse",
    "TokenPairResponse",
    "UserProfile",
    "UsersListResponse",
]
