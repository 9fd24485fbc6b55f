"""SQLAlchemy ORM models."""

from taskify.models.base import Base
from taskify.models.role import Permission, Role, role_permissions, user_roles
from taskify.models.task import Task
from taskify.models.token import RefreshToken
from taskify.models.user import User

__all__ = [
    "Base",
    "Permission",
    "RefreshToken",
    "Role",
    "Task",
    "User",
    "role_permissions",
    "user_roles",
]
