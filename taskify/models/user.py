"""ORM model for application users (auth and RBAC)."""

import uuid

from sqlalchemy import Column, DateTime, String, Uuid, func
from sqlalchemy.orm import relationship

from taskify.models.base import Base
from taskify.models.role import user_roles


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    Never hard-deleted by the API: deleted_at marks a soft-deleted account,
    which can no longer log in or refresh tokens.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    roles = relationship("Role", secondary=user_roles, back_populates="users", lazy="selectin")
    tasks = relationship("Task", back_populates="owner")

    @property
    def role_names(self) -> list[str]:
        return sorted(role.name for role in self.roles)
