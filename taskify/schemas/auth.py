"""Request/response schemas for auth endpoints and the access-token claims."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RegisterRequest(BaseModel):
    """New account details. The account receives the default 'user' role."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN, description="Email address")
    password: str = Field(..., min_length=6, max_length=128, description="Password")


class RefreshRequest(BaseModel):
    """Refresh token to redeem (single use)."""

    refresh_token: str = Field(..., description="Refresh token (UUID); anything else is rejected with 401")


class TokenPairResponse(BaseModel):
    """Access + refresh token pair returned by login and refresh."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Opaque refresh token (UUID)")
    expires_in: int = Field(..., ge=1, description="Access token lifetime in seconds")
    token_type: str = Field(default="bearer", description="Token type")


class MessageResponse(BaseModel):
    message: str


class AccessClaims(BaseModel):
    """
    Claims embedded in an access token.

    A snapshot taken at issuance: roles and permissions are not re-read from
    the database until the next login or refresh.
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    username: str
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list, description="'resource:action' strings")
    iat: datetime
    exp: datetime

    def has_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


class UserProfile(BaseModel):
    """User entry returned by profile and list endpoints (no password)."""

    id: UUID
    username: str
    email: str
    roles: list[str]
    created_at: datetime | None = None


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserProfile]


class RoleAssignmentRequest(BaseModel):
    """Role to assign to a user."""

    role: str = Field(..., min_length=1, max_length=50, description="Role name")


class PermissionGrantRequest(BaseModel):
    """(resource, action) to add to a role."""

    resource: str = Field(..., min_length=1, max_length=50, description="e.g. tasks, users, roles")
    action: str = Field(..., min_length=1, max_length=50, description="e.g. read, create, assign")


class RolePermissionsResponse(BaseModel):
    role: str
    permissions: list[str] = Field(..., description="'resource:action' strings, sorted")
