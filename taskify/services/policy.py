"""
Policy store: the role -> permission mapping and role -> user assignment.

Read once per token issuance and embedded into the access token; nothing
here is consulted while a request is being authorized.
"""

import logging

from sqlalchemy.orm import Session

from taskify.core.authorization import ADMIN_ROLE, USER_ROLE, permission_key
from taskify.core.errors import BadRequest, NotFound
from taskify.models import Permission, Role, User, role_permissions, user_roles

logger = logging.getLogger(__name__)

RESOURCES = frozenset({"tasks", "users", "roles"})
ACTIONS = frozenset({"create", "read", "update", "delete", "assign", "revoke"})

TASK_PERMISSIONS: tuple[tuple[str, str], ...] = (
    ("tasks", "create"),
    ("tasks", "read"),
    ("tasks", "update"),
    ("tasks", "delete"),
)
DEFAULT_PERMISSIONS: tuple[tuple[str, str], ...] = TASK_PERMISSIONS + (
    ("users", "create"),
    ("users", "read"),
    ("users", "update"),
    ("users", "delete"),
    ("roles", "assign"),
    ("roles", "revoke"),
)

# admin holds every permission; user is limited to its own tasks.
DEFAULT_ROLE_PERMISSIONS: dict[str, tuple[tuple[str, str], ...]] = {
    ADMIN_ROLE: DEFAULT_PERMISSIONS,
    USER_ROLE: TASK_PERMISSIONS,
}


def _validate_permission(resource: str, action: str) -> None:
    if resource not in RESOURCES:
        raise BadRequest(f"unknown resource '{resource}'")
    if action not in ACTIONS:
        raise BadRequest(f"unknown action '{action}'")


def get_role(db: Session, name: str) -> Role | None:
    return db.query(Role).filter(Role.name == name).first()


def _get_or_create_permission(db: Session, resource: str, action: str) -> Permission:
    permission = (
        db.query(Permission)
        .filter(Permission.resource == resource, Permission.action == action)
        .first()
    )
    if permission is None:
        permission = Permission(resource=resource, action=action)
        db.add(permission)
        db.flush()
    return permission


def seed_default_policy(db: Session) -> None:
    """
    Create the default roles and permissions and link them.

    Idempotent: existing rows are reused, missing links are added.
    """
    permissions = {
        (resource, action): _get_or_create_permission(db, resource, action)
        for resource, action in DEFAULT_PERMISSIONS
    }
    for role_name, grants in DEFAULT_ROLE_PERMISSIONS.items():
        role = get_role(db, role_name)
        if role is None:
            role = Role(name=role_name)
            db.add(role)
            db.flush()
        for grant in grants:
            permission = permissions[grant]
            if permission not in role.permissions:
                role.permissions.append(permission)
    db.commit()
    logger.info("Default policy seeded: roles=%s", sorted(DEFAULT_ROLE_PERMISSIONS))


def resolve_grants(db: Session, user: User) -> tuple[list[str], list[str]]:
    """
    Return (roles, permissions) for a user, both sorted.

    Permissions are the de-duplicated union across all of the user's roles,
    in 'resource:action' form.
    """
    roles = (
        db.query(Role.name)
        .join(user_roles, user_roles.c.role_id == Role.id)
        .filter(user_roles.c.user_id == user.id)
        .all()
    )
    permissions = (
        db.query(Permission.resource, Permission.action)
        .join(role_permissions, role_permissions.c.permission_id == Permission.id)
        .join(user_roles, user_roles.c.role_id == role_permissions.c.role_id)
        .filter(user_roles.c.user_id == user.id)
        .distinct()
        .all()
    )
    role_names = sorted({name for (name,) in roles})
    permission_keys = sorted({permission_key(resource, action) for resource, action in permissions})
    return role_names, permission_keys


def assign_role(db: Session, user: User, role_name: str) -> bool:
    """Assign a role to a user. Returns False if the user already had it."""
    role = get_role(db, role_name)
    if role is None:
        raise NotFound("role not found")
    if role in user.roles:
        return False
    user.roles.append(role)
    db.commit()
    logger.info("Role assigned: user_id=%s role=%s", user.id, role_name)
    return True


def revoke_role(db: Session, user: User, role_name: str) -> None:
    """Remove a role from a user. Takes effect at the user's next token issuance."""
    role = get_role(db, role_name)
    if role is None or role not in user.roles:
        raise NotFound("role not assigned")
    user.roles.remove(role)
    db.commit()
    logger.info("Role revoked: user_id=%s role=%s", user.id, role_name)


def grant_permission(db: Session, role_name: str, resource: str, action: str) -> None:
    """Add (resource, action) to a role, creating the permission row if needed."""
    _validate_permission(resource, action)
    role = get_role(db, role_name)
    if role is None:
        raise NotFound("role not found")
    permission = _get_or_create_permission(db, resource, action)
    if permission not in role.permissions:
        role.permissions.append(permission)
    db.commit()
    logger.info("Permission granted: role=%s permission=%s", role_name, permission_key(resource, action))


def revoke_permission(db: Session, role_name: str, resource: str, action: str) -> None:
    """Remove (resource, action) from a role; the permission row itself is kept."""
    role = get_role(db, role_name)
    if role is None:
        raise NotFound("role not found")
    for permission in list(role.permissions):
        if permission.resource == resource and permission.action == action:
            role.permissions.remove(permission)
            db.commit()
            logger.info("Permission revoked: role=%s permission=%s", role_name, permission_key(resource, action))
            return
    raise NotFound("permission not granted to role")


def role_permission_keys(db: Session, role_name: str) -> list[str]:
    """Sorted 'resource:action' keys granted to a role."""
    role = get_role(db, role_name)
    if role is None:
        raise NotFound("role not found")
    return sorted(permission.key for permission in role.permissions)
