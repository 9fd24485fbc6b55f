"""Seed the default policy: admin (all permissions) and user (task permissions).

Revision ID: 20250301100000
Revises: 20250301000000
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy.orm import Session

from taskify.services.policy import seed_default_policy

revision: str = "20250301100000"
down_revision: Union[str, None] = "20250301000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    session = Session(bind=op.get_bind())
    try:
        seed_default_policy(session)
    finally:
        session.close()


def downgrade() -> None:
    op.execute("DELETE FROM role_permissions")
    op.execute("DELETE FROM user_roles")
    op.execute("DELETE FROM roles WHERE name IN ('admin', 'user')")
    op.execute("DELETE FROM permissions")
