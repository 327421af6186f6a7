"""profiles_mentorship_connections

Revision ID: b3f9d2a4e816
Revises: 7c1e5a9d3b20
Create Date: 2026-10-18 15:40:02.512877

Adds role profiles, mentorship requests/calls/sessions and connection
requests to databases created before they existed.
"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import inspect

from alumnihive.db.base import Base
import alumnihive.db.models  # noqa: F401


# revision identifiers, used by Alembic.
revision: str = 'b3f9d2a4e816'
down_revision: Union[str, None] = '7c1e5a9d3b20'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NEW_TABLES = (
    "alumni_profiles",
    "student_profiles",
    "mentorship_requests",
    "mentorship_calls",
    "mentor_sessions",
    "connection_requests",
)


def upgrade() -> None:
    bind = op.get_bind()
    existing = set(inspect(bind).get_table_names())
    for name in NEW_TABLES:
        if name not in existing:
            Base.metadata.tables[name].create(bind)


def downgrade() -> None:
    bind = op.get_bind()
    existing = set(inspect(bind).get_table_names())
    for name in reversed(NEW_TABLES):
        if name in existing:
            Base.metadata.tables[name].drop(bind)
