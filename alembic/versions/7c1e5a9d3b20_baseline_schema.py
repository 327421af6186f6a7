"""baseline_schema

Revision ID: 7c1e5a9d3b20
Revises: 
Create Date: 2026-10-18 10:12:41.118204

Production-safe migration: only creates tables that are missing.
"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import inspect

from alumnihive.db.base import Base
import alumnihive.db.models  # noqa: F401


# revision identifiers, used by Alembic.
revision: str = '7c1e5a9d3b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    """
    Create users, batches, messaging, subscription, payment, job and batch chat
    tables in dependency order, skipping any that already exist.
    """
    bind = op.get_bind()
    for table in Base.metadata.sorted_tables:
        if not table_exists(table.name):
            table.create(bind)


def downgrade() -> None:
    bind = op.get_bind()
    for table in reversed(Base.metadata.sorted_tables):
        if table_exists(table.name):
            table.drop(bind)
