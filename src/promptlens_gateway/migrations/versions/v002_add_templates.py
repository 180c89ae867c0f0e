"""Add prompt templates table.

Version: 2
"""
from alembic.operations import Operations
import sqlalchemy as sa

version: int = 2


def upgrade(op: Operations) -> None:
    op.create_table(
        "prompt_templates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("type", sa.String, nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("user_id", "name", "type"),
        sa.CheckConstraint("type IN ('system', 'user')", name="ck_prompt_templates_type"),
    )
