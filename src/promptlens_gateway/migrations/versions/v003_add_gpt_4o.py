"""Add GPT-4o to the model registry.

Version: 3
"""
from alembic.operations import Operations
import sqlalchemy as sa

version: int = 3

models = sa.table(
    "models",
    sa.column("id", sa.String),
    sa.column("name", sa.String),
    sa.column("provider", sa.String),
    sa.column("multilingual", sa.Boolean),
    sa.column("vision", sa.Boolean),
    sa.column("message_batches", sa.Boolean),
    sa.column("context_window", sa.Integer),
    sa.column("max_output_tokens", sa.Integer),
    sa.column("input_cost_per_1m", sa.Float),
    sa.column("output_cost_per_1m", sa.Float),
    sa.column("latency", sa.String),
)


def upgrade(op: Operations) -> None:
    op.bulk_insert(models, [
        {"id": "gpt-4o", "name": "GPT-4o", "provider": "openai",
         "multilingual": True, "vision": True, "message_batches": True,
         "context_window": 128000, "max_output_tokens": 16384,
         "input_cost_per_1m": 2.5, "output_cost_per_1m": 10.0, "latency": "Fast"},
    ])
