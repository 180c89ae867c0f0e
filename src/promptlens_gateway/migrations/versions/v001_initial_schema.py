"""Initial schema and model registry seed.

Version: 1

The seed list below is frozen. Models added or removed later get their own
migration so every installation converges to the same registry.
"""
from alembic.operations import Operations
import sqlalchemy as sa

version: int = 1

SEED_MODELS = [
    # Anthropic
    {"id": "claude-3-5-sonnet-20241022", "name": "Claude 3.5 Sonnet", "provider": "anthropic",
     "multilingual": True, "vision": True, "message_batches": True,
     "context_window": 200000, "max_output_tokens": 8192,
     "input_cost_per_1m": 3.0, "output_cost_per_1m": 15.0, "latency": "Fast"},
    {"id": "claude-3-5-haiku-20241022", "name": "Claude 3.5 Haiku", "provider": "anthropic",
     "multilingual": True, "vision": True, "message_batches": True,
     "context_window": 200000, "max_output_tokens": 8192,
     "input_cost_per_1m": 0.8, "output_cost_per_1m": 4.0, "latency": "Fastest"},
    {"id": "claude-3-opus-20240229", "name": "Claude 3 Opus", "provider": "anthropic",
     "multilingual": True, "vision": True, "message_batches": True,
     "context_window": 200000, "max_output_tokens": 4096,
     "input_cost_per_1m": 15.0, "output_cost_per_1m": 75.0, "latency": "Fast"},
    {"id": "claude-3-sonnet-20240229", "name": "Claude 3 Sonnet", "provider": "anthropic",
     "multilingual": True, "vision": True, "message_batches": True,
     "context_window": 200000, "max_output_tokens": 4096,
     "input_cost_per_1m": 3.0, "output_cost_per_1m": 15.0, "latency": "Fast"},
    {"id": "claude-3-haiku-20240307", "name": "Claude 3 Haiku", "provider": "anthropic",
     "multilingual": True, "vision": True, "message_batches": True,
     "context_window": 200000, "max_output_tokens": 4096,
     "input_cost_per_1m": 0.25, "output_cost_per_1m": 1.25, "latency": "Fastest"},
    # OpenAI
    {"id": "o1-2024-12-17", "name": "o1", "provider": "openai",
     "multilingual": True, "vision": False, "message_batches": True,
     "context_window": 128000, "max_output_tokens": 4096,
     "input_cost_per_1m": 15.0, "output_cost_per_1m": 60.0, "latency": "Fast"},
    {"id": "o1-mini-2024-09-12", "name": "o1 Mini", "provider": "openai",
     "multilingual": True, "vision": False, "message_batches": True,
     "context_window": 128000, "max_output_tokens": 4096,
     "input_cost_per_1m": 3.0, "output_cost_per_1m": 12.0, "latency": "Fast"},
    {"id": "gpt-4o-mini", "name": "GPT-4o Mini", "provider": "openai",
     "multilingual": True, "vision": False, "message_batches": False,
     "context_window": 128000, "max_output_tokens": 4096,
     "input_cost_per_1m": 0.15, "output_cost_per_1m": 0.60, "latency": "Fast"},
    {"id": "gpt-4-turbo", "name": "GPT-4 Turbo", "provider": "openai",
     "multilingual": True, "vision": False, "message_batches": False,
     "context_window": 128000, "max_output_tokens": 4096,
     "input_cost_per_1m": 10.0, "output_cost_per_1m": 30.0, "latency": "Fast"},
    {"id": "gpt-3.5-turbo", "name": "GPT-3.5 Turbo", "provider": "openai",
     "multilingual": True, "vision": False, "message_batches": False,
     "context_window": 16385, "max_output_tokens": 4096,
     "input_cost_per_1m": 0.5, "output_cost_per_1m": 1.5, "latency": "Fastest"},
]


def upgrade(op: Operations) -> None:
    op.create_table(
        "api_keys",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("provider", sa.String, nullable=False),
        sa.Column("api_key", sa.String, nullable=False),
        sa.Column("user_id", sa.Integer),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("provider", "user_id"),
    )

    op.create_table(
        "chat_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer),
        sa.Column("system_prompt", sa.Text, nullable=False),
        sa.Column("user_prompt", sa.Text, nullable=False),
        sa.Column("responses", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "model_favorites",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer),
        sa.Column("model_id", sa.String, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("user_id", "model_id"),
    )

    models = op.create_table(
        "models",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("provider", sa.String, nullable=False),
        sa.Column("multilingual", sa.Boolean, nullable=False),
        sa.Column("vision", sa.Boolean, nullable=False),
        sa.Column("message_batches", sa.Boolean, nullable=False),
        sa.Column("context_window", sa.Integer, nullable=False),
        sa.Column("max_output_tokens", sa.Integer, nullable=False),
        sa.Column("input_cost_per_1m", sa.Float, nullable=False),
        sa.Column("output_cost_per_1m", sa.Float, nullable=False),
        sa.Column("latency", sa.String, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
    )

    op.bulk_insert(models, SEED_MODELS)
