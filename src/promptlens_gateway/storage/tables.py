"""
Table definitions used by the repositories.

The tables themselves are created by migrations; these definitions only
describe them for queries.
"""

import sqlalchemy as sa

metadata = sa.MetaData()

schema_migrations = sa.Table(
    "schema_migrations",
    metadata,
    sa.Column("version", sa.Integer, primary_key=True, autoincrement=False),
    sa.Column("applied_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
)

models = sa.Table(
    "models",
    metadata,
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

api_keys = sa.Table(
    "api_keys",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("provider", sa.String, nullable=False),
    sa.Column("api_key", sa.String, nullable=False),
    sa.Column("user_id", sa.Integer),
    sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
)

model_favorites = sa.Table(
    "model_favorites",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Integer),
    sa.Column("model_id", sa.String, nullable=False),
    sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
)

chat_history = sa.Table(
    "chat_history",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Integer),
    sa.Column("system_prompt", sa.Text, nullable=False),
    sa.Column("user_prompt", sa.Text, nullable=False),
    sa.Column("responses", sa.Text, nullable=False),
    sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
)
