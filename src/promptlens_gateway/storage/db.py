"""
Database engine management.

Provides the async SQLAlchemy engine shared by the migration manager and
the repositories. SQLite (aiosqlite) is the default store; PostgreSQL is
reached through asyncpg.
"""

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for a database URL.

    SQLite connections are switched to explicit ``BEGIN`` so that DDL runs
    inside the migration transaction and rolls back with it.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite+aiosqlite:///./promptlens.db``
        echo: Log emitted SQL

    Returns:
        Configured AsyncEngine
    """
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_async_engine(database_url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _disable_implicit_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_explicitly(conn):
            conn.exec_driver_sql("BEGIN")

    logger.info(f"Database engine created for dialect {engine.dialect.name}")
    return engine
