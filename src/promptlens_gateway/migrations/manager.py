"""
Versioned schema migration manager.

Applies an ordered, append-only list of migrations exactly once each, one
transaction per version, recording every applied version in
``schema_migrations``.
"""

import logging
from dataclasses import dataclass
from types import ModuleType
from typing import Callable, List, Optional, Sequence

import sqlalchemy as sa
from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from .versions import MIGRATION_MODULES
from ..core.errors import MigrationError
from ..storage import tables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    """One schema/data change."""
    version: int
    description: str
    upgrade: Callable[[Operations], None]

    @classmethod
    def from_module(cls, module: ModuleType) -> "Migration":
        doc = (module.__doc__ or "").strip()
        return cls(
            version=module.version,
            description=doc.splitlines()[0] if doc else module.__name__,
            upgrade=module.upgrade,
        )


MIGRATIONS: List[Migration] = [Migration.from_module(m) for m in MIGRATION_MODULES]


def validate_migrations(migrations: Sequence[Migration]) -> None:
    """
    Check that versions run 1, 2, 3, ... with no gaps or duplicates.

    Raises:
        MigrationError: If the list is out of order
    """
    for expected, migration in enumerate(migrations, start=1):
        if migration.version != expected:
            raise MigrationError(
                f"Migration versions must be contiguous from 1: "
                f"expected {expected}, found {migration.version}",
                version=migration.version,
            )


class MigrationManager:
    """
    Brings the store to the latest known schema version.

    Must finish before the gateway serves traffic. Concurrent
    initialization is not supported.
    """

    def __init__(self, engine: AsyncEngine, migrations: Optional[Sequence[Migration]] = None):
        self._engine = engine
        self._migrations = list(MIGRATIONS if migrations is None else migrations)

    @property
    def latest_version(self) -> int:
        return self._migrations[-1].version if self._migrations else 0

    async def initialize(self) -> int:
        """
        Apply every pending migration.

        Returns:
            Schema version after initialization

        Raises:
            MigrationError: If any migration fails; that migration is rolled
                back and no later migration is attempted
        """
        logger.info("Starting database initialization...")
        async with self._engine.connect() as conn:
            return await conn.run_sync(self._initialize)

    async def current_version(self) -> int:
        """Highest applied version, 0 for an empty store."""
        async with self._engine.connect() as conn:
            return await conn.run_sync(self._read_version)

    def _initialize(self, connection: Connection) -> int:
        validate_migrations(self._migrations)

        with connection.begin():
            tables.schema_migrations.create(connection, checkfirst=True)
            current = self._max_version(connection)

        logger.info(f"Current database version: {current}")
        logger.info(f"Available migrations: {[m.version for m in self._migrations]}")

        for migration in self._migrations:
            if migration.version <= current:
                logger.info(f"Skipping migration {migration.version} (already applied)")
                continue

            logger.info(f"Applying migration {migration.version}: {migration.description}")
            try:
                with connection.begin():
                    op = Operations(MigrationContext.configure(connection))
                    migration.upgrade(op)
                    connection.execute(
                        sa.insert(tables.schema_migrations).values(version=migration.version)
                    )
            except Exception as e:
                logger.error(f"Error applying migration {migration.version}: {e}")
                raise MigrationError(
                    f"Migration {migration.version} failed: {e}", version=migration.version
                ) from e

            current = migration.version
            logger.info(f"Migration {migration.version} applied successfully")

        return current

    def _read_version(self, connection: Connection) -> int:
        if not sa.inspect(connection).has_table(tables.schema_migrations.name):
            return 0
        return self._max_version(connection)

    @staticmethod
    def _max_version(connection: Connection) -> int:
        result = connection.execute(sa.select(sa.func.max(tables.schema_migrations.c.version)))
        return result.scalar() or 0
