"""
Schema and model-registry migrations.
"""

from .manager import MIGRATIONS, Migration, MigrationManager, validate_migrations

__all__ = ["MIGRATIONS", "Migration", "MigrationManager", "validate_migrations"]
