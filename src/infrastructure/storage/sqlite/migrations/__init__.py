"""Versioned schema migrations for the SQLite database."""

from src.infrastructure.storage.sqlite.migrations.migrator import (
    MigrationResult,
    MigrationStatus,
    get_migration_status,
    initialize_database,
)

__all__ = ["initialize_database", "get_migration_status", "MigrationResult", "MigrationStatus"]
