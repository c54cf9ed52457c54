"""schema-audit - a durable history of SQLAlchemy auto-migrate runs."""

from schema_audit.migrate import AuditedEntity, AutoMigrator, MigrationPass
from schema_audit.tracking import (
    AutoMigratePlugin,
    InitError,
    MigrationRecord,
    VersionLedger,
    get_migration_history,
)

__version__ = "0.1.0"

__all__ = [
    "AuditedEntity",
    "AutoMigrator",
    "AutoMigratePlugin",
    "InitError",
    "MigrationPass",
    "MigrationRecord",
    "VersionLedger",
    "get_migration_history",
]
