"""Auto-migrate host: synchronizers, extension points, and the error channel."""

from schema_audit.migrate.base import (
    AuditedEntity,
    BatchSynchronizer,
    Entity,
    EntitySynchronizer,
    MigrationErrors,
    MigrationPass,
    NamedEntity,
    resolve_table,
)
from schema_audit.migrate.migrator import (
    AutoMigrator,
    ExtensionPointError,
    create_batch_tables,
    create_entity_table,
)

__all__ = [
    # Entities
    "AuditedEntity",
    "Entity",
    "NamedEntity",
    "resolve_table",
    # Host
    "AutoMigrator",
    "MigrationPass",
    "MigrationErrors",
    "ExtensionPointError",
    # Synchronizers
    "BatchSynchronizer",
    "EntitySynchronizer",
    "create_batch_tables",
    "create_entity_table",
]
