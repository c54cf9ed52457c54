"""Schema change tracking: the auto-migrate plugin and its version ledger."""

from schema_audit.tracking.describe import (
    GENERAL_MIGRATION,
    UNKNOWN_MODELS,
    describe_batch,
    describe_entity,
    entity_name,
)
from schema_audit.tracking.errors import (
    InitError,
    SchemaAuditError,
    StorageError,
    StorageUnavailableError,
    SyncDelegationError,
    VersionConflictError,
)
from schema_audit.tracking.ledger import VersionLedger, get_migration_history
from schema_audit.tracking.models import MigrationRecord, SyncContext
from schema_audit.tracking.plugin import AutoMigratePlugin

__all__ = [
    # Plugin
    "AutoMigratePlugin",
    # Ledger
    "VersionLedger",
    "get_migration_history",
    "MigrationRecord",
    "SyncContext",
    # Descriptions
    "GENERAL_MIGRATION",
    "UNKNOWN_MODELS",
    "describe_batch",
    "describe_entity",
    "entity_name",
    # Errors
    "SchemaAuditError",
    "InitError",
    "SyncDelegationError",
    "StorageError",
    "StorageUnavailableError",
    "VersionConflictError",
]
