"""Error taxonomy for schema tracking."""


class SchemaAuditError(Exception):
    """Base class for schema-audit errors."""


class InitError(SchemaAuditError):
    """The plugin could not be initialized.

    Either the ledger table could not be created or the host extension point
    could not be claimed. Tracking is not active.
    """


class SyncDelegationError(SchemaAuditError):
    """The wrapped synchronizer failed; nothing was recorded."""

    def __init__(self, entity_name: str, cause: Exception):
        self.entity_name = entity_name
        self.cause = cause
        super().__init__(f"schema synchronization failed for {entity_name}: {cause}")


class StorageError(SchemaAuditError):
    """Ledger storage failure."""


class VersionConflictError(StorageError):
    """A record with the same version label already exists."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"schema version {version} already recorded")


class StorageUnavailableError(StorageError):
    """Ledger storage could not be read or written."""
