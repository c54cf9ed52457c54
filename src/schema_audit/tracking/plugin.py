"""Auto-migrate tracking plugin.

Wraps the host's synchronizers so every successful synchronization appends
one record to the schema version ledger.

Usage:
    from schema_audit.migrate import AutoMigrator
    from schema_audit.tracking import AutoMigratePlugin

    migrator = AutoMigrator(engine)
    AutoMigratePlugin().initialize(migrator)  # raises InitError

    migration = migrator.auto_migrate(Order)
    migration.errors  # sync and ledger failures land here
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from schema_audit.core.config import get_settings
from schema_audit.core.logging import get_logger, log_context
from schema_audit.migrate.base import (
    BatchSynchronizer,
    Entity,
    EntitySynchronizer,
    MigrationPass,
)
from schema_audit.migrate.migrator import AutoMigrator, ExtensionPointError
from schema_audit.tracking.describe import (
    UNKNOWN_MODELS,
    describe_batch,
    describe_entity,
    entity_name,
)
from schema_audit.tracking.errors import (
    InitError,
    StorageError,
    SyncDelegationError,
)
from schema_audit.tracking.ledger import VersionLedger
from schema_audit.tracking.models import MigrationRecord, SyncContext, utc_now

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = get_logger(__name__)


def _display_name(entity: Entity) -> str:
    try:
        return entity_name(entity)
    except Exception:
        return UNKNOWN_MODELS


class AutoMigratePlugin:
    """Records a ledger entry for each synchronization the host performs.

    The plugin keeps no per-invocation state: each interception gets its own
    SyncContext, so concurrent passes never share start times.

    Version labels have second precision by default. Two syncs starting in
    the same second (including consecutive entities of one pass) share a
    label, and the later one is reported as a VersionConflictError instead
    of being recorded. Set SCHEMA_AUDIT_VERSION_FORMAT (or version_format)
    to a finer format such as "%Y%m%d%H%M%S%f" to record every sync.

    A ledger created by the plugin is bound to the engine of the first host
    it is initialized on; other hosts need their own plugin or an explicit
    ledger.
    """

    name = "schema_audit:auto_migrate"

    def __init__(
        self,
        ledger: VersionLedger | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        version_format: str | None = None,
    ):
        """Initialize plugin.

        Args:
            ledger: Ledger to write to. Defaults to one on the host's engine.
            clock: Source of start and applied timestamps
            version_format: strftime format for version labels.
                            Defaults to settings.version_format.
        """
        self.ledger = ledger
        # Engine of a ledger the plugin created itself; None when injected
        self._bound_engine: Engine | None = None
        self.clock = clock
        self.version_format = version_format or get_settings().version_format

    def initialize(self, migrator: AutoMigrator) -> None:
        """Create the ledger table and install into the host.

        Idempotent for the same migrator.

        Raises:
            InitError: If either step fails, or if the migrator uses another
                engine than the ledger this plugin created. Tracking is then
                not active.
        """
        logger.info("plugin_initializing", plugin=self.name)

        if self.ledger is None:
            self.ledger = VersionLedger(migrator.engine)
            self._bound_engine = migrator.engine
        elif self._bound_engine is not None and self._bound_engine is not migrator.engine:
            logger.error("plugin_engine_mismatch", plugin=self.name)
            raise InitError(
                f"plugin ledger is bound to {self._bound_engine.url!r}, "
                f"not to {migrator.engine.url!r}"
            )

        try:
            self.ledger.ensure_initialized()
        except StorageError as e:
            logger.error("plugin_ledger_init_failed", error=str(e))
            raise InitError(f"failed to create schema version table: {e}") from e

        try:
            migrator.install(
                self.name,
                self,
                entity=self._wrap_entity,
                batch=self._wrap_batch,
            )
        except ExtensionPointError as e:
            logger.error("plugin_install_failed", error=str(e))
            raise InitError(f"failed to register auto-migrate hooks: {e}") from e

        logger.info("plugin_initialized", plugin=self.name)

    def _wrap_entity(self, inner: EntitySynchronizer) -> EntitySynchronizer:
        def synchronize(migration: MigrationPass, entity: Entity) -> None:
            self.on_synchronize(migration, entity, inner)

        return synchronize

    def _wrap_batch(self, inner: BatchSynchronizer) -> BatchSynchronizer:
        def synchronize(migration: MigrationPass, entities: Sequence[Entity]) -> None:
            self.on_synchronize_batch(migration, entities, inner)

        return synchronize

    def on_synchronize(
        self, migration: MigrationPass, entity: Entity, inner: EntitySynchronizer
    ) -> None:
        """Synchronize one entity through inner and record it."""
        ctx = SyncContext.start(self.clock)
        name = _display_name(entity)

        with log_context(sync_id=ctx.sync_id, entity=name):
            logger.debug("sync_started", started_at=ctx.started_at.isoformat())
            try:
                inner(migration, entity)
            except Exception as e:
                logger.warning("sync_failed", error=str(e))
                migration.add_error(SyncDelegationError(name, e))
                return

            self._record(migration, ctx, describe_entity(entity))

    def on_synchronize_batch(
        self,
        migration: MigrationPass,
        entities: Sequence[Entity],
        inner: BatchSynchronizer,
    ) -> None:
        """Synchronize a batch through inner and record it as one entry."""
        ctx = SyncContext.start(self.clock)

        with log_context(sync_id=ctx.sync_id, batch_size=len(entities)):
            logger.debug("batch_sync_started", started_at=ctx.started_at.isoformat())
            try:
                inner(migration, entities)
            except Exception as e:
                logger.warning("batch_sync_failed", error=str(e))
                names = ", ".join(_display_name(x) for x in entities) or "all models"
                migration.add_error(SyncDelegationError(names, e))
                return

            self._record(migration, ctx, describe_batch(entities))

    def _record(self, migration: MigrationPass, ctx: SyncContext, changes: str) -> None:
        assert self.ledger is not None, "initialize() must run first"

        record = ctx.to_record(changes, self.clock(), self.version_format)
        logger.debug("change_log_generated", version=record.version, changes=changes)

        try:
            stored = self.ledger.append(record)
        except StorageError as e:
            # The schema change already happened; it stays unaudited
            logger.error("schema_version_not_recorded", version=record.version, error=str(e))
            migration.add_error(e)
            return

        logger.info("schema_version_recorded", version=stored.version, id=stored.id)

    def history(self) -> list[MigrationRecord]:
        """Recorded history, newest first.

        Raises:
            StorageUnavailableError: If the ledger cannot be read
        """
        assert self.ledger is not None, "initialize() must run first"
        return self.ledger.list_history()
