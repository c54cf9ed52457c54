"""Auto-migrate host.

Runs schema synchronization for a set of entities, delegating the DDL to
SQLAlchemy. The per-entity and batch synchronizers are replaceable through
install(), which is how plugins observe every synchronization.

Usage:
    from schema_audit.migrate import AutoMigrator

    migrator = AutoMigrator(engine, metadata=AppBase.metadata)
    migration = migrator.auto_migrate(Order, Customer)
    if not migration.ok:
        for error in migration.errors:
            ...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy.schema import sort_tables

from schema_audit.core.logging import get_logger
from schema_audit.migrate.base import (
    BatchSynchronizer,
    BatchWrapper,
    Entity,
    EntitySynchronizer,
    EntityWrapper,
    MigrationPass,
    resolve_table,
)

if TYPE_CHECKING:
    from sqlalchemy import MetaData
    from sqlalchemy.engine import Engine

logger = get_logger(__name__)


class ExtensionPointError(Exception):
    """An extension point could not be claimed."""

    def __init__(self, owner: str, message: str):
        self.owner = owner
        self.message = message
        super().__init__(f"{owner}: {message}")


def create_entity_table(migration: MigrationPass, entity: Entity) -> None:
    """Default per-entity synchronizer: create the entity's table if missing."""
    table = resolve_table(entity)
    with migration.engine.begin() as conn:
        table.create(conn, checkfirst=True)


def create_batch_tables(migration: MigrationPass, entities: Sequence[Entity]) -> None:
    """Default batch synchronizer.

    Creates the given tables in dependency order in one transaction. An empty
    batch creates everything in the pass metadata.

    Raises:
        ValueError: If the batch is empty and the pass has no metadata
    """
    if not entities and migration.metadata is None:
        raise ValueError("general auto-migrate pass needs metadata")

    with migration.engine.begin() as conn:
        if not entities:
            migration.metadata.create_all(conn)
            return
        for table in sort_tables([resolve_table(e) for e in entities]):
            table.create(conn, checkfirst=True)


@dataclass
class AutoMigrator:
    """Host for auto-migrate passes.

    Attributes:
        engine: Engine the schema lives in
        metadata: Metadata used for general (entity-less) passes
        per_entity: Synchronize one entity at a time (preferred). When False,
            each pass is a single batch synchronization.
    """

    engine: Engine
    metadata: MetaData | None = None
    per_entity: bool = True

    entity_synchronizer: EntitySynchronizer = field(default=create_entity_table)
    batch_synchronizer: BatchSynchronizer = field(default=create_batch_tables)

    # Extension point owners (name -> installed object)
    _installed: dict[str, object] = field(default_factory=dict, init=False, repr=False)

    def install(
        self,
        name: str,
        owner: object,
        *,
        entity: EntityWrapper | None = None,
        batch: BatchWrapper | None = None,
    ) -> bool:
        """Wrap the synchronizers under an exclusive name.

        Args:
            name: Unique name for the installation
            owner: Object claiming the name
            entity: Wraps the current per-entity synchronizer
            batch: Wraps the current batch synchronizer

        Returns:
            True if installed, False if owner had already installed under name

        Raises:
            ExtensionPointError: If name is claimed by a different owner, or
                no wrapper is given
        """
        existing = self._installed.get(name)
        if existing is owner:
            logger.debug("extension_already_installed", name=name)
            return False
        if existing is not None:
            raise ExtensionPointError(name, "extension point already claimed")
        if entity is None and batch is None:
            raise ExtensionPointError(name, "nothing to install")

        if entity is not None:
            self.entity_synchronizer = entity(self.entity_synchronizer)
        if batch is not None:
            self.batch_synchronizer = batch(self.batch_synchronizer)
        self._installed[name] = owner

        logger.info(
            "extension_installed",
            name=name,
            entity=entity is not None,
            batch=batch is not None,
        )
        return True

    def is_installed(self, name: str) -> bool:
        return name in self._installed

    def auto_migrate(self, *entities: Entity) -> MigrationPass:
        """Synchronize the schema of the given entities.

        Failures never raise: they are collected on the returned pass.
        With no entities, a general pass over self.metadata is run; without
        metadata that pass fails into the error channel.

        Returns:
            MigrationPass with accumulated errors
        """
        migration = MigrationPass(engine=self.engine, metadata=self.metadata)

        if self.per_entity and entities:
            for entity in entities:
                try:
                    self.entity_synchronizer(migration, entity)
                except Exception as e:
                    logger.warning("entity_sync_failed", entity=repr(entity), error=str(e))
                    migration.add_error(e)
        else:
            try:
                self.batch_synchronizer(migration, list(entities))
            except Exception as e:
                logger.warning("batch_sync_failed", count=len(entities), error=str(e))
                migration.add_error(e)

        logger.info(
            "auto_migrate_finished",
            entities=len(entities),
            per_entity=self.per_entity,
            errors=len(migration.errors),
        )
        return migration
