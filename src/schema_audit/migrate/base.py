"""Auto-migrate base types and protocols.

Defines what an entity is, the synchronizer protocols the host exposes as
extension points, and the per-pass error channel.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import Table

if TYPE_CHECKING:
    from sqlalchemy import MetaData
    from sqlalchemy.engine import Engine

# A mapped class (anything with __table__) or a Core Table
Entity = Any


@runtime_checkable
class NamedEntity(Protocol):
    """Capability: an entity that declares its own logical name."""

    @classmethod
    def entity_name(cls) -> str:
        """Stable logical name used in change descriptions."""
        ...


class AuditedEntity:
    """Mixin for mapped classes that declare a logical name.

    Example:
        class Order(AuditedEntity, AppBase):
            __tablename__ = "orders"
            __entity_name__ = "Order"
    """

    @classmethod
    def entity_name(cls) -> str:
        return cls.__entity_name__


def resolve_table(entity: Entity) -> Table:
    """Get the Table an entity synchronizes to.

    Raises:
        TypeError: If the entity is neither a Table nor a mapped class
    """
    if isinstance(entity, Table):
        return entity
    table = getattr(entity, "__table__", None)
    if isinstance(table, Table):
        return table
    raise TypeError(f"{entity!r} is not a Table or a mapped class")


class MigrationErrors(Exception):
    """All errors accumulated during one auto-migrate pass."""

    def __init__(self, errors: list[Exception]):
        self.errors = errors
        summary = "; ".join(str(e) for e in errors)
        super().__init__(f"auto-migrate finished with {len(errors)} error(s): {summary}")


@dataclass
class MigrationPass:
    """State of one auto-migrate call.

    Created fresh by AutoMigrator.auto_migrate() and handed to every
    synchronizer invoked during that call. Errors added here are the host's
    non-fatal error channel.
    """

    engine: Engine
    metadata: MetaData | None = None
    errors: list[Exception] = field(default_factory=list)

    def add_error(self, error: Exception) -> None:
        """Record a non-fatal error for this pass."""
        self.errors.append(error)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error(self) -> Exception | None:
        """Most recent error, if any."""
        return self.errors[-1] if self.errors else None

    def raise_for_errors(self) -> None:
        """Raise the accumulated errors as a MigrationErrors group."""
        if self.errors:
            raise MigrationErrors(list(self.errors))


class EntitySynchronizer(Protocol):
    """Synchronizes the schema of a single entity."""

    def __call__(self, migration: MigrationPass, entity: Entity) -> None: ...


class BatchSynchronizer(Protocol):
    """Synchronizes a batch of entities in one step.

    An empty batch means a general pass over the host metadata.
    """

    def __call__(self, migration: MigrationPass, entities: Sequence[Entity]) -> None: ...


EntityWrapper = Callable[[EntitySynchronizer], EntitySynchronizer]
BatchWrapper = Callable[[BatchSynchronizer], BatchSynchronizer]
