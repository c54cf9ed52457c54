"""Change descriptions for ledger records.

Builds the human-readable `changes` text from whatever entity identity is
available when a synchronization completes. Never raises.
"""

from __future__ import annotations

from collections.abc import Sequence

from schema_audit.core.logging import get_logger
from schema_audit.migrate.base import Entity, NamedEntity, resolve_table

logger = get_logger(__name__)

GENERAL_MIGRATION = "No specific models found, general AutoMigrate performed"
UNKNOWN_MODELS = "Unable to determine migrated models"


class EntityNameError(TypeError):
    """The entity does not expose a logical name."""


def entity_name(entity: Entity) -> str:
    """Resolve the logical name of an entity.

    Order: an explicit entity_name() capability, then the table's
    info["entity_name"], then the declared table name.

    Raises:
        EntityNameError: If no name can be resolved
    """
    if isinstance(entity, NamedEntity):
        name = entity.entity_name()
    else:
        try:
            table = resolve_table(entity)
        except TypeError as e:
            raise EntityNameError(str(e)) from e
        name = table.info.get("entity_name", table.name)

    if not isinstance(name, str) or not name:
        raise EntityNameError(f"{entity!r} has no usable entity name")
    return name


def _line(name: str) -> str:
    return f"AutoMigrated {name}"


def describe_entity(entity: Entity) -> str:
    """Describe the synchronization of a single entity."""
    try:
        return _line(entity_name(entity))
    except Exception as e:
        logger.warning("entity_name_unresolved", entity=repr(entity), error=str(e))
        return UNKNOWN_MODELS


def describe_batch(entities: Sequence[Entity]) -> str:
    """Describe a batch synchronization, one line per entity in host order.

    An empty batch is a general pass.
    """
    if not entities:
        return GENERAL_MIGRATION
    try:
        return "\n".join(_line(entity_name(e)) for e in entities)
    except Exception as e:
        logger.warning("batch_names_unresolved", count=len(entities), error=str(e))
        return UNKNOWN_MODELS
