"""Storage layer for the schema version ledger.

This module provides:
- Base: SQLAlchemy declarative base
- SchemaVersion: Ledger row model
- get_engine: Database engine creation
- init_database: Schema management
"""

from schema_audit.storage.base import (
    Base,
    get_engine,
    init_database,
    metadata_obj,
)
from schema_audit.storage.db_models import LEDGER_COLUMNS, LEDGER_TABLE, SchemaVersion

__all__ = [
    # Base and metadata
    "Base",
    "metadata_obj",
    # Ledger
    "LEDGER_COLUMNS",
    "LEDGER_TABLE",
    "SchemaVersion",
    # Database management
    "get_engine",
    "init_database",
]
