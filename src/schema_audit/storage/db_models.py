"""Schema Version Ledger.

SQLAlchemy model for the append-only record of auto-migrate runs.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from schema_audit.storage.base import Base

LEDGER_TABLE = "schema_versions"
LEDGER_COLUMNS = frozenset({"id", "version", "applied_at", "changes"})


class SchemaVersion(Base):
    """One synchronized schema change.

    Rows are inserted once and never updated or deleted by schema-audit.
    """

    __tablename__ = LEDGER_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Label derived from the sync start time, e.g. "20250706035805"
    version: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    changes: Mapped[str] = mapped_column(Text, nullable=False)
