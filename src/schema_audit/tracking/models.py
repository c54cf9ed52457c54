"""Tracking data structures.

MigrationRecord is the read/write model of a ledger row; the SQLAlchemy model
is storage.db_models.SchemaVersion. SyncContext carries the state of one
in-flight synchronization.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class MigrationRecord(BaseModel):
    """One entry in the schema version ledger."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int | None = Field(default=None, description="Assigned by storage")
    version: str = Field(description="Label derived from the sync start time")
    applied_at: datetime = Field(description="When the record was written")
    changes: str = Field(description="What was synchronized")


@dataclass(frozen=True)
class SyncContext:
    """State of a single synchronization, scoped to one invocation.

    Never stored on the plugin or the host: each interception creates its
    own and passes it down the call.
    """

    started_at: datetime
    sync_id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def start(cls, clock: Callable[[], datetime] = utc_now) -> SyncContext:
        return cls(started_at=clock())

    def version(self, fmt: str) -> str:
        """Version label for this sync (second precision with the default format)."""
        return self.started_at.strftime(fmt)

    def to_record(self, changes: str, applied_at: datetime, fmt: str) -> MigrationRecord:
        # applied_at never precedes the start, even with a clock step backwards
        return MigrationRecord(
            version=self.version(fmt),
            applied_at=max(applied_at, self.started_at),
            changes=changes,
        )
