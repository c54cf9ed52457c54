"""Schema version ledger.

Append-only persistence of MigrationRecords in the schema_versions table.
SQLAlchemy model is in storage/db_models.py.

Usage:
    from schema_audit.tracking.ledger import VersionLedger

    ledger = VersionLedger(engine)
    ledger.ensure_initialized()
    ledger.append(record)

    # Newest first
    history = ledger.list_history()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from schema_audit.core.logging import get_logger
from schema_audit.core.models import Result
from schema_audit.storage import LEDGER_COLUMNS, LEDGER_TABLE, SchemaVersion, init_database
from schema_audit.tracking.errors import StorageUnavailableError, VersionConflictError
from schema_audit.tracking.models import MigrationRecord

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = get_logger(__name__)


class VersionLedger:
    """Repository for the schema version ledger.

    Holds no state besides the engine, so one ledger can be shared by
    concurrent synchronizations. Uniqueness of version labels is enforced by
    the database, not here.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def ensure_initialized(self) -> None:
        """Create the ledger table if it does not exist.

        Safe to call on every startup. A table created concurrently by
        another process is accepted as long as it has the expected columns.

        Raises:
            StorageUnavailableError: If the table cannot be created or an
                existing table has a different shape
        """
        try:
            init_database(self.engine)
        except SQLAlchemyError as e:
            # Lost a create race: fine if the table is there now
            if not self._table_exists():
                logger.error("ledger_init_failed", error=str(e))
                raise StorageUnavailableError(f"failed to create {LEDGER_TABLE}: {e}") from e
            logger.debug("ledger_created_concurrently")

        self._verify_shape()
        logger.debug("ledger_initialized", table=LEDGER_TABLE)

    def _table_exists(self) -> bool:
        try:
            with self.engine.connect() as conn:
                return inspect(conn).has_table(LEDGER_TABLE)
        except SQLAlchemyError:
            return False

    def _verify_shape(self) -> None:
        try:
            with self.engine.connect() as conn:
                columns = {c["name"] for c in inspect(conn).get_columns(LEDGER_TABLE)}
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"failed to inspect {LEDGER_TABLE}: {e}") from e

        missing = LEDGER_COLUMNS - columns
        if missing:
            raise StorageUnavailableError(
                f"{LEDGER_TABLE} exists but is missing columns: {', '.join(sorted(missing))}"
            )

    def append(self, record: MigrationRecord) -> MigrationRecord:
        """Write one record.

        Args:
            record: Record to store; its id is ignored

        Returns:
            The stored record with its assigned id

        Raises:
            VersionConflictError: If the version label is already recorded
            StorageUnavailableError: On any other storage failure
        """
        row = SchemaVersion(
            version=record.version,
            applied_at=record.applied_at,
            changes=record.changes,
        )
        with Session(self.engine, expire_on_commit=False) as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                logger.warning("ledger_version_conflict", version=record.version)
                raise VersionConflictError(record.version) from e
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("ledger_append_failed", version=record.version, error=str(e))
                raise StorageUnavailableError(f"failed to record schema version: {e}") from e

        stored = MigrationRecord.model_validate(row)
        logger.info("ledger_record_appended", id=stored.id, version=stored.version)
        return stored

    def list_history(self) -> list[MigrationRecord]:
        """Get all records, most recently applied first.

        Raises:
            StorageUnavailableError: If the ledger cannot be read
        """
        stmt = select(SchemaVersion).order_by(
            SchemaVersion.applied_at.desc(), SchemaVersion.id.desc()
        )
        try:
            with Session(self.engine) as session:
                rows = session.execute(stmt).scalars().all()
                history = [MigrationRecord.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error("ledger_read_failed", error=str(e))
            raise StorageUnavailableError(f"failed to retrieve migration history: {e}") from e

        logger.debug("ledger_history_read", count=len(history))
        return history

    def current_version(self) -> str | None:
        """Get the most recently applied version label."""
        stmt = (
            select(SchemaVersion.version)
            .order_by(SchemaVersion.applied_at.desc(), SchemaVersion.id.desc())
            .limit(1)
        )
        try:
            with Session(self.engine) as session:
                return session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"failed to read current version: {e}") from e


def get_migration_history(engine: Engine) -> Result[list[MigrationRecord]]:
    """Get the full migration history, newest first.

    Read failures come back as a failed Result rather than raising.
    """
    try:
        return Result.ok(VersionLedger(engine).list_history())
    except StorageUnavailableError as e:
        return Result.fail(str(e))
