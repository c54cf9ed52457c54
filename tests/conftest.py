"""Shared pytest fixtures for all tests."""

import threading
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from schema_audit.migrate import AuditedEntity
from schema_audit.storage import get_engine
from schema_audit.tracking import VersionLedger


class AppBase(DeclarativeBase):
    """Application models whose schema gets auto-migrated in tests."""


class Customer(AuditedEntity, AppBase):
    __tablename__ = "customers"
    __entity_name__ = "Customer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))


class Order(AuditedEntity, AppBase):
    __tablename__ = "orders"
    __entity_name__ = "Order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"))


class AuditLog(AppBase):
    """No declared entity name: described by its table name."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class SteppingClock:
    """Deterministic clock: each call returns the previous time plus step."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self._next = start
        self._step = step
        self._lock = threading.Lock()
        self.start = start

    def __call__(self) -> datetime:
        with self._lock:
            now = self._next
            self._next += self._step
            return now


T0 = datetime(2025, 7, 6, 3, 58, 5, tzinfo=UTC)


@pytest.fixture
def app_models() -> SimpleNamespace:
    return SimpleNamespace(
        base=AppBase,
        Customer=Customer,
        Order=Order,
        AuditLog=AuditLog,
    )


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'audit.db'}"


@pytest.fixture
def engine(database_url: str) -> Iterator[Engine]:
    """Create a file-backed SQLite engine for testing.

    A file (not :memory:) so the ledger and the synchronizers can use
    separate pooled connections to the same database.
    """
    test_engine = get_engine(database_url, echo=False)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def ledger(engine: Engine) -> VersionLedger:
    ledger = VersionLedger(engine)
    ledger.ensure_initialized()
    return ledger


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock(T0)
