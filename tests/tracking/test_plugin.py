"""Tests for the auto-migrate tracking plugin."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import Column, Integer, MetaData, Table, inspect
from sqlalchemy.engine import Engine

from schema_audit.core.config import DEFAULT_VERSION_FORMAT
from schema_audit.migrate import AutoMigrator, ExtensionPointError
from schema_audit.storage import LEDGER_TABLE, get_engine
from schema_audit.tracking import (
    GENERAL_MIGRATION,
    UNKNOWN_MODELS,
    AutoMigratePlugin,
    InitError,
    SyncDelegationError,
    VersionConflictError,
    VersionLedger,
)

from conftest import T0, SteppingClock


def failing_synchronizer(migration, entity):
    raise RuntimeError("disk full")


def failing_batch(migration, entities):
    raise RuntimeError("disk full")


@pytest.fixture
def migrator(engine: Engine, app_models) -> AutoMigrator:
    return AutoMigrator(engine, metadata=app_models.base.metadata)


@pytest.fixture
def plugin(migrator: AutoMigrator, clock: SteppingClock) -> AutoMigratePlugin:
    plugin = AutoMigratePlugin(clock=clock)
    plugin.initialize(migrator)
    return plugin


class TestInitialize:
    def test_creates_ledger_and_installs(self, engine: Engine, migrator: AutoMigrator):
        AutoMigratePlugin().initialize(migrator)

        with engine.connect() as conn:
            assert inspect(conn).has_table(LEDGER_TABLE)
        assert migrator.is_installed(AutoMigratePlugin.name)

    def test_idempotent(self, migrator: AutoMigrator, clock: SteppingClock, app_models):
        plugin = AutoMigratePlugin(clock=clock)
        plugin.initialize(migrator)
        plugin.initialize(migrator)
        plugin.initialize(migrator)

        migrator.auto_migrate(app_models.Order)

        # Wrapped once, so one record per sync
        assert len(plugin.history()) == 1

    def test_claimed_extension_point_is_fatal(self, migrator: AutoMigrator):
        AutoMigratePlugin().initialize(migrator)

        with pytest.raises(InitError) as exc_info:
            AutoMigratePlugin().initialize(migrator)

        assert isinstance(exc_info.value.__cause__, ExtensionPointError)

    def test_storage_failure_is_fatal(self, tmp_path, app_models):
        bad_engine = get_engine(f"sqlite:///{tmp_path / 'missing' / 'audit.db'}")
        migrator = AutoMigrator(bad_engine)
        try:
            with pytest.raises(InitError, match="schema version table"):
                AutoMigratePlugin().initialize(migrator)
        finally:
            bad_engine.dispose()

        assert not migrator.is_installed(AutoMigratePlugin.name)

    def test_uses_given_ledger(self, engine: Engine, migrator: AutoMigrator):
        ledger = VersionLedger(engine)
        plugin = AutoMigratePlugin(ledger)
        plugin.initialize(migrator)

        assert plugin.ledger is ledger

    def test_second_engine_rejected(self, tmp_path, migrator: AutoMigrator, app_models):
        plugin = AutoMigratePlugin()
        plugin.initialize(migrator)

        other_engine = get_engine(f"sqlite:///{tmp_path / 'other.db'}")
        other = AutoMigrator(other_engine)
        try:
            with pytest.raises(InitError, match="bound to"):
                plugin.initialize(other)

            assert not other.is_installed(AutoMigratePlugin.name)
            other.auto_migrate(app_models.Customer)
            with other_engine.connect() as conn:
                assert not inspect(conn).has_table(LEDGER_TABLE)
        finally:
            other_engine.dispose()

        assert plugin.history() == []

    def test_one_plugin_per_engine(self, tmp_path, migrator: AutoMigrator, app_models):
        AutoMigratePlugin().initialize(migrator)

        other_engine = get_engine(f"sqlite:///{tmp_path / 'other.db'}")
        other = AutoMigrator(other_engine)
        try:
            other_plugin = AutoMigratePlugin()
            other_plugin.initialize(other)
            other.auto_migrate(app_models.Customer)

            assert [r.changes for r in other_plugin.history()] == ["AutoMigrated Customer"]
        finally:
            other_engine.dispose()

        assert VersionLedger(migrator.engine).list_history() == []


class TestPerEntityTracking:
    def test_order_scenario(self, plugin, migrator, app_models):
        migration = migrator.auto_migrate(app_models.Order)

        assert migration.ok
        history = plugin.history()
        assert len(history) == 1
        assert history[0].version == T0.strftime("%Y%m%d%H%M%S")
        assert history[0].changes == "AutoMigrated Order"

    def test_one_record_per_entity(self, plugin, migrator, app_models):
        migrator.auto_migrate(app_models.Customer, app_models.Order, app_models.AuditLog)

        history = plugin.history()
        assert [r.changes for r in history] == [
            "AutoMigrated audit_logs",
            "AutoMigrated Order",
            "AutoMigrated Customer",
        ]
        assert len({r.version for r in history}) == 3

    def test_new_record_appears_first(self, plugin, migrator, app_models):
        migrator.auto_migrate(app_models.Customer)
        migrator.auto_migrate(app_models.Order)

        assert plugin.history()[0].changes == "AutoMigrated Order"

    def test_applied_at_not_before_start(self, plugin, migrator, app_models):
        migrator.auto_migrate(app_models.Order)

        record = plugin.history()[0]
        started = T0.replace(tzinfo=None)
        assert record.applied_at.replace(tzinfo=None) >= started

    def test_failed_sync_records_nothing(self, engine: Engine, clock, app_models):
        migrator = AutoMigrator(engine, entity_synchronizer=failing_synchronizer)
        plugin = AutoMigratePlugin(clock=clock)
        plugin.initialize(migrator)

        migration = migrator.auto_migrate(app_models.Order)

        assert plugin.history() == []
        assert len(migration.errors) == 1
        error = migration.errors[0]
        assert isinstance(error, SyncDelegationError)
        assert error.entity_name == "Order"
        assert "disk full" in str(error)

    def test_version_conflict_reported_schema_kept(
        self, engine: Engine, migrator: AutoMigrator, app_models
    ):
        # Every call returns the same second
        plugin = AutoMigratePlugin(clock=lambda: T0)
        plugin.initialize(migrator)

        migration = migrator.auto_migrate(app_models.Customer, app_models.Order)

        assert len(migration.errors) == 1
        assert isinstance(migration.errors[0], VersionConflictError)
        assert [r.changes for r in plugin.history()] == ["AutoMigrated Customer"]
        with engine.connect() as conn:
            assert inspect(conn).has_table("orders")

    def test_custom_version_format(self, migrator: AutoMigrator, clock, app_models):
        plugin = AutoMigratePlugin(clock=clock, version_format="%Y-%m-%dT%H:%M:%S")
        plugin.initialize(migrator)

        migrator.auto_migrate(app_models.Order)

        assert plugin.history()[0].version == "2025-07-06T03:58:05"

    def test_real_clock_same_second_conflicts(self, migrator: AutoMigrator, app_models):
        plugin = AutoMigratePlugin(version_format=DEFAULT_VERSION_FORMAT)
        plugin.initialize(migrator)

        migration = migrator.auto_migrate(app_models.Customer, app_models.Order)

        # Both syncs usually start within the same second; whichever comes
        # second is then reported, not recorded. Across a second boundary
        # both are recorded.
        history = plugin.history()
        assert all(isinstance(e, VersionConflictError) for e in migration.errors)
        assert len(history) + len(migration.errors) == 2
        assert history[-1].changes == "AutoMigrated Customer"
        assert len({r.version for r in history}) == len(history)
        with migrator.engine.connect() as conn:
            assert inspect(conn).has_table("orders")

    def test_sub_second_format_records_every_entity(
        self, migrator: AutoMigrator, app_models
    ):
        plugin = AutoMigratePlugin(version_format="%Y%m%d%H%M%S%f")
        plugin.initialize(migrator)

        migration = migrator.auto_migrate(app_models.Customer, app_models.Order)

        assert migration.ok
        assert len(plugin.history()) == 2

    def test_unresolvable_name_still_recorded(self, engine: Engine, plugin, migrator):
        scratch = Table(
            "scratch",
            MetaData(),
            Column("id", Integer, primary_key=True),
            info={"entity_name": ""},
        )

        migration = migrator.auto_migrate(scratch)

        assert migration.ok
        assert [r.changes for r in plugin.history()] == [UNKNOWN_MODELS]
        with engine.connect() as conn:
            assert inspect(conn).has_table("scratch")

    def test_concurrent_passes(self, plugin, migrator, app_models):
        entities = [app_models.Customer, app_models.Order, app_models.AuditLog]

        with ThreadPoolExecutor(max_workers=3) as pool:
            migrations = list(pool.map(migrator.auto_migrate, entities))

        assert all(m.ok for m in migrations)
        history = plugin.history()
        assert sorted(r.changes for r in history) == [
            "AutoMigrated Customer",
            "AutoMigrated Order",
            "AutoMigrated audit_logs",
        ]
        assert len({r.version for r in history}) == 3


class TestBatchTracking:
    def test_batch_description(self, engine: Engine, clock, app_models):
        migrator = AutoMigrator(engine, per_entity=False)
        plugin = AutoMigratePlugin(clock=clock)
        plugin.initialize(migrator)

        migration = migrator.auto_migrate(app_models.Customer, app_models.Order)

        assert migration.ok
        history = plugin.history()
        assert len(history) == 1
        assert history[0].changes == "AutoMigrated Customer\nAutoMigrated Order"

    def test_general_pass_sentinel(self, plugin, migrator, engine: Engine):
        migration = migrator.auto_migrate()

        assert migration.ok
        assert [r.changes for r in plugin.history()] == [GENERAL_MIGRATION]
        with engine.connect() as conn:
            assert inspect(conn).has_table("orders")

    def test_general_pass_without_metadata_records_nothing(
        self, engine: Engine, clock
    ):
        migrator = AutoMigrator(engine)
        plugin = AutoMigratePlugin(clock=clock)
        plugin.initialize(migrator)

        migration = migrator.auto_migrate()

        assert plugin.history() == []
        assert isinstance(migration.error, SyncDelegationError)
        assert migration.error.entity_name == "all models"

    def test_failed_batch_records_nothing(self, engine: Engine, clock, app_models):
        migrator = AutoMigrator(engine, per_entity=False, batch_synchronizer=failing_batch)
        plugin = AutoMigratePlugin(clock=clock)
        plugin.initialize(migrator)

        migration = migrator.auto_migrate(app_models.Customer, app_models.Order)

        assert plugin.history() == []
        assert isinstance(migration.error, SyncDelegationError)
        assert migration.error.entity_name == "Customer, Order"
