"""Unit tests for the transactional migration runner."""

import logging
import threading

import pytest

from schemaguard.db.migrations import (
    MigrationRunner, VersionManager, MigrationExecutionError, MigrationValidationError,
    ResourceNotFoundError, RollbackNotSupportedError, PackageContentProvider,
    MappingContentProvider, DirectoryContentProvider, load_default_catalog
)

from conftest import SAMPLE_MIGRATIONS, build_catalog


@pytest.fixture
def make_runner(connection_manager):
    """Build a runner over a custom list of migrations."""
    def _make(entries):
        catalog, provider = build_catalog(entries)
        version_manager = VersionManager(connection_manager, catalog)
        return MigrationRunner(connection_manager, version_manager, provider)
    return _make


def table_names(connection_manager):
    rows = connection_manager.execute_query(
        "SELECT table_name FROM information_schema.tables WHERE table_schema = 'main'"
    )
    return {row[0] for row in rows}


class TestApplyPending:
    """Test applying pending migrations."""

    def test_applies_all_in_order(self, runner, version_manager, connection_manager):
        applied = runner.apply_pending_migrations()

        assert [m.version for m in applied] == [1, 2, 3]
        assert {'customers', 'orders', 'customer_emails'} <= table_names(connection_manager)
        assert [r.version for r in version_manager.get_applied_migrations()] == [1, 2, 3]

    def test_second_run_is_noop(self, runner, version_manager):
        runner.apply_pending_migrations()
        assert runner.apply_pending_migrations() == []
        assert len(version_manager.get_applied_migrations()) == 3

    def test_ledger_records_execution_time(self, runner, version_manager):
        runner.apply_pending_migrations()
        for record in version_manager.get_applied_migrations():
            assert record.execution_time_ms is not None
            assert record.execution_time_ms >= 0

    def test_check_pending_does_not_apply(self, runner, version_manager):
        assert [m.version for m in runner.check_pending_migrations()] == [1, 2, 3]
        assert version_manager.get_current_version() == -1

    def test_legacy_database_is_adopted(self, runner, version_manager, connection_manager):
        connection_manager.execute_query(
            "CREATE TABLE customers (id INTEGER PRIMARY KEY, name VARCHAR NOT NULL)", fetch='none'
        )
        connection_manager.execute_query("INSERT INTO customers VALUES (1, 'Asha')", fetch='none')
        assert version_manager.get_current_version() == 0

        runner.apply_pending_migrations()

        assert version_manager.get_current_version() == 3
        rows = connection_manager.execute_query("SELECT name FROM customers")
        assert rows == [('Asha',)]

    def test_apply_migration_skips_applied(self, runner, version_manager, catalog):
        version_manager.create_tracking_table()
        assert runner.apply_migration(catalog.get(1)) is True
        assert runner.apply_migration(catalog.get(1)) is False

    def test_concurrent_batches_apply_each_migration_once(self, runner, version_manager):
        results = []
        errors = []

        def worker():
            try:
                results.append(runner.apply_pending_migrations())
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(len(batch) for batch in results) == [0, 3]
        assert [r.version for r in version_manager.get_applied_migrations()] == [1, 2, 3]


class TestFailures:
    """Test failure handling and atomicity."""

    def test_syntax_error_stops_batch(self, make_runner, connection_manager):
        entries = list(SAMPLE_MIGRATIONS)
        entries[1] = (2, 'v002_broken', 'Broken', 'v002_broken.sql', "CREAT TABLE orders (id INTEGER);")
        runner = make_runner(entries)

        with pytest.raises(MigrationExecutionError) as exc_info:
            runner.apply_pending_migrations()

        error = exc_info.value
        assert error.version == 2
        assert error.name == 'v002_broken'
        assert str(error).startswith("v2 (v002_broken): Execution failed")

        assert runner.version_manager.get_current_version() == 1
        tables = table_names(connection_manager)
        assert 'customers' in tables
        assert 'customer_emails' not in tables

    def test_failed_migration_is_rolled_back(self, make_runner, connection_manager):
        runner = make_runner([
            (1, 'v001_partial', 'Partial', 'v001.sql',
             "CREATE TABLE partial_a (id INTEGER);\nINSERT INTO missing_table VALUES (1);"),
        ])

        with pytest.raises(MigrationExecutionError):
            runner.apply_pending_migrations()

        assert 'partial_a' not in table_names(connection_manager)
        assert runner.version_manager.get_applied_migrations() == []

    def test_interrupted_migration_is_rolled_back(self, runner, version_manager, connection_manager,
                                                  monkeypatch):
        record_migration = version_manager.record_migration
        calls = []

        def interrupted_record(migration, *args, **kwargs):
            calls.append(migration.version)
            if len(calls) == 1:
                raise KeyboardInterrupt
            return record_migration(migration, *args, **kwargs)

        monkeypatch.setattr(version_manager, 'record_migration', interrupted_record)

        with pytest.raises(KeyboardInterrupt):
            runner.apply_pending_migrations()

        assert 'customers' not in table_names(connection_manager)
        assert version_manager.get_current_version() == -1

        assert [m.version for m in runner.apply_pending_migrations()] == [1, 2, 3]
        assert version_manager.get_current_version() == 3

    def test_retry_after_fix(self, make_runner):
        broken = [(1, 'v001_a', 'A', 'v001.sql', "CREATE TABLE a (id INTEGR_TYPO);")]
        with pytest.raises(MigrationExecutionError):
            make_runner(broken).apply_pending_migrations()

        fixed = make_runner([(1, 'v001_a', 'A', 'v001.sql', "CREATE TABLE a (id INTEGER);")])
        assert [m.version for m in fixed.apply_pending_migrations()] == [1]

    def test_missing_content(self, connection_manager, catalog):
        version_manager = VersionManager(connection_manager, catalog)
        runner = MigrationRunner(connection_manager, version_manager, MappingContentProvider({}))

        with pytest.raises(ResourceNotFoundError) as exc_info:
            runner.apply_pending_migrations()

        assert exc_info.value.version == 1
        assert exc_info.value.name == 'v001_customers'
        assert str(exc_info.value).startswith("v1 (v001_customers): ")
        assert version_manager.get_applied_migrations() == []

    def test_undecodable_content(self, connection_manager, catalog, tmp_path):
        (tmp_path / 'v001_customers.sql').write_bytes(b"CREATE TABLE t (id INTEGER); -- \xff\xfe")
        version_manager = VersionManager(connection_manager, catalog)
        runner = MigrationRunner(connection_manager, version_manager, DirectoryContentProvider(tmp_path))

        with pytest.raises(MigrationValidationError, match="not valid UTF-8") as exc_info:
            runner.apply_pending_migrations()

        assert exc_info.value.version == 1
        assert exc_info.value.name == 'v001_customers'
        assert version_manager.get_applied_migrations() == []

    def test_rollback_not_supported(self, runner):
        with pytest.raises(RollbackNotSupportedError, match="not yet implemented for version 2"):
            runner.rollback_migration(2)

        with pytest.raises(NotImplementedError):
            runner.rollback_migration(2)


class TestContentValidation:
    """Test content checks performed before execution."""

    @pytest.mark.parametrize("sql,message", [
        ("   \n", "empty"),
        ("-- nothing here\n/* still nothing */", "only comments"),
        ("BEGIN TRANSACTION;\nCREATE TABLE t (id INTEGER);\nCOMMIT;", "transaction control"),
        ("CREATE TABLE t (id INTEGER);\nROLLBACK;", "transaction control"),
    ])
    def test_rejected_content(self, make_runner, sql, message):
        runner = make_runner([(1, 'v001_bad', 'Bad', 'v001.sql', sql)])

        with pytest.raises(MigrationValidationError, match=message):
            runner.apply_pending_migrations()

    def test_checksum_mismatch_rejected(self, connection_manager, catalog):
        contents = {m.content_reference: "CREATE TABLE swapped (id INTEGER);" for m in catalog}
        version_manager = VersionManager(connection_manager, catalog)
        runner = MigrationRunner(connection_manager, version_manager, MappingContentProvider(contents))

        with pytest.raises(MigrationValidationError, match="checksum"):
            runner.apply_pending_migrations()

    def test_transaction_words_in_identifiers_allowed(self, make_runner):
        runner = make_runner([
            (1, 'v001_log', 'Log', 'v001.sql',
             "CREATE TABLE commit_log (id INTEGER, begin_at TIMESTAMP, rollback_reason VARCHAR);"),
        ])
        assert len(runner.apply_pending_migrations()) == 1

    def test_destructive_statements_warn(self, make_runner, caplog):
        runner = make_runner([
            (1, 'v001_cleanup', 'Cleanup', 'v001.sql',
             "CREATE TABLE scratch (id INTEGER);\nDELETE FROM scratch;\nDROP TABLE scratch;"),
        ])

        with caplog.at_level(logging.WARNING, logger='db.migrationrunner'):
            applied = runner.apply_pending_migrations()

        assert len(applied) == 1
        assert 'DROP TABLE' in caplog.text
        assert 'DELETE FROM' in caplog.text


class TestBundledMigrations:
    """Test the SQL shipped with the package."""

    @pytest.fixture
    def bundled_runner(self, connection_manager):
        provider = PackageContentProvider()
        version_manager = VersionManager(connection_manager, load_default_catalog(provider))
        return MigrationRunner(connection_manager, version_manager, provider)

    def test_initialize_fresh_database(self, bundled_runner, connection_manager):
        applied = bundled_runner.initialize_database()

        assert [m.version for m in applied] == [1, 2, 3]
        assert bundled_runner.version_manager.get_current_version() == 3
        assert {
            'customers', 'stores', 'services', 'invoices', 'invoice_items', 'payments',
            'gst_adjustment_audit', 'gst_rates', 'email_configs'
        } <= table_names(connection_manager)

    def test_initialize_twice_applies_nothing(self, bundled_runner):
        bundled_runner.initialize_database()
        assert bundled_runner.initialize_database() == []

    def test_gst_totals_recalculated(self, bundled_runner, connection_manager):
        bundled_runner.version_manager.create_tracking_table()
        bundled_runner.apply_migration(bundled_runner.version_manager.catalog.get(1))

        connection_manager.execute_query(
            "INSERT INTO invoices (id, invoice_no, customer_id, store_id, subtotal, discount, "
            "express_charge, gst_inclusive) VALUES (1, 'INV-1', 1, 1, 100, 10, 0, FALSE)",
            fetch='none'
        )
        connection_manager.execute_query(
            "INSERT INTO invoice_items (invoice_id, service_id, rate, amount, sgst, cgst) "
            "VALUES (1, 1, 100, 100, 9, 9)",
            fetch='none'
        )

        bundled_runner.apply_pending_migrations()

        sgst, cgst, total = connection_manager.execute_query(
            "SELECT sgst_amount, cgst_amount, total FROM invoices WHERE id = 1", fetch='one'
        )
        assert sgst == pytest.approx(8.1)
        assert cgst == pytest.approx(8.1)
        assert total == pytest.approx(106.2)

        audit = connection_manager.execute_query(
            "SELECT original_sgst, original_cgst FROM gst_adjustment_audit", fetch='all'
        )
        assert audit == [(9.0, 9.0)]
