"""
Database migration runner.

Applies catalog migrations one transaction at a time: the migration's SQL
batch and its ledger row commit together or not at all. Batches are
serialized by a lock owned by the runner.
"""

import re
import threading
import time
import logging
from typing import List

import duckdb

from ..core.connection import DuckDBConnectionManager
from ..models.migration import Migration
from .content import ContentProvider, compute_checksum
from .errors import (
    MigrationError, MigrationValidationError, MigrationExecutionError, RollbackNotSupportedError
)
from .version_manager import VersionManager

# Statements that are applied without blocking but reported to the operator
DESTRUCTIVE_PATTERNS = {
    'DROP TABLE': re.compile(r'\bDROP\s+TABLE\b', re.IGNORECASE),
    'DROP SCHEMA': re.compile(r'\bDROP\s+SCHEMA\b', re.IGNORECASE),
    'DROP DATABASE': re.compile(r'\bDROP\s+DATABASE\b', re.IGNORECASE),
    'DELETE FROM': re.compile(r'\bDELETE\s+FROM\b', re.IGNORECASE),
    'TRUNCATE': re.compile(r'\bTRUNCATE\b', re.IGNORECASE),
}

# The runner owns the transaction; payloads must not open or close one
TRANSACTION_CONTROL = re.compile(
    r'(?:^|;)\s*(BEGIN|COMMIT|ROLLBACK|ABORT|END\s+TRANSACTION|START\s+TRANSACTION)\b',
    re.IGNORECASE
)

SQL_COMMENTS = re.compile(r'--[^\n]*|/\*.*?\*/', re.DOTALL)


def strip_sql_comments(sql: str) -> str:
    return SQL_COMMENTS.sub(' ', sql)


class MigrationRunner:
    """
    Database migration runner with version tracking.

    Failures are never retried: the first failing migration aborts the
    batch and is propagated with its version and name attached.
    """

    def __init__(self, connection_manager: DuckDBConnectionManager,
                 version_manager: VersionManager, content_provider: ContentProvider):
        """
        Initialize migration runner.

        Args:
            connection_manager: DuckDB connection manager instance
            version_manager: Version manager sharing the same database
            content_provider: Resolves migration content references to SQL
        """
        self.conn_manager = connection_manager
        self.version_manager = version_manager
        self.content_provider = content_provider
        self.logger = logging.getLogger(f'db.{self.__class__.__name__.lower()}')

        self._batch_lock = threading.Lock()

    def validate_content(self, migration: Migration, content: str) -> None:
        """
        Validate migration SQL before it is executed.

        Raises:
            MigrationValidationError: For empty content, content that does not
                match the catalog checksum or content with its own transaction
                control statements
        """
        if not content or not content.strip():
            raise MigrationValidationError(
                "Migration content is empty", version=migration.version, name=migration.name
            )

        if compute_checksum(content) != migration.checksum:
            raise MigrationValidationError(
                "Migration content does not match the catalog checksum",
                version=migration.version, name=migration.name
            )

        statements = strip_sql_comments(content)
        if not statements.strip():
            raise MigrationValidationError(
                "Migration content contains only comments",
                version=migration.version, name=migration.name
            )

        control = TRANSACTION_CONTROL.search(statements)
        if control:
            raise MigrationValidationError(
                f"Migration content must not contain transaction control ({control.group(1).upper()})",
                version=migration.version, name=migration.name
            )

        found = [keyword for keyword, pattern in DESTRUCTIVE_PATTERNS.items()
                 if pattern.search(statements)]
        if found:
            self.logger.warning(
                f"Migration {migration.version} ({migration.name}) contains potentially "
                f"destructive statements: {', '.join(found)}"
            )

    def apply_migration(self, migration: Migration) -> bool:
        """
        Apply a single migration inside one transaction.

        Args:
            migration: Migration to apply

        Returns:
            True if applied, False if it was already recorded in the ledger
        """
        if self.version_manager.is_migration_applied(migration.version):
            self.logger.debug(f"Migration {migration.version} already applied, skipping")
            return False

        try:
            content = self.content_provider.resolve(migration.version, migration.content_reference)
        except MigrationError as e:
            if e.name is not None:
                raise
            raise type(e)(e.reason, version=migration.version, name=migration.name) from e
        self.validate_content(migration, content)

        self.logger.info(f"Applying {migration}")
        self.logger.debug(f"Migration SQL preview: {' '.join(content.split())[:200]}...")

        start_time = time.perf_counter()

        try:
            with self.conn_manager.transaction(f"migration {migration.version}") as conn:
                conn.execute(content)

                execution_time_ms = int((time.perf_counter() - start_time) * 1000)
                self.version_manager.record_migration(migration, execution_time_ms, connection=conn)
        except duckdb.Error as e:
            self.logger.error(f"Migration {migration.version} rolled back")
            raise MigrationExecutionError(
                f"Execution failed: {e}", version=migration.version, name=migration.name
            ) from e

        self.logger.info(f"Applied migration {migration.version} in {execution_time_ms}ms")
        return True

    def _apply_in_order(self, migrations: List[Migration]) -> List[Migration]:
        applied = []
        for migration in sorted(migrations, key=lambda m: m.version):
            try:
                if self.apply_migration(migration):
                    applied.append(migration)
            except Exception as e:
                self.logger.error(f"Failed to apply {migration}: {e}")
                self.logger.info(
                    f"Batch stopped at version {migration.version} after applying "
                    f"{[m.version for m in applied]}"
                )
                raise
        return applied

    def apply_pending_migrations(self) -> List[Migration]:
        """
        Apply every pending migration in ascending version order.

        Returns:
            Migrations applied by this call (empty when up to date)
        """
        with self._batch_lock:
            self.version_manager.create_tracking_table()
            pending = self.version_manager.detect_database_version().pending_migrations

            if not pending:
                self.logger.info("No pending migrations to run")
                return []

            self.logger.info(f"Applying {len(pending)} pending migrations: {[m.version for m in pending]}")
            applied = self._apply_in_order(pending)

            self.logger.info(f"Successfully applied {len(applied)} migrations")
            return applied

    def initialize_database(self) -> List[Migration]:
        """
        Fresh-install path: replay the entire catalog in order.

        Already applied migrations are skipped.

        Returns:
            Migrations applied by this call
        """
        with self._batch_lock:
            self.version_manager.create_tracking_table()
            catalog = self.version_manager.catalog.migrations

            self.logger.info(f"Initializing database with {len(catalog)} migrations")
            applied = self._apply_in_order(catalog)

            self.logger.info(f"Database initialized, {len(applied)} migrations applied")
            return applied

    def check_pending_migrations(self) -> List[Migration]:
        """Pending migrations without applying anything."""
        return self.version_manager.detect_database_version().pending_migrations

    def rollback_migration(self, version: int) -> None:
        """
        Down-migrations are not supported.

        Raises:
            RollbackNotSupportedError: Always
        """
        migration = self.version_manager.catalog.get(version)
        raise RollbackNotSupportedError(
            f"Migration rollback not yet implemented for version {version}",
            version=version,
            name=migration.name if migration else None
        )
