"""
Database schema version detection.

The version manager reads the ``database_migrations`` ledger and classifies
the live database as empty (-1), legacy (0: business tables present but no
ledger rows) or versioned (highest applied version), then compares that
against the migration catalog.
"""

import logging
import warnings
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Sequence

from ..core.connection import DuckDBConnectionManager
from ..models.migration import (
    Migration, AppliedMigrationRecord, DatabaseVersionInfo,
    CurrentStatus, RequiresUpgradeStatus, RequiresConsentStatus,
    EMPTY_DATABASE_VERSION, LEGACY_DATABASE_VERSION
)
from .catalog import MigrationCatalog
from .errors import ChecksumMismatchWarning

TRACKING_TABLE = 'database_migrations'

DEFAULT_LEGACY_TABLES = ('customers', 'invoices', 'services', 'stores')

CREATE_TRACKING_TABLE_SQL = f"""
CREATE SEQUENCE IF NOT EXISTS {TRACKING_TABLE}_id_seq START 1;
CREATE TABLE IF NOT EXISTS {TRACKING_TABLE} (
    id INTEGER PRIMARY KEY DEFAULT nextval('{TRACKING_TABLE}_id_seq'),
    version INTEGER NOT NULL UNIQUE,
    name VARCHAR NOT NULL,
    description VARCHAR,
    checksum VARCHAR NOT NULL,
    applied_at VARCHAR NOT NULL DEFAULT CAST(current_timestamp AS VARCHAR),
    execution_time_ms BIGINT
);
CREATE INDEX IF NOT EXISTS idx_migrations_version ON {TRACKING_TABLE}(version);
"""

INSERT_RECORD_SQL = f"""
INSERT INTO {TRACKING_TABLE} (version, name, description, checksum, applied_at, execution_time_ms)
VALUES (?, ?, ?, ?, ?, ?)
"""


def utc_timestamp() -> str:
    """Current UTC time in the ledger's text format."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')


class VersionManager:
    """
    Detects the schema version of the live database.

    Nothing is cached: every call reads the ledger again, so detection
    converges to Current right after a migration batch commits.
    """

    def __init__(self, connection_manager: DuckDBConnectionManager, catalog: MigrationCatalog,
                 legacy_tables: Optional[Sequence[str]] = None):
        """
        Initialize version manager.

        Args:
            connection_manager: DuckDB connection manager instance
            catalog: Migration catalog to compare against
            legacy_tables: Business tables that predate the ledger
        """
        self.conn_manager = connection_manager
        self.catalog = catalog
        self.legacy_tables = list(DEFAULT_LEGACY_TABLES if legacy_tables is None else legacy_tables)
        self.logger = logging.getLogger(f'db.{self.__class__.__name__.lower()}')

    def has_tracking_table(self) -> bool:
        """Check whether the migration ledger exists."""
        return self.conn_manager.table_exists(TRACKING_TABLE)

    def create_tracking_table(self) -> None:
        """Create the migration ledger and its version index (idempotent)."""
        with self.conn_manager.get_connection() as conn:
            conn.execute(CREATE_TRACKING_TABLE_SQL)
        self.logger.debug("Migration tracking table initialized")

    def get_applied_migrations(self) -> List[AppliedMigrationRecord]:
        """
        Get applied migrations ordered by version.

        Returns:
            Ledger rows, empty when the ledger does not exist yet
        """
        if not self.has_tracking_table():
            return []

        rows = self.conn_manager.execute_query(
            f"""
            SELECT id, version, name, description, checksum, applied_at, execution_time_ms
            FROM {TRACKING_TABLE}
            ORDER BY version
            """,
            fetch='all'
        )

        return [
            AppliedMigrationRecord(
                id=row[0],
                version=row[1],
                name=row[2],
                description=row[3],
                checksum=row[4],
                applied_at=str(row[5]),
                execution_time_ms=row[6]
            )
            for row in rows
        ]

    def _classify_untracked(self) -> int:
        existing = self.conn_manager.list_existing_tables(self.legacy_tables)
        if existing:
            self.logger.debug(f"Legacy tables present without ledger rows: {existing}")
            return LEGACY_DATABASE_VERSION
        return EMPTY_DATABASE_VERSION

    def _current_version(self, applied: List[AppliedMigrationRecord]) -> int:
        if not applied:
            return self._classify_untracked()
        return max(record.version for record in applied)

    def get_current_version(self) -> int:
        """
        Get the current schema version.

        Returns:
            -1 for an empty database, 0 for a legacy database, otherwise the
            highest applied migration version
        """
        return self._current_version(self.get_applied_migrations())

    def detect_database_version(self) -> DatabaseVersionInfo:
        """
        Compare the live database against the catalog.

        Pending migrations are catalog entries that are not applied and are
        newer than the current version, in ascending order.
        """
        applied = self.get_applied_migrations()
        current_version = self._current_version(applied)
        applied_versions = {record.version for record in applied}

        pending = [
            migration for migration in self.catalog
            if migration.version not in applied_versions and migration.version > current_version
        ]

        info = DatabaseVersionInfo(
            current_version=current_version,
            required_version=self.catalog.required_version,
            pending_migrations=pending,
            applied_migrations=applied
        )

        self.logger.debug(
            f"Detected database version {info.current_version} "
            f"(required {info.required_version}, pending {info.pending_versions})"
        )
        return info

    def check_migration_status(self, detailed: bool = False):
        """
        Derive the migration status from a fresh version snapshot.

        Args:
            detailed: Report pending upgrades as RequiresConsent carrying the
                full DatabaseVersionInfo instead of RequiresUpgrade

        Returns:
            CurrentStatus, RequiresUpgradeStatus or RequiresConsentStatus
        """
        info = self.detect_database_version()

        if not info.needs_migration:
            return CurrentStatus(version=info.current_version)

        if detailed:
            return RequiresConsentStatus(info=info)

        return RequiresUpgradeStatus(
            current_version=info.current_version,
            required_version=info.required_version,
            pending_migrations=info.pending_migrations
        )

    def record_migration(self, migration: Migration, execution_time_ms: int, connection=None) -> None:
        """
        Record a migration as applied.

        Args:
            migration: Applied migration
            execution_time_ms: Execution time in milliseconds
            connection: Connection with an open transaction; the row is then
                written inside that transaction
        """
        params = (
            migration.version,
            migration.name,
            migration.description or None,
            migration.checksum,
            utc_timestamp(),
            int(execution_time_ms)
        )

        if connection is not None:
            connection.execute(INSERT_RECORD_SQL, params)
        else:
            self.conn_manager.execute_query(INSERT_RECORD_SQL, params, fetch='none')

        self.logger.debug(f"Recorded migration {migration.version} in ledger")

    def is_migration_applied(self, version: int) -> bool:
        """Check the ledger for a version; False when the ledger does not exist."""
        if not self.has_tracking_table():
            return False

        result = self.conn_manager.execute_query(
            f"SELECT COUNT(*) FROM {TRACKING_TABLE} WHERE version = ?",
            (version,),
            fetch='one'
        )
        return bool(result and result[0] > 0)

    def validate_applied_migrations(self) -> List[Dict[str, Any]]:
        """
        Validate the ledger against the catalog.

        Checksum mismatches are also emitted as ChecksumMismatchWarning.
        Nothing here blocks startup: the data is already migrated.

        Returns:
            List of validation issues
        """
        issues = []
        applied = self.get_applied_migrations()

        for record in applied:
            migration = self.catalog.get(record.version)
            if migration is None:
                issues.append({
                    'type': 'unknown_version',
                    'version': record.version,
                    'message': f"Migration {record.version} ({record.name}) is applied but not in the catalog"
                })
            elif migration.checksum != record.checksum:
                message = (f"Migration {record.version} ({record.name}) checksum mismatch: "
                           f"ledger={record.checksum[:12]} catalog={migration.checksum[:12]}")
                issues.append({
                    'type': 'checksum_mismatch',
                    'version': record.version,
                    'message': message
                })
                warnings.warn(message, ChecksumMismatchWarning, stacklevel=2)

        applied_versions = [record.version for record in applied]
        catalog_versions = self.catalog.versions
        for previous, following in zip(applied_versions, applied_versions[1:]):
            skipped = [v for v in catalog_versions if previous < v < following]
            if skipped:
                issues.append({
                    'type': 'version_gap',
                    'version': previous,
                    'message': f"Catalog versions {skipped} were skipped between {previous} and {following}"
                })

        if issues:
            self.logger.warning(f"Found {len(issues)} migration integrity issues")
            for issue in issues:
                self.logger.warning(issue['message'])
        else:
            self.logger.debug("Applied migrations match the catalog")

        return issues
