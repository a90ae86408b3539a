"""
Service layer for file-level database backups.

Backups are plain copies of the DuckDB file named
``<label>_<YYYYMMDD_HHMMSS>.<ext>`` (UTC). Restore and import always take a
safety backup of the live file before overwriting it.
"""

import re
import shutil
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Any, Union

import duckdb

from ..core.config import Config
from ...db.core.connection import DuckDBConnectionManager
from ...db.models.backup import BackupRecord
from ...db.migrations.errors import BackupError

TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'
SAFETY_RESTORE_LABEL = 'safety_before_restore'
SAFETY_IMPORT_LABEL = 'safety_before_import'
MAX_NAME_ATTEMPTS = 1000

LABEL_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BackupManager:
    """Creates, restores, lists and prunes database snapshots."""

    def __init__(self, config: Config,
                 connection_manager: Optional[DuckDBConnectionManager] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize service with configuration and database manager.

        Args:
            config: Configuration instance
            connection_manager: Live database handle; checkpointed before
                copies and disconnected before the file is replaced
            clock: Returns the current UTC time (injectable for tests)
        """
        self.config = config
        self.conn_manager = connection_manager
        self.clock = clock or utc_now
        self.logger = logging.getLogger(__name__)

        self.extension = config.backup_extension
        self._name_pattern = re.compile(
            rf'^(?P<label>.+)_(?P<timestamp>\d{{8}}_\d{{6}})(?:_(?P<sequence>\d+))?\.{re.escape(self.extension)}$'
        )

    @property
    def database_path(self) -> Path:
        return self.config.database_path

    @property
    def backup_dir(self) -> Path:
        return self.config.backup_path

    def _wal_path(self) -> Path:
        return Path(f"{self.database_path}.wal")

    def _copy_exclusive(self, source: Path, label: str) -> Path:
        """Copy source to a new, not yet existing backup file name."""
        timestamp = self.clock().astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)

        for attempt in range(MAX_NAME_ATTEMPTS):
            suffix = f"_{attempt}" if attempt else ""
            target = self.backup_dir / f"{label}_{timestamp}{suffix}.{self.extension}"
            try:
                f_out = open(target, 'xb')
            except FileExistsError:
                continue

            try:
                with f_out, open(source, 'rb') as f_in:
                    shutil.copyfileobj(f_in, f_out)
            except BaseException:
                # A partial copy must not be listed as a backup
                target.unlink(missing_ok=True)
                raise
            return target

        raise BackupError(f"Could not find a free backup file name for label '{label}' at {timestamp}")

    def create_backup(self, label: str) -> Path:
        """Create a backup of the live database.

        Args:
            label: Backup label, e.g. 'pre_migration_startup'

        Returns:
            Path of the new backup file
        """
        if not LABEL_PATTERN.match(label):
            raise BackupError(f"Invalid backup label: {label!r}")

        db_path = self.database_path
        if not db_path.exists():
            raise BackupError(f"Database file not found: {db_path}")

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)

            if self.conn_manager is not None:
                self.conn_manager.checkpoint()

            backup_path = self._copy_exclusive(db_path, label)
        except (OSError, duckdb.Error) as e:
            self.logger.error(f"Backup failed: {e}")
            raise BackupError(f"Backup of {db_path} failed: {e}") from e

        self.logger.info(f"Created backup: {backup_path} ({backup_path.stat().st_size} bytes)")
        return backup_path

    def _replace_database(self, source: Union[str, Path], safety_label: str, operation: str) -> Optional[Path]:
        source = Path(source)
        if not source.is_file():
            raise BackupError(f"{operation.capitalize()} source not found: {source}")

        verification = self.verify_backup(source)
        if not verification['valid']:
            raise BackupError(
                f"{operation.capitalize()} source is not a readable database: {verification.get('error')}"
            )

        db_path = self.database_path
        safety_backup = None
        if db_path.exists():
            safety_backup = self.create_backup(safety_label)
            self.logger.info(f"Created safety backup before {operation}: {safety_backup}")
        else:
            self.logger.info(f"No live database at {db_path}, skipping safety backup")

        try:
            if self.conn_manager is not None:
                self.conn_manager.disconnect()

            wal_path = self._wal_path()
            if wal_path.exists():
                wal_path.unlink()

            db_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, db_path)
        except OSError as e:
            self.logger.error(f"{operation.capitalize()} failed: {e}")
            raise BackupError(f"{operation.capitalize()} from {source} failed: {e}") from e

        self.logger.info(f"Completed {operation} from: {source}")
        return safety_backup

    def restore_backup(self, backup_path: Union[str, Path]) -> Optional[Path]:
        """Restore the live database from a backup file.

        Args:
            backup_path: Path to backup file

        Returns:
            Path of the safety backup taken first, None if there was no live
            database to protect
        """
        return self._replace_database(backup_path, SAFETY_RESTORE_LABEL, 'restore')

    def import_database(self, import_path: Union[str, Path]) -> Optional[Path]:
        """Replace the live database with an external database file.

        Same safety-first discipline as restore_backup.
        """
        return self._replace_database(import_path, SAFETY_IMPORT_LABEL, 'import')

    def list_backups(self) -> List[BackupRecord]:
        """List all available backups, newest first.

        Returns:
            Backup records ordered by creation time, ties broken by file name
        """
        backup_dir = self.backup_dir
        if not backup_dir.exists():
            return []

        backups = []
        try:
            entries = list(backup_dir.iterdir())
        except OSError as e:
            raise BackupError(f"Could not list backup directory {backup_dir}: {e}") from e

        for entry in entries:
            if not entry.is_file() or not self._name_pattern.match(entry.name):
                continue
            try:
                stat = entry.stat()
            except OSError as e:
                self.logger.warning(f"Could not read backup info for {entry}: {e}")
                continue

            backups.append(BackupRecord(
                file_name=entry.name,
                path=str(entry.resolve()),
                size_bytes=stat.st_size,
                created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
            ))

        backups.sort(key=lambda b: (b.created_at, b.file_name), reverse=True)
        return backups

    def cleanup_old_backups(self, keep_count: int) -> List[Path]:
        """Delete all but the ``keep_count`` newest backups.

        Returns:
            Paths of the deleted backup files
        """
        if keep_count < 0:
            raise ValueError("keep_count must not be negative")

        backups = self.list_backups()
        removed = []

        for backup in backups[keep_count:]:
            path = Path(backup.path)
            try:
                path.unlink()
            except OSError as e:
                raise BackupError(f"Could not delete backup {path}: {e}") from e
            removed.append(path)
            self.logger.info(f"Deleted old backup: {path}")

        if removed:
            self.logger.info(f"Cleanup removed {len(removed)} backups, kept {min(keep_count, len(backups))}")
        return removed

    def delete_backup(self, backup_path: Union[str, Path]) -> None:
        """Delete a single backup file from the backup directory."""
        path = Path(backup_path)
        if path.resolve().parent != self.backup_dir.resolve():
            raise BackupError(f"Not a file in the backup directory: {path}")
        if not self._name_pattern.match(path.name):
            raise BackupError(f"Not a backup file: {path.name}")

        try:
            path.unlink()
        except OSError as e:
            raise BackupError(f"Could not delete backup {path}: {e}") from e
        self.logger.info(f"Deleted backup: {path}")

    def verify_backup(self, backup_path: Union[str, Path]) -> Dict[str, Any]:
        """Verify a backup file by opening it read-only.

        Returns:
            Verification result with 'valid', 'table_count' and 'size_bytes'
        """
        path = Path(backup_path)
        if not path.is_file():
            return {'valid': False, 'path': str(path), 'error': 'file not found'}

        size_bytes = path.stat().st_size
        if size_bytes == 0:
            return {'valid': False, 'path': str(path), 'size_bytes': 0, 'error': 'file is empty'}

        try:
            with duckdb.connect(str(path), read_only=True) as conn:
                result = conn.execute(
                    "SELECT COUNT(*) FROM information_schema.tables WHERE table_schema = 'main'"
                ).fetchone()
                table_count = result[0] if result else 0
        except duckdb.Error as e:
            return {'valid': False, 'path': str(path), 'size_bytes': size_bytes, 'error': str(e)}

        return {
            'valid': True,
            'path': str(path),
            'size_bytes': size_bytes,
            'table_count': table_count
        }

    def get_backup_stats(self) -> Dict[str, Any]:
        """Get backup statistics."""
        backups = self.list_backups()

        return {
            'total_backups': len(backups),
            'total_size_bytes': sum(b.size_bytes for b in backups),
            'latest_backup': backups[0].file_name if backups else None,
            'oldest_backup': backups[-1].file_name if backups else None,
            'backup_directory': str(self.backup_dir)
        }
