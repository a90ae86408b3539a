"""
Migration trigger system.

Two-phase protocol consumed by the application shell:

1. ``check_and_prepare_migration`` (and the ``on_*`` shortcuts) detect the
   schema version and, when an upgrade is required, take a pre-migration
   backup. Nothing is applied; calling this repeatedly is safe.
2. ``apply_migrations_with_consent`` is the only path that runs the
   migration batch, and only when consent is given.

A pre-migration backup that cannot be created aborts the check with
BackupError: migrations are never offered or applied without one.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ...db.migrations.errors import (
    BackupError, MigrationError, MigrationApplyError, categorize_migration_error, CATEGORY_GUIDANCE
)
from ...db.migrations.migration_runner import MigrationRunner
from ...db.migrations.version_manager import VersionManager
from ...db.models.migration import DatabaseVersionInfo, CurrentStatus
from ...db.models.trigger import (
    AppStartup, DatabaseRestore, DatabaseImport, ManualRequest,
    MigrationCheckResult, MigrationApplyResult
)
from ...logging_utils import trigger_context
from .backup_service import BackupManager

CONSENT_BACKUP_LABEL = 'pre_migration_consent'


class MigrationTriggerSystem:
    """Orchestrates detection, pre-migration backups and consented upgrades."""

    def __init__(self, version_manager: VersionManager, runner: MigrationRunner,
                 backup_manager: BackupManager):
        self.version_manager = version_manager
        self.runner = runner
        self.backup_manager = backup_manager
        self.logger = logging.getLogger(__name__)

        # Pre-migration backup taken by the last check, consumed by the next apply
        self._prepared_backup: Optional[Path] = None

    def check_and_prepare_migration(self, trigger, detailed: bool = False,
                                    safety_backup: Optional[Path] = None) -> MigrationCheckResult:
        """
        Detect the schema status for a trigger and back up before any upgrade.

        Args:
            trigger: AppStartup, DatabaseRestore, DatabaseImport or ManualRequest
            detailed: Report upgrades as RequiresConsent with full version info
            safety_backup: Safety backup taken by a preceding restore/import

        Returns:
            MigrationCheckResult; nothing has been applied

        Raises:
            BackupError: If the pre-migration backup could not be created
        """
        with trigger_context(trigger.kind):
            self.logger.info(f"Checking migration status ({trigger.kind})")

            status = self.version_manager.check_migration_status(detailed=detailed)
            integrity_warnings = [
                issue['message'] for issue in self.version_manager.validate_applied_migrations()
            ]

            backup_created = None
            if not isinstance(status, CurrentStatus):
                try:
                    backup_created = self.backup_manager.create_backup(trigger.backup_label)
                except BackupError as e:
                    self.logger.error(f"Pre-migration backup failed, migrations will not be offered: {e}")
                    raise
                self._prepared_backup = backup_created
                self.logger.info(f"Upgrade required, pre-migration backup created: {backup_created}")
            else:
                self.logger.info(f"Database is current at version {status.version}")

            return MigrationCheckResult(
                trigger=trigger,
                status=status,
                backup_created=str(backup_created) if backup_created else None,
                safety_backup=str(safety_backup) if safety_backup else None,
                integrity_warnings=integrity_warnings
            )

    def on_app_startup(self) -> MigrationCheckResult:
        return self.check_and_prepare_migration(AppStartup())

    def on_database_restore(self, backup_path: Union[str, Path]) -> MigrationCheckResult:
        """Restore a backup, then re-check the restored database."""
        trigger = DatabaseRestore(backup_path=str(backup_path))
        with trigger_context(trigger.kind):
            safety_backup = self.backup_manager.restore_backup(backup_path)
        return self.check_and_prepare_migration(trigger, safety_backup=safety_backup)

    def on_database_import(self, import_path: Union[str, Path]) -> MigrationCheckResult:
        """Import an external database, then re-check it."""
        trigger = DatabaseImport(import_path=str(import_path))
        with trigger_context(trigger.kind):
            safety_backup = self.backup_manager.import_database(import_path)
        return self.check_and_prepare_migration(trigger, safety_backup=safety_backup)

    def on_manual_request(self) -> MigrationCheckResult:
        return self.check_and_prepare_migration(ManualRequest(), detailed=True)

    def get_migration_details(self) -> DatabaseVersionInfo:
        return self.version_manager.detect_database_version()

    def apply_migrations_with_consent(self, consent: bool) -> MigrationApplyResult:
        """
        Apply pending migrations if the caller consents.

        Args:
            consent: Explicit operator approval

        Returns:
            MigrationApplyResult; consented=False when declined

        Raises:
            BackupError: If no pre-migration backup exists and one cannot be created
            MigrationApplyError: If the batch failed, with an operator category
        """
        with trigger_context('consent'):
            if not consent:
                self.logger.warning("Migration declined by operator, no changes made")
                # Writes after a decline are not in the prepared backup
                self._prepared_backup = None
                return MigrationApplyResult(consented=False)

            info = self.version_manager.detect_database_version()
            if not info.pending_migrations:
                self.logger.info("No pending migrations to apply")
                self._prepared_backup = None
                return MigrationApplyResult(consented=True, current_version=info.current_version)

            backup_path = self._prepared_backup
            if backup_path is None or not backup_path.exists():
                backup_path = self.backup_manager.create_backup(CONSENT_BACKUP_LABEL)
                self.logger.info(f"Pre-migration backup created: {backup_path}")

            try:
                applied = self.runner.apply_pending_migrations()
            except MigrationError as e:
                category = categorize_migration_error(e)
                self.logger.error(f"Migration failed ({category.value}): {e}")
                self.logger.error(f"Backup available at {backup_path}. {CATEGORY_GUIDANCE[category]}")
                raise MigrationApplyError(
                    e.reason, category, version=e.version, name=e.name
                ) from e

            self._prepared_backup = None
            current_version = self.version_manager.get_current_version()
            self.logger.info(
                f"Applied {len(applied)} migrations, database now at version {current_version}"
            )

            return MigrationApplyResult(
                consented=True,
                applied=applied,
                backup_path=str(backup_path),
                current_version=current_version
            )
