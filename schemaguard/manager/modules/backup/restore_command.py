"""
Restore Command - Restore database from backup.

A safety backup of the live database is taken first. The restored database
is then checked against the migration catalog, since it may be on an older
schema version.
"""

from .base import BaseBackupCommand
from ....db.migrations.errors import BackupError


class RestoreCommand(BaseBackupCommand):
    """Handle --restore command for backup."""

    def execute(self, args) -> None:
        """Execute the database restoration command."""
        backup_path = self.resolve_backup_path(args.restore)
        dry_run = getattr(args, 'dry_run', False)

        self.console.print("[bold cyan]🔄 RESTORING DATABASE FROM BACKUP[/bold cyan]")

        if not backup_path.exists():
            self.print_error(f"Backup file not found: {backup_path}")
            backups = self.backup_manager.list_backups()[:5]
            if backups:
                self.print_backups(backups, title="Recent backups")
            return

        verification = self.backup_manager.verify_backup(backup_path)
        if not verification['valid']:
            self.print_error(f"Backup verification failed, restoration aborted: {verification.get('error')}")
            return

        self.print_info(f"Backup: {backup_path} ({verification['table_count']} tables)")
        self.print_info(f"Target: {self.backup_manager.database_path}")

        if dry_run:
            self.print_info("Dry run: the live database would be backed up and replaced")
            return

        if not self.confirm_operation("Replace the live database with this backup?", getattr(args, 'yes', False)):
            self.print_warning("Restore cancelled")
            return

        try:
            result = self.trigger_system.on_database_restore(backup_path)
        except BackupError as e:
            self.print_error(f"Restore failed: {e}")
            return

        if result.safety_backup:
            self.print_success(f"Safety backup: {result.safety_backup}")
        self.print_success(f"Database restored from {backup_path.name}")

        if result.requires_consent:
            self.print_warning("The restored database needs schema migrations")
            if result.backup_created:
                self.print_info(f"Pre-migration backup: {result.backup_created}")
            self.print_info("Run: manager.py migrations --apply")
        else:
            self.print_success("Restored database schema is up to date")
