"""
Cleanup Command - Remove old backup files.

Keeps the N newest backups (same ordering as --list) and deletes the rest.
"""

from .base import BaseBackupCommand
from ....db.migrations.errors import BackupError


class CleanupCommand(BaseBackupCommand):
    """Handle --cleanup command for backup."""

    def execute(self, args) -> None:
        """Execute the backup cleanup command."""
        keep = args.keep if args.keep is not None else self.config.backup_keep_count
        dry_run = getattr(args, 'dry_run', False)

        backups = self.backup_manager.list_backups()
        to_remove = backups[keep:]

        if not to_remove:
            self.print_info(f"{len(backups)} backups found, nothing to remove (keeping {keep})")
            return

        self.print_backups(to_remove, title=f"Backups to remove (keeping newest {keep})")

        if dry_run:
            self.print_info(f"Dry run: {len(to_remove)} backups would be removed")
            return

        if not self.confirm_operation(f"Delete {len(to_remove)} backups?", getattr(args, 'yes', False)):
            self.print_warning("Cleanup cancelled")
            return

        try:
            removed = self.backup_manager.cleanup_old_backups(keep)
        except BackupError as e:
            self.print_error(f"Cleanup failed: {e}")
            return

        self.print_success(f"Removed {len(removed)} backups")
