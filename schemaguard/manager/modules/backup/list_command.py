"""
List Command - List available backup files.
"""

from .base import BaseBackupCommand


class ListCommand(BaseBackupCommand):
    """Handle --list command for backup."""

    def execute(self, args) -> None:
        """Execute the backup listing command."""
        backups = self.backup_manager.list_backups()

        if getattr(args, 'format', 'text') == 'json':
            self.print_json({
                'backups': [backup.model_dump(mode='json') for backup in backups],
                'stats': self.backup_manager.get_backup_stats()
            })
            return

        if not backups:
            self.print_info(f"No backups found in {self.backup_manager.backup_dir}")
            return

        self.print_backups(backups, title=f"Backups in {self.backup_manager.backup_dir}")

        total = sum(backup.size_bytes for backup in backups)
        self.print_info(f"{len(backups)} backups, {self.format_file_size(total)} total")
