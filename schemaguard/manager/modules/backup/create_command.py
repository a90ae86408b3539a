"""
Create Command - Create a new database backup.
"""

from .base import BaseBackupCommand
from ....db.migrations.errors import BackupError


class CreateCommand(BaseBackupCommand):
    """Handle --create command for backup."""

    def execute(self, args) -> None:
        """Execute the backup creation command."""
        label = getattr(args, 'label', None) or 'manual'
        as_json = getattr(args, 'format', 'text') == 'json'

        if not as_json:
            self.console.print("[bold cyan]💾 CREATING DATABASE BACKUP[/bold cyan]")
            self.print_info(f"Source: {self.backup_manager.database_path}")

        try:
            backup_path = self.backup_manager.create_backup(label)
        except BackupError as e:
            self.print_error(f"Backup creation failed: {e}")
            return

        verification = self.backup_manager.verify_backup(backup_path)

        if as_json:
            self.print_json({'backup_path': str(backup_path), 'verification': verification})
            return

        size = self.format_file_size(verification.get('size_bytes', 0))
        if verification['valid']:
            self.print_success(f"Backup created and verified: {backup_path} ({size}, "
                               f"{verification['table_count']} tables)")
        else:
            self.print_warning(f"Backup created but verification failed: {verification.get('error')}")
