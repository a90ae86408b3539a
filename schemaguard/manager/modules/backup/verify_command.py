"""
Verify Command - Verify backup file integrity.
"""

from .base import BaseBackupCommand


class VerifyCommand(BaseBackupCommand):
    """Handle --verify command for backup."""

    def execute(self, args) -> None:
        """Execute the backup verification command."""
        backup_path = self.resolve_backup_path(args.verify)
        result = self.backup_manager.verify_backup(backup_path)

        if getattr(args, 'format', 'text') == 'json':
            self.print_json(result)
            return

        if result['valid']:
            self.print_success(
                f"{backup_path.name} is a readable database "
                f"({result['table_count']} tables, {self.format_file_size(result['size_bytes'])})"
            )
        else:
            self.print_error(f"{backup_path} failed verification: {result.get('error')}")
