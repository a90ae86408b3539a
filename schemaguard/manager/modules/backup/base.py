"""
Base Backup Command - Common functionality for backup commands.

Provides shared utilities including:
- Backup manager access
- Backup path resolution
- Backup listing output
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List
from pathlib import Path

from ...core.command_base import BaseCommand
from ....db.models.backup import BackupRecord


class BaseBackupCommand(BaseCommand, ABC):
    """Base class for all backup commands."""

    def __init__(self):
        super().__init__()
        self.backup_manager = None
        self.trigger_system = None

    def inject_services(self, services: Dict[str, Any]) -> None:
        """Inject required services."""
        super().inject_services(services)
        self.backup_manager = services.get('backup_manager')
        self.trigger_system = services.get('trigger_system')
        if not self.backup_manager:
            raise ValueError("BackupManager is required for backup commands")

    @abstractmethod
    def execute(self, args) -> None:
        """Execute the command with given arguments."""
        pass

    def resolve_backup_path(self, backup_file: str) -> Path:
        """Resolve backup file path (absolute or relative to backup directory)."""
        backup_path = Path(backup_file)

        if not backup_path.is_absolute() and not backup_path.exists():
            backup_path = self.backup_manager.backup_dir / backup_file

        return backup_path

    def print_backups(self, backups: List[BackupRecord], title: str = "Backups") -> None:
        """Print backup records as a table, newest first."""
        rows = [
            [
                backup.file_name,
                self.format_file_size(backup.size_bytes),
                backup.created_at.strftime('%Y-%m-%d %H:%M:%S UTC') if backup.created_at else 'Unknown',
            ]
            for backup in backups
        ]
        self.print_table(["File", "Size", "Created"], rows, title=title)
