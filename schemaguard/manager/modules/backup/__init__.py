"""
Backup Module - Database Backup and Restoration

This module provides database backup and restoration capabilities including:
- Timestamped backup creation
- Backup file listing
- Database restoration with a safety backup and migration re-check
- Backup file cleanup
- Backup integrity verification
"""

from typing import Dict, Any
from ...core.module_base import ModuleInterface
from .create_command import CreateCommand
from .list_command import ListCommand
from .restore_command import RestoreCommand
from .cleanup_command import CleanupCommand
from .verify_command import VerifyCommand


class BackupModule(ModuleInterface):
    """Main backup module with command routing."""

    def __init__(self):
        super().__init__()
        self._commands = {
            'create': CreateCommand(),
            'list': ListCommand(),
            'restore': RestoreCommand(),
            'cleanup': CleanupCommand(),
            'verify': VerifyCommand(),
        }

    @property
    def name(self) -> str:
        return "backup"

    @property
    def description(self) -> str:
        return "Create and manage database backups"

    @property
    def required_services(self) -> tuple:
        return ('config', 'backup_manager', 'trigger_system')

    @property
    def commands(self) -> Dict[str, str]:
        return {
            "--create": "Create a new database backup",
            "--list": "List available backup files",
            "--restore": "Restore database from backup",
            "--cleanup": "Remove old backup files",
            "--verify": "Verify backup file integrity"
        }

    def inject_services(self, services: Dict[str, Any]) -> None:
        """Inject services into all commands."""
        super().inject_services(services)
        for command in self._commands.values():
            command.inject_services(services)

    def add_arguments(self, parser) -> None:
        """Setup command line arguments."""
        command_group = parser.add_mutually_exclusive_group(required=True)
        command_group.add_argument('--create', action='store_true',
                                   help='Create database backup')
        command_group.add_argument('--list', action='store_true',
                                   help='List available backups')
        command_group.add_argument('--restore', type=str, metavar='BACKUP_FILE',
                                   help='Restore from backup file')
        command_group.add_argument('--cleanup', action='store_true',
                                   help='Remove old backup files')
        command_group.add_argument('--verify', type=str, metavar='BACKUP_FILE',
                                   help='Verify backup integrity')

        backup_group = parser.add_argument_group('Backup Options')
        backup_group.add_argument('--label', type=str, default='manual',
                                  help='Label for --create (default: manual)')
        backup_group.add_argument('--keep', type=int, default=None,
                                  help='Number of backups to keep (default: backup.keep_count)')
        backup_group.add_argument('--format', choices=['text', 'json'], default='text',
                                  help='Output format')

        safety_group = parser.add_argument_group('Safety Options')
        safety_group.add_argument('--dry-run', action='store_true',
                                  help='Simulate operations without making changes')
        safety_group.add_argument('--yes', action='store_true',
                                  help='Do not ask for confirmation')

    def execute(self, args, manager) -> None:
        """Execute the appropriate command based on arguments."""
        if args.create:
            self._commands['create'].execute(args)
        elif args.list:
            self._commands['list'].execute(args)
        elif args.restore:
            self._commands['restore'].execute(args)
        elif args.cleanup:
            self._commands['cleanup'].execute(args)
        elif args.verify:
            self._commands['verify'].execute(args)
