"""
Migrations Module - Schema Versioning and Upgrades

This module exposes the migration trigger protocol on the command line:
- Schema status and history
- Manual migration checks with pre-migration backups
- Consented migration runs
- Fresh database initialization
- Ledger integrity verification
- External database import
"""

from typing import Dict, Any
from ...core.module_base import ModuleInterface
from .status_command import StatusCommand
from .check_command import CheckCommand
from .apply_command import ApplyCommand
from .init_command import InitCommand
from .verify_command import VerifyCommand
from .import_command import ImportCommand


class MigrationsModule(ModuleInterface):
    """Main migrations module with command routing."""

    def __init__(self):
        super().__init__()
        self._commands = {
            'status': StatusCommand(),
            'check': CheckCommand(),
            'apply': ApplyCommand(),
            'init': InitCommand(),
            'verify': VerifyCommand(),
            'import': ImportCommand(),
        }

    @property
    def name(self) -> str:
        return "migrations"

    @property
    def description(self) -> str:
        return "Check, apply and verify schema migrations"

    @property
    def required_services(self) -> tuple:
        return ('config', 'version_manager', 'migration_runner', 'trigger_system')

    @property
    def commands(self) -> Dict[str, str]:
        return {
            "--status": "Show schema version and migration history",
            "--check": "Check for pending migrations (backs up if needed)",
            "--apply": "Apply pending migrations after confirmation",
            "--init": "Initialize database with all migrations",
            "--verify": "Verify applied migrations against the catalog",
            "--import": "Import an external database file"
        }

    def inject_services(self, services: Dict[str, Any]) -> None:
        """Inject services into all commands."""
        super().inject_services(services)
        for command in self._commands.values():
            command.inject_services(services)

    def add_arguments(self, parser) -> None:
        """Setup command line arguments."""
        command_group = parser.add_mutually_exclusive_group(required=True)
        command_group.add_argument('--status', action='store_true',
                                   help='Show schema status')
        command_group.add_argument('--check', action='store_true',
                                   help='Run a manual migration check')
        command_group.add_argument('--apply', action='store_true',
                                   help='Apply pending migrations')
        command_group.add_argument('--init', action='store_true',
                                   help='Initialize database schema')
        command_group.add_argument('--verify', action='store_true',
                                   help='Verify migration ledger integrity')
        command_group.add_argument('--import', type=str, metavar='DB_FILE', dest='import_file',
                                   help='Import external database file')

        output_group = parser.add_argument_group('Output Options')
        output_group.add_argument('--format', choices=['text', 'json'], default='text',
                                  help='Output format')

        safety_group = parser.add_argument_group('Safety Options')
        safety_group.add_argument('--yes', action='store_true',
                                  help='Consent without prompting')

    def execute(self, args, manager) -> None:
        """Execute the appropriate command based on arguments."""
        if args.status:
            self._commands['status'].execute(args)
        elif args.check:
            self._commands['check'].execute(args)
        elif args.apply:
            self._commands['apply'].execute(args)
        elif args.init:
            self._commands['init'].execute(args)
        elif args.verify:
            self._commands['verify'].execute(args)
        elif args.import_file:
            self._commands['import'].execute(args)
