#!/usr/bin/env python3
"""
Schemaguard Manager - Schema versioning and backup management with dynamic modules

Wires the configuration, the DuckDB connection manager, the migration
catalog and the backup service together and routes commands to the modules
found under schemaguard/manager/modules.

Usage:
    ./manager.py                        # Show available modules
    ./manager.py migrations --status    # Use migrations module
    ./manager.py backup --create        # Use backup module
"""

import argparse
import importlib
import sys
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from schemaguard import __version__
from schemaguard.db import DuckDBConnectionManager
from schemaguard.db.migrations import (
    MigrationRunner, VersionManager, load_default_catalog,
    DirectoryContentProvider, PackageContentProvider
)
from schemaguard.logging_utils import setup_main_logging, set_trigger_context
from schemaguard.manager.core import Config, ModuleInterface
from schemaguard.manager.services import BackupManager, MigrationTriggerSystem

from rich.console import Console
from rich.table import Table


class SchemaguardManager:
    """Database schema manager with dynamically discovered modules."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the manager with configuration and services."""
        self.config = Config(config_path)
        self.main_config = self.config.as_main_config()

        self._setup_logging()
        self._init_services()

        self.console = Console()
        self.modules = {}
        self._discover_modules()

    def _setup_logging(self) -> None:
        """Setup logging configuration using main application logging."""
        setup_main_logging(self.main_config)
        set_trigger_context('manager')

    def _init_services(self) -> None:
        """Initialize service instances."""
        self.connection_manager = DuckDBConnectionManager(self.main_config)

        migrations_dir = self.config.migrations_directory
        if migrations_dir:
            content_provider = DirectoryContentProvider(migrations_dir)
        else:
            content_provider = PackageContentProvider()
        catalog = load_default_catalog(content_provider)

        version_manager = VersionManager(
            self.connection_manager, catalog, legacy_tables=self.config.legacy_tables
        )
        runner = MigrationRunner(self.connection_manager, version_manager, content_provider)
        backup_manager = BackupManager(self.config, self.connection_manager)

        self.services = {
            'config': self.config,
            'connection_manager': self.connection_manager,
            'catalog': catalog,
            'version_manager': version_manager,
            'migration_runner': runner,
            'backup_manager': backup_manager,
            'trigger_system': MigrationTriggerSystem(version_manager, runner, backup_manager)
        }

    def _discover_modules(self) -> None:
        """Discover and load available modules."""
        modules_path = Path(__file__).parent / 'schemaguard' / 'manager' / 'modules'

        for module_dir in sorted(modules_path.iterdir()):
            if module_dir.is_dir() and not module_dir.name.startswith('_'):
                try:
                    module = importlib.import_module(f'schemaguard.manager.modules.{module_dir.name}')

                    # Module class name matches the directory name
                    class_name = f"{module_dir.name.title()}Module"
                    if hasattr(module, class_name):
                        instance = getattr(module, class_name)()
                        instance.inject_services(self.services)
                        self.modules[instance.name] = instance
                        logging.debug(f"Loaded module: {instance.name}")
                except Exception as e:
                    logging.error(f"Failed to load module {module_dir.name}: {e}")

    def get_module(self, name: str) -> Optional[ModuleInterface]:
        """Get a module by name."""
        return self.modules.get(name)

    def list_modules(self) -> List[Dict[str, str]]:
        """List all available modules."""
        return [
            {'name': module.name, 'description': module.description}
            for module in self.modules.values()
        ]

    def run(self, argv: List[str]) -> int:
        """Run the manager with command line arguments."""
        # Module-specific help is handled before the main parser sees --help
        if len(argv) >= 2 and '--help' in argv:
            potential_module = argv[0] if not argv[0].startswith('-') else None
            module = self.get_module(potential_module) if potential_module else None
            if module:
                module_parser = argparse.ArgumentParser(
                    prog=f"manager.py {module.name}",
                    description=module.description
                )
                module.add_arguments(module_parser)
                module_parser.print_help()
                return 0

        parser = argparse.ArgumentParser(
            description="Schemaguard Manager - Schema migrations and database backups",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_epilog(),
            add_help=False
        )

        parser.add_argument('--debug', action='store_true',
                            help='Enable debug logging')
        parser.add_argument('--version', action='version',
                            version=f'%(prog)s {__version__}')
        parser.add_argument('--help', '-h', action='store_true',
                            help='show this help message and exit')
        parser.add_argument('module', nargs='?',
                            help='Module to execute')

        args, remaining = parser.parse_known_args(argv)

        if args.help and not args.module:
            parser.print_help()
            return 0

        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        if not args.module:
            self._show_modules()
            return 0

        module = self.get_module(args.module)
        if not module:
            self.console.print(f"[bold red]❌ Unknown module: {args.module}[/bold red]")
            self._show_modules()
            return 1

        module_parser = argparse.ArgumentParser(
            prog=f"{parser.prog} {module.name}",
            description=module.description
        )
        module.add_arguments(module_parser)

        try:
            module_args = module_parser.parse_args(remaining)
        except SystemExit:
            return 1

        try:
            module.execute(module_args, self)
            return 0
        except Exception as e:
            logging.error(f"Module execution failed: {e}", exc_info=args.debug)
            self.console.print(f"[bold red]❌ Error: {e}[/bold red]")
            return 1

    def _show_modules(self) -> None:
        """Display available modules using rich."""
        self.console.print("\n[bold cyan]🛡️  SCHEMAGUARD MANAGER[/bold cyan]")
        self.console.print("[cyan]" + "=" * 50 + "[/cyan]")

        table = Table(title="[bold blue]Available modules[/bold blue]", show_header=True, header_style="bold magenta")
        table.add_column("Module", style="bold yellow", width=15)
        table.add_column("Description", style="white")

        for module in self.modules.values():
            table.add_row(module.name, module.description)

        self.console.print(table)

        self.console.print("\n[bold green]Usage:[/bold green]")
        self.console.print("  [dim]./manager.py <module> [options][/dim]")
        self.console.print("  [dim]./manager.py <module> --help[/dim]")

        self.console.print("\n[bold green]Examples:[/bold green]")
        self.console.print("  [bold magenta]# Schema migrations[/bold magenta]")
        self.console.print("  [dim]./manager.py migrations --status[/dim]")
        self.console.print("  [dim]./manager.py migrations --apply[/dim]")
        self.console.print("")
        self.console.print("  [bold magenta]# Backups[/bold magenta]")
        self.console.print("  [dim]./manager.py backup --create --label before_upgrade[/dim]")
        self.console.print("  [dim]./manager.py backup --cleanup --keep 5 --dry-run[/dim]")

    def _get_epilog(self) -> str:
        """Get epilog text for help."""
        return """
Examples:
  %(prog)s                                 # Show available modules
  %(prog)s migrations --status             # Show schema version
  %(prog)s migrations --check              # Check and back up before upgrade
  %(prog)s migrations --apply              # Apply pending migrations
  %(prog)s migrations --import other.duckdb
  %(prog)s backup --create                 # Create database backup
  %(prog)s backup --restore FILE           # Restore and re-check schema

For module-specific help:
  %(prog)s <module> --help
"""

    def cleanup(self) -> None:
        """Cleanup resources."""
        if hasattr(self, 'connection_manager'):
            self.connection_manager.close()


def main():
    """Main entry point."""
    manager = SchemaguardManager()

    try:
        return manager.run(sys.argv[1:])
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        print(f"❌ Unexpected error: {e}")
        return 1
    finally:
        manager.cleanup()


if __name__ == "__main__":
    sys.exit(main())
