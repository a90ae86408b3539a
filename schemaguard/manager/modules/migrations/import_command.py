"""
Import Command - Replace the live database with an external file.

The live database is backed up first; the imported database is then checked
against the catalog like a restore.
"""

from pathlib import Path

from .base import BaseMigrationsCommand
from ....db.migrations.errors import BackupError


class ImportCommand(BaseMigrationsCommand):
    """Handle --import command for migrations."""

    def execute(self, args) -> None:
        import_path = Path(args.import_file)

        self.console.print("[bold cyan]📥 IMPORTING DATABASE[/bold cyan]")
        self.print_info(f"Source: {import_path}")

        if not self.confirm_operation("Replace the live database with this file?", getattr(args, 'yes', False)):
            self.print_warning("Import cancelled")
            return

        try:
            result = self.trigger_system.on_database_import(import_path)
        except BackupError as e:
            self.print_error(f"Import failed: {e}")
            return

        if self.wants_json(args):
            self.print_json(result.model_dump(mode='json'))
            return

        self.print_success(f"Imported {import_path.name}")
        self.print_check_result(result)
        if result.requires_consent:
            self.print_info("Run: manager.py migrations --apply")
