"""
Init Command - Initialize a database with every catalog migration.
"""

from .base import BaseMigrationsCommand
from ....db.migrations.errors import MigrationError


class InitCommand(BaseMigrationsCommand):
    """Handle --init command for migrations."""

    def execute(self, args) -> None:
        self.console.print("[bold cyan]🗄️  INITIALIZING DATABASE SCHEMA[/bold cyan]")

        try:
            applied = self.runner.initialize_database()
        except MigrationError as e:
            self.print_error(f"Initialization failed: {e}")
            return

        for migration in applied:
            self.print_success(f"Applied {migration}")

        version = self.version_manager.get_current_version()
        if applied:
            self.print_success(f"Database initialized at version {version}")
        else:
            self.print_info(f"Nothing to apply, database at version {version}")
