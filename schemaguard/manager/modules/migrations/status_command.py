"""
Status Command - Show schema version and migration history.

Read-only: no backup is taken and nothing is applied.
"""

from .base import BaseMigrationsCommand


class StatusCommand(BaseMigrationsCommand):
    """Handle --status command for migrations."""

    def execute(self, args) -> None:
        info = self.version_manager.detect_database_version()

        if self.wants_json(args):
            self.print_json(info.model_dump(mode='json'))
            return

        self.console.print("[bold cyan]📋 DATABASE SCHEMA STATUS[/bold cyan]")
        if info.is_empty:
            self.print_info("Database is empty")
        elif info.is_legacy:
            self.print_info("Legacy database without migration tracking")
        self.print_info(f"Current version: {info.current_version}")
        self.print_info(f"Required version: {info.required_version}")

        if info.applied_migrations:
            self.print_applied(info.applied_migrations)

        if info.pending_migrations:
            self.print_pending(info.pending_migrations)
            self.print_warning(f"{len(info.pending_migrations)} migrations pending")
        else:
            self.print_success("No pending migrations")
