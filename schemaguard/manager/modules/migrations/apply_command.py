"""
Apply Command - Apply pending migrations with operator consent.

Runs the manual check first (which backs the database up), shows what will
be applied and asks for consent unless --yes is given.
"""

from .base import BaseMigrationsCommand
from ....db.migrations.errors import BackupError, MigrationApplyError


class ApplyCommand(BaseMigrationsCommand):
    """Handle --apply command for migrations."""

    def execute(self, args) -> None:
        self.console.print("[bold cyan]🔧 APPLYING DATABASE MIGRATIONS[/bold cyan]")

        try:
            check = self.trigger_system.on_manual_request()
        except BackupError as e:
            self.print_error(f"Pre-migration backup failed, nothing applied: {e}")
            return

        self.print_check_result(check)
        if not check.requires_consent:
            return

        consent = self.confirm_operation("Apply these migrations?", getattr(args, 'yes', False))

        try:
            result = self.trigger_system.apply_migrations_with_consent(consent)
        except MigrationApplyError as e:
            self.print_error(f"Migration failed: {e}")
            self.print_info(e.guidance)
            if check.backup_created:
                self.print_info(f"Backup available at {check.backup_created}")
            return
        except BackupError as e:
            self.print_error(f"Pre-migration backup failed, nothing applied: {e}")
            return

        if not result.consented:
            self.print_warning("Migration declined, no changes made")
            return

        if self.wants_json(args):
            self.print_json(result.model_dump(mode='json'))
            return

        for migration in result.applied:
            self.print_success(f"Applied {migration}")
        self.print_success(f"Database now at version {result.current_version}")
        if result.backup_path:
            self.print_info(f"Pre-migration backup: {result.backup_path}")
