"""
Check Command - Run a manual migration check.

Takes a pre-migration backup when an upgrade is required but does not apply
anything.
"""

from .base import BaseMigrationsCommand
from ....db.migrations.errors import BackupError


class CheckCommand(BaseMigrationsCommand):
    """Handle --check command for migrations."""

    def execute(self, args) -> None:
        try:
            result = self.trigger_system.on_manual_request()
        except BackupError as e:
            self.print_error(f"Pre-migration backup failed, migrations will not be offered: {e}")
            return

        if self.wants_json(args):
            self.print_json(result.model_dump(mode='json'))
            return

        self.print_check_result(result)
        if result.requires_consent:
            self.print_info("Run: manager.py migrations --apply")
