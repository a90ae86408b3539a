"""
Verify Command - Check the migration ledger against the catalog.
"""

import warnings

from .base import BaseMigrationsCommand
from ....db.migrations.errors import ChecksumMismatchWarning


class VerifyCommand(BaseMigrationsCommand):
    """Handle --verify command for migrations."""

    def execute(self, args) -> None:
        # Mismatches are reported below, not as runtime warnings
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', ChecksumMismatchWarning)
            issues = self.version_manager.validate_applied_migrations()

        if self.wants_json(args):
            self.print_json({'valid': not issues, 'issues': issues})
            return

        if not issues:
            self.print_success("Migration ledger matches the catalog")
            return

        rows = [[issue['type'], issue.get('version', '-'), issue['message']] for issue in issues]
        self.print_table(["Issue", "Version", "Details"], rows, title="Migration integrity issues")
        self.print_warning(f"{len(issues)} integrity issues found")
