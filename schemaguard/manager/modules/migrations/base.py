"""
Base Migrations Command - Common functionality for migration commands.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List

from ...core.command_base import BaseCommand
from ....db.models.migration import (
    Migration, AppliedMigrationRecord, CurrentStatus, RequiresUpgradeStatus, RequiresConsentStatus
)
from ....db.models.trigger import MigrationCheckResult


class BaseMigrationsCommand(BaseCommand, ABC):
    """Base class for all migration commands."""

    def __init__(self):
        super().__init__()
        self.version_manager = None
        self.runner = None
        self.trigger_system = None

    def inject_services(self, services: Dict[str, Any]) -> None:
        """Inject required services."""
        super().inject_services(services)
        self.version_manager = services.get('version_manager')
        self.runner = services.get('migration_runner')
        self.trigger_system = services.get('trigger_system')
        if not self.version_manager:
            raise ValueError("VersionManager is required for migration commands")

    @abstractmethod
    def execute(self, args) -> None:
        """Execute the command with given arguments."""
        pass

    def wants_json(self, args) -> bool:
        return getattr(args, 'format', 'text') == 'json'

    def print_pending(self, migrations: List[Migration], title: str = "Pending migrations") -> None:
        rows = [[f"{m.version:03d}", m.name, m.description] for m in migrations]
        self.print_table(["Version", "Name", "Description"], rows, title=title)

    def print_applied(self, records: List[AppliedMigrationRecord]) -> None:
        rows = [
            [f"{r.version:03d}", r.name, r.applied_at,
             f"{r.execution_time_ms}ms" if r.execution_time_ms is not None else '-']
            for r in records
        ]
        self.print_table(["Version", "Name", "Applied (UTC)", "Duration"], rows, title="Applied migrations")

    def print_check_result(self, result: MigrationCheckResult) -> None:
        """Print the outcome of a trigger check."""
        status = result.status

        if isinstance(status, CurrentStatus):
            self.print_success(f"Database schema is current (version {status.version})")
        elif isinstance(status, RequiresConsentStatus):
            info = status.info
            self.print_warning(
                f"Database at version {info.current_version} needs upgrade to version {info.required_version}"
            )
            if info.is_legacy:
                self.print_info("Legacy database detected: existing tables will be adopted")
            self.print_pending(info.pending_migrations)
        elif isinstance(status, RequiresUpgradeStatus):
            self.print_warning(
                f"Database at version {status.current_version} needs upgrade to version {status.required_version}"
            )
            self.print_pending(status.pending_migrations)

        if result.safety_backup:
            self.print_info(f"Safety backup: {result.safety_backup}")
        if result.backup_created:
            self.print_info(f"Pre-migration backup: {result.backup_created}")
        for warning in result.integrity_warnings:
            self.print_warning(warning)
