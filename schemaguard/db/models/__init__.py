"""
Database models using Pydantic for validation and type safety.

This module contains data models for:
- Catalog entries and ledger rows
- Version snapshots and migration status
- Backup records
- Migration triggers and trigger results
"""

from .migration import (
    Migration, AppliedMigrationRecord, DatabaseVersionInfo,
    CurrentStatus, RequiresUpgradeStatus, RequiresConsentStatus,
    MigrationStatus, needs_upgrade,
    EMPTY_DATABASE_VERSION, LEGACY_DATABASE_VERSION
)

from .backup import BackupRecord

from .trigger import (
    AppStartup, DatabaseRestore, DatabaseImport, ManualRequest,
    MigrationTrigger, MigrationCheckResult, MigrationApplyResult
)

__all__ = [
    # Migration models
    'Migration', 'AppliedMigrationRecord', 'DatabaseVersionInfo',
    'CurrentStatus', 'RequiresUpgradeStatus', 'RequiresConsentStatus',
    'MigrationStatus', 'needs_upgrade',
    'EMPTY_DATABASE_VERSION', 'LEGACY_DATABASE_VERSION',

    # Backup models
    'BackupRecord',

    # Trigger models
    'AppStartup', 'DatabaseRestore', 'DatabaseImport', 'ManualRequest',
    'MigrationTrigger', 'MigrationCheckResult', 'MigrationApplyResult',
]
