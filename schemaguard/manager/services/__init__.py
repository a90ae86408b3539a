"""
Service layer for backups and migration triggers.
"""

from .backup_service import BackupManager
from .migration_trigger import MigrationTriggerSystem

__all__ = ['BackupManager', 'MigrationTriggerSystem']
