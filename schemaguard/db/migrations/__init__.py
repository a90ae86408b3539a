"""
Database migration system.

Provides the migration catalog, content providers, version detection and
the transactional migration runner.
"""

from .catalog import MigrationCatalog, load_default_catalog
from .content import (
    ContentProvider, PackageContentProvider, DirectoryContentProvider,
    MappingContentProvider, compute_checksum
)
from .errors import (
    MigrationError, MigrationValidationError, ResourceNotFoundError,
    MigrationExecutionError, RollbackNotSupportedError, MigrationApplyError,
    MigrationErrorCategory, BackupError, ChecksumMismatchWarning
)
from .version_manager import VersionManager, TRACKING_TABLE
from .migration_runner import MigrationRunner

__all__ = [
    'MigrationCatalog', 'load_default_catalog',
    'ContentProvider', 'PackageContentProvider', 'DirectoryContentProvider',
    'MappingContentProvider', 'compute_checksum',
    'MigrationError', 'MigrationValidationError', 'ResourceNotFoundError',
    'MigrationExecutionError', 'RollbackNotSupportedError', 'MigrationApplyError',
    'MigrationErrorCategory', 'BackupError', 'ChecksumMismatchWarning',
    'VersionManager', 'TRACKING_TABLE',
    'MigrationRunner',
]
