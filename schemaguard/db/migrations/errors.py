"""
Exception hierarchy for migration and backup operations.

Every migration error carries the version and name of the migration that
caused it. Callers decide whether to surface, abort or ask an operator;
nothing here is retried automatically.
"""

from enum import Enum
from typing import Optional


class MigrationError(Exception):
    """Base class for migration failures."""

    def __init__(self, message: str, version: Optional[int] = None, name: Optional[str] = None):
        self.version = version
        self.name = name
        self.reason = message
        if version is not None:
            prefix = f"v{version}" + (f" ({name})" if name else "")
            message = f"{prefix}: {message}"
        super().__init__(message)


class MigrationValidationError(MigrationError):
    """Migration content is empty or malformed."""


class ResourceNotFoundError(MigrationError):
    """Migration content reference could not be resolved."""


class MigrationExecutionError(MigrationError):
    """The database rejected a statement, or the commit failed."""


class RollbackNotSupportedError(MigrationError, NotImplementedError):
    """Down-migrations do not exist."""


class BackupError(Exception):
    """Snapshot creation, restore, import, listing or cleanup failed."""


class ChecksumMismatchWarning(UserWarning):
    """A recorded checksum disagrees with the catalog checksum for that version."""


class MigrationErrorCategory(str, Enum):
    """Operator-facing categories for failed migration batches."""
    MISSING_CONTENT = "missing_content"
    VALIDATION = "validation"
    SQL_SYNTAX = "sql_syntax"
    ALREADY_EXISTS = "already_exists"
    EXECUTION = "execution"


CATEGORY_GUIDANCE = {
    MigrationErrorCategory.MISSING_CONTENT:
        "Migration file missing from the application package. Reinstall the application.",
    MigrationErrorCategory.VALIDATION:
        "Migration content failed validation. The application package may be corrupted.",
    MigrationErrorCategory.SQL_SYNTAX:
        "SQL syntax error in migration. Please report this issue.",
    MigrationErrorCategory.ALREADY_EXISTS:
        "Database objects already exist. The database may be partially migrated; "
        "restore the pre-migration backup before retrying.",
    MigrationErrorCategory.EXECUTION:
        "Migration failed. Restore the pre-migration backup and contact support.",
}


def categorize_migration_error(error: BaseException) -> MigrationErrorCategory:
    """Map an error raised while applying migrations to an operator category."""
    if isinstance(error, ResourceNotFoundError):
        return MigrationErrorCategory.MISSING_CONTENT
    if isinstance(error, MigrationValidationError):
        return MigrationErrorCategory.VALIDATION

    cause = error.__cause__ or error
    message = str(cause).lower()
    if 'no such file' in message or 'not found in package' in message:
        return MigrationErrorCategory.MISSING_CONTENT
    if 'syntax' in message or type(cause).__name__ == 'ParserException':
        return MigrationErrorCategory.SQL_SYNTAX
    if 'already exists' in message:
        return MigrationErrorCategory.ALREADY_EXISTS
    return MigrationErrorCategory.EXECUTION


class MigrationApplyError(MigrationError):
    """A consented migration batch failed; carries an operator category."""

    def __init__(self, message: str, category: MigrationErrorCategory,
                 version: Optional[int] = None, name: Optional[str] = None):
        self.category = category
        super().__init__(message, version=version, name=name)

    @property
    def guidance(self) -> str:
        return CATEGORY_GUIDANCE[self.category]
