"""
Migration content providers.

A content provider resolves ``(version, content_reference)`` to the SQL text
of a migration. Providers are read-only; failing to resolve is reported as
ResourceNotFoundError and undecodable content as MigrationValidationError,
distinct from execution failures.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from importlib import resources
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import MigrationValidationError, ResourceNotFoundError

logger = logging.getLogger(__name__)

BUNDLED_SQL_PACKAGE = 'schemaguard.db.migrations'
BUNDLED_SQL_DIR = 'sql'


def compute_checksum(content: str) -> str:
    """SHA-256 hex digest of migration content."""
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


class ContentProvider(ABC):
    """Resolves migration content references to SQL text."""

    @abstractmethod
    def resolve(self, version: Optional[int], content_reference: str) -> str:
        """Return the SQL text for a migration.

        Raises:
            ResourceNotFoundError: If the reference cannot be resolved
            MigrationValidationError: If the content is not valid UTF-8
        """
        pass

    def describe(self) -> str:
        return self.__class__.__name__


class PackageContentProvider(ContentProvider):
    """SQL files shipped as package data (schemaguard/db/migrations/sql)."""

    def __init__(self, package: str = BUNDLED_SQL_PACKAGE, directory: str = BUNDLED_SQL_DIR):
        self.package = package
        self.directory = directory

    def resolve(self, version: Optional[int], content_reference: str) -> str:
        resource = resources.files(self.package).joinpath(self.directory).joinpath(content_reference)
        try:
            return resource.read_text(encoding='utf-8')
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ResourceNotFoundError(
                f"Migration content '{content_reference}' not found in package {self.package}",
                version=version
            ) from e
        except UnicodeDecodeError as e:
            raise MigrationValidationError(
                f"Migration content '{content_reference}' is not valid UTF-8: {e.reason} at byte {e.start}",
                version=version
            ) from e

    def describe(self) -> str:
        return f"package:{self.package}/{self.directory}"


class DirectoryContentProvider(ContentProvider):
    """SQL files in a filesystem directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def resolve(self, version: Optional[int], content_reference: str) -> str:
        path = self.directory / content_reference
        try:
            return path.read_text(encoding='utf-8')
        except OSError as e:
            raise ResourceNotFoundError(
                f"Migration content '{content_reference}' could not be read from {self.directory}: {e}",
                version=version
            ) from e
        except UnicodeDecodeError as e:
            raise MigrationValidationError(
                f"Migration content '{content_reference}' is not valid UTF-8: {e.reason} at byte {e.start}",
                version=version
            ) from e

    def describe(self) -> str:
        return f"directory:{self.directory}"


class MappingContentProvider(ContentProvider):
    """In-memory content keyed by content reference."""

    def __init__(self, contents: Dict[str, str]):
        self.contents = dict(contents)

    def resolve(self, version: Optional[int], content_reference: str) -> str:
        try:
            return self.contents[content_reference]
        except KeyError:
            raise ResourceNotFoundError(
                f"Migration content '{content_reference}' is not registered",
                version=version
            ) from None
