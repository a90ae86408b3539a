"""
Migration catalog.

The catalog is the ordered registry of every known migration. It is built
once at process start (normally from the bundled ``catalog.yaml`` manifest)
and passed to the version manager; it performs no database I/O.
"""

import logging
from typing import List, Dict, Any, Optional, Iterable, Iterator

import yaml
from jsonschema import validate, ValidationError

from ..models.migration import Migration, EMPTY_DATABASE_VERSION
from .content import ContentProvider, PackageContentProvider, compute_checksum
from .errors import MigrationValidationError

logger = logging.getLogger(__name__)

MANIFEST_NAME = 'catalog.yaml'

MANIFEST_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["migrations"],
    "properties": {
        "migrations": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["version", "name", "file"],
                "properties": {
                    "version": {"type": "integer", "minimum": 1},
                    "name": {"type": "string", "minLength": 1},
                    "description": {"type": "string"},
                    "file": {"type": "string", "minLength": 1}
                },
                "additionalProperties": False
            }
        }
    }
}


class MigrationCatalog:
    """Immutable, version-ordered collection of migrations."""

    def __init__(self, migrations: Iterable[Migration]):
        ordered = sorted(migrations, key=lambda m: m.version)

        seen = set()
        for migration in ordered:
            if migration.version in seen:
                raise ValueError(f"Duplicate migration version in catalog: {migration.version}")
            seen.add(migration.version)

        self._migrations = tuple(ordered)
        self._by_version = {m.version: m for m in ordered}

    @classmethod
    def from_manifest(cls, manifest: Dict[str, Any], provider: ContentProvider) -> 'MigrationCatalog':
        """
        Build a catalog from a parsed manifest.

        Checksums are computed from the payloads the provider resolves, so
        every entry must be resolvable when the catalog is built.

        Args:
            manifest: Mapping with a ``migrations`` list of
                ``{version, name, description, file}`` entries
            provider: Content provider used to read each payload
        """
        try:
            validate(manifest, MANIFEST_SCHEMA)
        except ValidationError as e:
            raise MigrationValidationError(f"Invalid migration manifest: {e.message}") from e

        migrations = []
        for entry in manifest['migrations']:
            content = provider.resolve(entry['version'], entry['file'])
            migrations.append(Migration(
                version=entry['version'],
                name=entry['name'],
                description=entry.get('description', ''),
                content_reference=entry['file'],
                checksum=compute_checksum(content)
            ))

        catalog = cls(migrations)
        logger.debug(f"Loaded catalog with {len(catalog)} migrations from {provider.describe()}")
        return catalog

    def __len__(self) -> int:
        return len(self._migrations)

    def __iter__(self) -> Iterator[Migration]:
        return iter(self._migrations)

    def __contains__(self, version: int) -> bool:
        return version in self._by_version

    @property
    def migrations(self) -> List[Migration]:
        return list(self._migrations)

    @property
    def versions(self) -> List[int]:
        return [m.version for m in self._migrations]

    @property
    def required_version(self) -> int:
        """Highest catalog version, 0 for an empty catalog."""
        return self._migrations[-1].version if self._migrations else 0

    def get(self, version: int) -> Optional[Migration]:
        return self._by_version.get(version)

    def get_migration_path(self, current_version: int) -> List[int]:
        """
        Versions that must be applied, in order, to reach the required version.

        Args:
            current_version: Current database version (-1 empty, 0 legacy)

        Returns:
            Strictly increasing list of catalog versions above current_version
        """
        if current_version < EMPTY_DATABASE_VERSION:
            raise ValueError(f"Invalid database version: {current_version}")
        return [v for v in self.versions if v > current_version]

    def is_version_supported(self, version: int) -> bool:
        return EMPTY_DATABASE_VERSION <= version <= self.required_version

    def compatibility_message(self, version: int) -> str:
        """Operator-facing description of how a database version relates to the catalog."""
        required = self.required_version
        if version < EMPTY_DATABASE_VERSION:
            return f"Database version {version} is not supported"
        if version == required:
            return f"Database is up to date (version {version})"
        if version < required:
            return f"Database version {version} needs to be upgraded to version {required}"
        return (f"Database version {version} is newer than required version {required}. "
                "The application may need to be updated.")


def load_default_catalog(provider: Optional[ContentProvider] = None) -> MigrationCatalog:
    """
    Load the catalog from the ``catalog.yaml`` manifest next to the SQL files.

    Args:
        provider: Content provider holding the manifest and the SQL files.
            Defaults to the SQL bundled with the package.
    """
    provider = provider or PackageContentProvider()
    manifest_text = provider.resolve(None, MANIFEST_NAME)

    try:
        manifest = yaml.safe_load(manifest_text)
    except yaml.YAMLError as e:
        raise MigrationValidationError(f"Failed to parse migration manifest: {e}") from e

    if not isinstance(manifest, dict):
        raise MigrationValidationError("Migration manifest must contain a mapping")

    return MigrationCatalog.from_manifest(manifest, provider)
