"""Unit tests for the migration catalog and content providers."""

import pytest
from pydantic import ValidationError

from schemaguard.db.migrations import (
    MigrationCatalog, MigrationValidationError, ResourceNotFoundError,
    DirectoryContentProvider, MappingContentProvider, PackageContentProvider,
    compute_checksum, load_default_catalog
)
from schemaguard.db.models import Migration

from conftest import SAMPLE_MIGRATIONS, build_catalog


def make_migration(version, name=None):
    return Migration(
        version=version,
        name=name or f"v{version:03d}_test",
        content_reference=f"v{version:03d}.sql",
        checksum=compute_checksum(f"-- {version}")
    )


class TestMigrationModel:
    """Test catalog entry validation."""

    def test_version_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_migration(0)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Migration(version=1, name="   ", content_reference="a.sql", checksum="abc")

    def test_str_shows_padded_version(self):
        assert str(make_migration(2, "v002_gst_fixes")) == "Migration 002: v002_gst_fixes"

    def test_migration_is_immutable(self):
        migration = make_migration(1)
        with pytest.raises(ValidationError):
            migration.version = 5


class TestMigrationCatalog:
    """Test catalog ordering and version queries."""

    def test_migrations_sorted_by_version(self):
        catalog = MigrationCatalog([make_migration(3), make_migration(1), make_migration(2)])
        assert catalog.versions == [1, 2, 3]
        assert [m.version for m in catalog] == [1, 2, 3]

    def test_duplicate_versions_rejected(self):
        with pytest.raises(ValueError, match="Duplicate migration version"):
            MigrationCatalog([make_migration(1), make_migration(1, "v001_other")])

    def test_required_version_is_highest(self, catalog):
        assert catalog.required_version == 3
        assert len(catalog) == 3

    def test_empty_catalog_requires_version_zero(self):
        catalog = MigrationCatalog([])
        assert catalog.required_version == 0
        assert catalog.get_migration_path(-1) == []

    def test_get_and_contains(self, catalog):
        assert catalog.get(2).name == 'v002_orders'
        assert catalog.get(9) is None
        assert 3 in catalog
        assert 4 not in catalog

    @pytest.mark.parametrize("current,expected", [
        (-1, [1, 2, 3]),
        (0, [1, 2, 3]),
        (1, [2, 3]),
        (3, []),
        (7, []),
    ])
    def test_migration_path(self, catalog, current, expected):
        assert catalog.get_migration_path(current) == expected

    def test_migration_path_rejects_invalid_version(self, catalog):
        with pytest.raises(ValueError):
            catalog.get_migration_path(-2)

    def test_version_support(self, catalog):
        assert catalog.is_version_supported(-1)
        assert catalog.is_version_supported(3)
        assert not catalog.is_version_supported(4)
        assert not catalog.is_version_supported(-2)

    def test_compatibility_messages(self, catalog):
        assert "up to date" in catalog.compatibility_message(3)
        assert "needs to be upgraded to version 3" in catalog.compatibility_message(1)
        assert "newer than required" in catalog.compatibility_message(5)
        assert "not supported" in catalog.compatibility_message(-3)


class TestManifestLoading:
    """Test building catalogs from manifests."""

    @pytest.fixture
    def provider(self):
        return MappingContentProvider({'a.sql': "CREATE TABLE a (id INTEGER);"})

    def test_from_manifest_computes_checksums(self, provider):
        manifest = {'migrations': [
            {'version': 1, 'name': 'v001_a', 'description': 'Table a', 'file': 'a.sql'}
        ]}
        catalog = MigrationCatalog.from_manifest(manifest, provider)

        migration = catalog.get(1)
        assert migration.description == 'Table a'
        assert migration.checksum == compute_checksum("CREATE TABLE a (id INTEGER);")

    def test_invalid_manifest_rejected(self, provider):
        manifest = {'migrations': [{'version': 0, 'name': 'v000', 'file': 'a.sql'}]}
        with pytest.raises(MigrationValidationError, match="Invalid migration manifest"):
            MigrationCatalog.from_manifest(manifest, provider)

    def test_unresolvable_entry_rejected(self, provider):
        manifest = {'migrations': [{'version': 1, 'name': 'v001', 'file': 'missing.sql'}]}
        with pytest.raises(ResourceNotFoundError):
            MigrationCatalog.from_manifest(manifest, provider)

    def test_bundled_catalog(self):
        catalog = load_default_catalog()
        provider = PackageContentProvider()

        assert catalog.versions == [1, 2, 3]
        assert [m.name for m in catalog] == [
            'v001_initial_schema', 'v002_gst_fixes', 'v003_email_config'
        ]
        for migration in catalog:
            content = provider.resolve(migration.version, migration.content_reference)
            assert migration.checksum == compute_checksum(content)

    def test_catalog_from_directory(self, tmp_path):
        (tmp_path / 'catalog.yaml').write_text(
            "migrations:\n"
            "  - version: 1\n"
            "    name: v001_a\n"
            "    file: v001_a.sql\n"
        )
        (tmp_path / 'v001_a.sql').write_text("CREATE TABLE a (id INTEGER);")

        catalog = load_default_catalog(DirectoryContentProvider(tmp_path))
        assert catalog.versions == [1]

    def test_malformed_manifest_text(self):
        provider = MappingContentProvider({'catalog.yaml': "- just\n- a list\n"})
        with pytest.raises(MigrationValidationError):
            load_default_catalog(provider)


class TestContentProviders:
    """Test content resolution."""

    def test_checksum_is_sha256_hex(self):
        checksum = compute_checksum("SELECT 1;")
        assert len(checksum) == 64
        assert checksum == compute_checksum("SELECT 1;")
        assert checksum != compute_checksum("SELECT 2;")

    def test_directory_provider_reads_file(self, tmp_path):
        (tmp_path / 'v001.sql').write_text("CREATE TABLE t (id INTEGER);")
        provider = DirectoryContentProvider(tmp_path)
        assert provider.resolve(1, 'v001.sql') == "CREATE TABLE t (id INTEGER);"

    def test_directory_provider_missing_file(self, tmp_path):
        provider = DirectoryContentProvider(tmp_path)
        with pytest.raises(ResourceNotFoundError) as exc_info:
            provider.resolve(4, 'v004.sql')
        assert exc_info.value.version == 4

    def test_package_provider_missing_file(self):
        with pytest.raises(ResourceNotFoundError):
            PackageContentProvider().resolve(99, 'v099_missing.sql')

    def test_directory_provider_rejects_invalid_utf8(self, tmp_path):
        (tmp_path / 'bad.sql').write_bytes(b"CREATE TABLE t (id INTEGER); -- \xff\xfe")
        provider = DirectoryContentProvider(tmp_path)

        with pytest.raises(MigrationValidationError, match="not valid UTF-8") as exc_info:
            provider.resolve(1, 'bad.sql')
        assert exc_info.value.version == 1

    def test_package_provider_rejects_invalid_utf8(self, tmp_path, monkeypatch):
        package_dir = tmp_path / 'undecodable_sql_pkg'
        (package_dir / 'sql').mkdir(parents=True)
        (package_dir / '__init__.py').write_text("")
        (package_dir / 'sql' / 'bad.sql').write_bytes(b"\xff\xfe")
        monkeypatch.syspath_prepend(str(tmp_path))

        with pytest.raises(MigrationValidationError, match="not valid UTF-8"):
            PackageContentProvider(package='undecodable_sql_pkg').resolve(2, 'bad.sql')

    def test_sample_catalog_matches_provider(self):
        catalog, provider = build_catalog(SAMPLE_MIGRATIONS)
        for migration in catalog:
            content = provider.resolve(migration.version, migration.content_reference)
            assert compute_checksum(content) == migration.checksum
