"""
Shared fixtures for schemaguard tests.

Every test gets its own project directory with a config file, so database,
backup and log paths all live under tmp_path.
"""

from datetime import datetime, timezone

import pytest
import yaml

from schemaguard.db.core.connection import DuckDBConnectionManager
from schemaguard.db.migrations import (
    MigrationCatalog, MappingContentProvider, MigrationRunner, VersionManager, compute_checksum
)
from schemaguard.db.models import Migration
from schemaguard.manager.core.config import Config
from schemaguard.manager.services import BackupManager, MigrationTriggerSystem

FIXED_NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

SAMPLE_MIGRATIONS = [
    (1, 'v001_customers', 'Customers table', 'v001_customers.sql',
     "CREATE TABLE IF NOT EXISTS customers (id INTEGER PRIMARY KEY, name VARCHAR NOT NULL);"),
    (2, 'v002_orders', 'Orders table', 'v002_orders.sql',
     "CREATE TABLE orders (id INTEGER PRIMARY KEY, customer_id INTEGER, total DOUBLE);\n"
     "CREATE INDEX idx_orders_customer ON orders(customer_id);"),
    (3, 'v003_customer_emails', 'Customer emails', 'v003_customer_emails.sql',
     "CREATE TABLE customer_emails (customer_id INTEGER, email VARCHAR);"),
]


def build_catalog(entries):
    """Build (catalog, provider) from (version, name, description, file, sql) tuples."""
    contents = {}
    migrations = []
    for version, name, description, reference, sql in entries:
        contents[reference] = sql
        migrations.append(Migration(
            version=version,
            name=name,
            description=description,
            content_reference=reference,
            checksum=compute_checksum(sql)
        ))
    return MigrationCatalog(migrations), MappingContentProvider(contents)


def write_config(project_dir, overrides=None):
    """Write config/schemaguard.yaml under project_dir and return its path."""
    config = {
        'database': {'path': 'data/test.duckdb', 'threads': 1},
        'backup': {'path': 'data/backups', 'keep_count': 3},
        'logging': {'level': 'DEBUG', 'log_file': None, 'db_log_file': None},
    }
    for section, values in (overrides or {}).items():
        config.setdefault(section, {}).update(values)

    config_dir = project_dir / 'config'
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / 'schemaguard.yaml'
    with open(config_path, 'w') as f:
        yaml.dump(config, f)
    return config_path


@pytest.fixture
def config(tmp_path):
    """Configuration rooted at tmp_path, isolated from the environment."""
    return Config(write_config(tmp_path), environ={})


@pytest.fixture
def connection_manager(config):
    manager = DuckDBConnectionManager(config.as_main_config())
    yield manager
    manager.close()


@pytest.fixture
def sample_catalog():
    return build_catalog(SAMPLE_MIGRATIONS)


@pytest.fixture
def catalog(sample_catalog):
    return sample_catalog[0]


@pytest.fixture
def content_provider(sample_catalog):
    return sample_catalog[1]


@pytest.fixture
def version_manager(connection_manager, catalog, config):
    return VersionManager(connection_manager, catalog, legacy_tables=config.legacy_tables)


@pytest.fixture
def runner(connection_manager, version_manager, content_provider):
    return MigrationRunner(connection_manager, version_manager, content_provider)


@pytest.fixture
def backup_manager(config, connection_manager):
    return BackupManager(config, connection_manager, clock=lambda: FIXED_NOW)


@pytest.fixture
def trigger_system(version_manager, runner, backup_manager):
    return MigrationTriggerSystem(version_manager, runner, backup_manager)
