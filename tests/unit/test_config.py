"""Unit tests for configuration loading."""

import pytest
import yaml
from jsonschema import ValidationError

from schemaguard.db.config import get_duckdb_config
from schemaguard.db.config.db_config import validate_config
from schemaguard.manager.core.config import Config

from conftest import write_config


class TestConfig:
    """Test configuration loading, merging and overrides."""

    def test_paths_resolved_against_project_root(self, tmp_path):
        config = Config(write_config(tmp_path), environ={})

        assert config.project_root == tmp_path.resolve()
        assert config.database_path == tmp_path.resolve() / 'data' / 'test.duckdb'
        assert config.backup_path == tmp_path.resolve() / 'data' / 'backups'

    def test_defaults_fill_missing_keys(self, tmp_path):
        config = Config(write_config(tmp_path), environ={})

        assert config.backup_extension == 'duckdb'
        assert config.legacy_tables == ['customers', 'invoices', 'services', 'stores']
        assert config.migrations_directory is None

    def test_missing_file_uses_defaults(self, tmp_path):
        config = Config(tmp_path / 'config' / 'absent.yaml', environ={})

        assert config.database_path.name == 'schemaguard.duckdb'
        assert config.backup_keep_count == 10

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / 'config' / 'schemaguard.yaml'
        path.parent.mkdir()
        path.write_text("")

        assert Config(path, environ={}).get('logging.level') == 'INFO'

    def test_non_mapping_file_rejected(self, tmp_path):
        path = tmp_path / 'config' / 'schemaguard.yaml'
        path.parent.mkdir()
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            Config(path, environ={})

    def test_invalid_yaml_rejected(self, tmp_path):
        path = tmp_path / 'config' / 'schemaguard.yaml'
        path.parent.mkdir()
        path.write_text("database: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            Config(path, environ={})

    def test_environment_overrides(self, tmp_path):
        environ = {
            'SCHEMAGUARD_DB_PATH': 'other/live.duckdb',
            'SCHEMAGUARD_BACKUP_DIR': 'snapshots',
            'SCHEMAGUARD_MIGRATIONS_DIR': 'sql',
            'SCHEMAGUARD_LOG_LEVEL': 'warning',
        }
        config = Config(write_config(tmp_path), environ=environ)

        assert config.database_path == tmp_path.resolve() / 'other' / 'live.duckdb'
        assert config.backup_path == tmp_path.resolve() / 'snapshots'
        assert config.migrations_directory == tmp_path.resolve() / 'sql'
        assert config.get('logging.level') == 'WARNING'

    @pytest.mark.parametrize("overrides", [
        {'database': {'threads': 0}},
        {'database': {'max_memory': 'lots'}},
        {'backup': {'keep_count': -1}},
        {'backup': {'extension': '.duckdb'}},
        {'logging': {'level': 'VERBOSE'}},
        {'database': {'legacy_tables': ['bad-name']}},
    ])
    def test_invalid_values_rejected(self, tmp_path, overrides):
        with pytest.raises(ValidationError):
            Config(write_config(tmp_path, overrides), environ={})

    def test_get_dotted_keys(self, config):
        assert config.get('backup.keep_count') == 3
        assert config.get('backup.missing', 'fallback') == 'fallback'
        assert config.get('nothing.here') is None

    def test_main_config_resolves_log_files(self, tmp_path):
        config = Config(
            write_config(tmp_path, {'logging': {'log_file': 'logs/app.log', 'db_log_file': 'logs/db.log'}}),
            environ={}
        )
        main_config = config.as_main_config()

        assert main_config['database']['path'] == str(config.database_path)
        assert main_config['logging']['log_file'] == str(tmp_path.resolve() / 'logs' / 'app.log')
        assert main_config['logging']['db_log_file'] == str(tmp_path.resolve() / 'logs' / 'db.log')


class TestDatabaseConfig:
    """Test DuckDB engine settings."""

    def test_main_config_overrides_performance(self, config):
        db_config = get_duckdb_config(config.as_main_config())

        assert db_config['performance']['threads'] == 1
        assert db_config['performance']['memory_limit'] == '1GB'
        assert validate_config(db_config)

    def test_invalid_pool_size(self):
        db_config = get_duckdb_config()
        db_config['connection']['pool_size'] = 0
        assert not validate_config(db_config)
