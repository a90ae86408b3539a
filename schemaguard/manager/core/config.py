"""
Configuration management for schemaguard.

Loads ``config/schemaguard.yaml`` (or an explicit path), merges it over the
built-in defaults, applies environment variable overrides and validates the
result against a JSON schema.
"""

import os
import yaml
from copy import deepcopy
from pathlib import Path
from typing import Dict, Any, Optional, List, Mapping, Union
import logging

from jsonschema import validate, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = 'schemaguard.yaml'

# Configuration schema for validation
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["database", "backup", "logging"],
    "properties": {
        "database": {
            "type": "object",
            "required": ["path"],
            "properties": {
                "path": {"type": "string", "minLength": 1},
                "max_memory": {"type": "string", "pattern": "^[0-9]+(MB|GB)$"},
                "threads": {"type": "integer", "minimum": 1},
                "legacy_tables": {
                    "type": "array",
                    "items": {"type": "string", "pattern": "^[A-Za-z_][A-Za-z0-9_]*$"}
                }
            }
        },
        "backup": {
            "type": "object",
            "required": ["path"],
            "properties": {
                "path": {"type": "string", "minLength": 1},
                "extension": {"type": "string", "pattern": "^[A-Za-z0-9]+$"},
                "keep_count": {"type": "integer", "minimum": 0}
            }
        },
        "migrations": {
            "type": "object",
            "properties": {
                "directory": {"type": ["string", "null"]}
            }
        },
        "logging": {
            "type": "object",
            "required": ["level"],
            "properties": {
                "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
                "log_file": {"type": ["string", "null"]},
                "db_log_file": {"type": ["string", "null"]},
                "max_log_size_mb": {"type": "integer", "minimum": 1},
                "backup_count": {"type": "integer", "minimum": 0}
            }
        }
    }
}

DEFAULT_CONFIG = {
    'database': {
        'path': 'data/schemaguard.duckdb',
        'max_memory': '1GB',
        'threads': 2,
        'legacy_tables': ['customers', 'invoices', 'services', 'stores']
    },
    'backup': {
        'path': 'data/backups/',
        'extension': 'duckdb',
        'keep_count': 10
    },
    'migrations': {
        'directory': None
    },
    'logging': {
        'level': 'INFO',
        'log_file': None,
        'db_log_file': None,
        'max_log_size_mb': 10,
        'backup_count': 3
    }
}


class Config:
    """Central configuration for the migration subsystem and manager CLI."""

    # Environment variable overrides (config key -> variable name)
    ENV_MAPPINGS = {
        'database.path': 'SCHEMAGUARD_DB_PATH',
        'backup.path': 'SCHEMAGUARD_BACKUP_DIR',
        'migrations.directory': 'SCHEMAGUARD_MIGRATIONS_DIR',
        'logging.level': 'SCHEMAGUARD_LOG_LEVEL',
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize configuration from YAML file.

        Args:
            config_path: Path to configuration file. If None, searches upward
                from the working directory for config/schemaguard.yaml.
            environ: Environment mapping used for overrides (defaults to os.environ)
        """
        if config_path is None:
            current = Path.cwd()
            while current != current.parent:
                if (current / 'config' / CONFIG_FILE_NAME).exists():
                    config_path = current / 'config' / CONFIG_FILE_NAME
                    break
                current = current.parent

            if config_path is None:
                config_path = Path('config') / CONFIG_FILE_NAME

        self.config_path = Path(config_path).resolve()
        self.project_root = self.config_path.parent.parent
        self._environ = os.environ if environ is None else environ

        self._config = self._deep_merge(DEFAULT_CONFIG, self._load_config())
        self._apply_env_overrides()
        self.validate()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            logger.warning(f"Config file not found: {self.config_path}, using defaults")
            return {}

        try:
            with open(self.config_path, 'r') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML file {self.config_path}: {e}")
            raise

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file must contain a mapping, got {type(loaded).__name__}")
        return loaded

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, values from override win."""
        result = deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)

        return result

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to configuration."""
        for config_key, env_var in self.ENV_MAPPINGS.items():
            env_value = self._environ.get(env_var)
            if env_value:
                if config_key == 'logging.level':
                    env_value = env_value.upper()
                self._set_nested_value(config_key, env_value)
                logger.info(f"Applied environment override for {config_key}")

    def _set_nested_value(self, key: str, value: Any) -> None:
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            current = current.setdefault(k, {})

        current[keys[-1]] = value

    def validate(self) -> None:
        """Validate the merged configuration.

        Raises:
            ValidationError: If configuration is invalid
        """
        try:
            validate(self._config, CONFIG_SCHEMA)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e.message}")
            logger.error(f"Failed at path: {'.'.join(str(p) for p in e.path)}")
            raise

    def _resolve(self, value: str) -> Path:
        return self.project_root / Path(value).expanduser()

    @property
    def database_path(self) -> Path:
        """Get absolute database path."""
        return self._resolve(self._config['database']['path'])

    @property
    def backup_path(self) -> Path:
        """Get absolute backup directory path."""
        return self._resolve(self._config['backup']['path'])

    @property
    def backup_extension(self) -> str:
        return self._config['backup'].get('extension', 'duckdb')

    @property
    def backup_keep_count(self) -> int:
        return self._config['backup'].get('keep_count', 10)

    @property
    def legacy_tables(self) -> List[str]:
        """Business tables whose presence marks an untracked (legacy) database."""
        return list(self._config['database'].get('legacy_tables', []))

    @property
    def migrations_directory(self) -> Optional[Path]:
        """Directory with migration SQL files, None for the bundled ones."""
        directory = self._config.get('migrations', {}).get('directory')
        return self._resolve(directory) if directory else None

    def as_main_config(self) -> Dict[str, Any]:
        """Return the configuration dictionary with file paths resolved.

        This is the form consumed by the database layer and logging setup.
        """
        main_config = deepcopy(self._config)
        main_config['database']['path'] = str(self.database_path)
        main_config['backup']['path'] = str(self.backup_path)

        logging_config = main_config['logging']
        for key in ('log_file', 'db_log_file'):
            if logging_config.get(key):
                logging_config[key] = str(self._resolve(logging_config[key]))

        return main_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated key.

        Args:
            key: Dot-separated configuration key (e.g., 'database.path')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
