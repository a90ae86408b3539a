"""
Database configuration management.

This module handles database-specific configuration:
- Connection pool and engine settings
- Logging configuration integration
"""

from .db_config import get_duckdb_config, validate_config, DUCKDB_CONFIG
from .logging_config import setup_db_logging, DatabaseLoggerAdapter

__all__ = [
    'get_duckdb_config',
    'validate_config',
    'DUCKDB_CONFIG',
    'setup_db_logging',
    'DatabaseLoggerAdapter'
]
