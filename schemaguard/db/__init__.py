"""
Database layer for schemaguard.

Key components:
- Connection management with pooling
- Pydantic models for type safety
- Migration catalog, version detection and migration runner
- Centralized logging configuration
"""

from .core.connection import DuckDBConnectionManager
from .config import get_duckdb_config, setup_db_logging, DatabaseLoggerAdapter

from . import models
from .models import *

from .migrations import (
    MigrationCatalog, VersionManager, MigrationRunner, load_default_catalog
)

__all__ = [
    # Core components
    "DuckDBConnectionManager",

    # Configuration
    "get_duckdb_config",
    "setup_db_logging",
    "DatabaseLoggerAdapter",

    # Migration system
    "MigrationCatalog",
    "VersionManager",
    "MigrationRunner",
    "load_default_catalog",
] + models.__all__
