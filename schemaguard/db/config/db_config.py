"""
Database configuration settings.

This module defines the connection pool and engine parameters used by the
database layer. Memory and thread limits can be overridden from the
``database`` section of the main configuration; logging levels are controlled
by the ``logging`` section.
"""

import logging
from copy import deepcopy
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# DuckDB-specific configuration
DUCKDB_CONFIG = {
    'connection': {
        'pool_size': 5,                    # Maximum number of connections in pool
        'timeout': 30,                     # Seconds to wait for a free pooled connection
    },
    'performance': {
        'memory_limit': '1GB',             # DuckDB memory limit
        'threads': 2,                      # Number of threads ('auto' = CPU count)
        'enable_progress_bar': False,      # Disable progress bar for better logging
    },
    'query': {
        'slow_query_threshold': 1.0,       # Log queries slower than this (seconds)
    },
}


def get_duckdb_config(main_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Get DuckDB configuration dictionary.

    Args:
        main_config: Optional main configuration whose ``database.max_memory``
            and ``database.threads`` override the performance defaults.
    """
    config = deepcopy(DUCKDB_CONFIG)

    db_section = (main_config or {}).get('database', {})
    if db_section.get('max_memory'):
        config['performance']['memory_limit'] = db_section['max_memory']
    if db_section.get('threads'):
        config['performance']['threads'] = db_section['threads']

    return config


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate database configuration parameters."""
    try:
        conn_config = config.get('connection', {})
        if conn_config.get('pool_size', 0) <= 0:
            raise ValueError("pool_size must be positive")

        if conn_config.get('timeout', 0) <= 0:
            raise ValueError("timeout must be positive")

        perf_config = config.get('performance', {})
        memory_limit = perf_config.get('memory_limit', '1GB')
        if not isinstance(memory_limit, str) or not memory_limit.endswith(('GB', 'MB')):
            raise ValueError("memory_limit must be a string ending with 'GB' or 'MB'")

        threads = perf_config.get('threads', 1)
        if threads != 'auto' and (not isinstance(threads, int) or threads < 1):
            raise ValueError("threads must be a positive integer or 'auto'")

        return True

    except ValueError as e:
        logger.error(f"Database configuration validation failed: {e}")
        return False
