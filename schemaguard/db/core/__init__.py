"""
Core database infrastructure: pooled DuckDB connections.
"""

from .connection import ConnectionPool, DuckDBConnectionManager

__all__ = ['ConnectionPool', 'DuckDBConnectionManager']
