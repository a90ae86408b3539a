"""
DuckDB Connection Manager with pooling.

This module provides centralized connection management for the schemaguard
database layer: a bounded thread-safe connection pool, query helpers,
explicit transactions and the file-level hooks (checkpoint, disconnect) that
backup and restore need.
"""

import os
import time
import threading
from queue import Queue, Empty, Full
from contextlib import contextmanager
from typing import Dict, Any, Optional, List, Iterable
from pathlib import Path
import logging

import duckdb

from ..config.db_config import get_duckdb_config, validate_config
from ..config.logging_config import setup_db_logging, DatabaseLoggerAdapter


class ConnectionPool:
    """
    Thread-safe connection pool for DuckDB connections.

    Connections are created lazily up to ``pool_size``; once the pool is
    exhausted callers wait up to ``timeout`` seconds for a released one.
    """

    def __init__(self, db_path: str, pool_size: int, timeout: float,
                 logger: logging.Logger, db_config: Dict[str, Any]):
        self.db_path = db_path
        self.pool_size = pool_size
        self.timeout = timeout
        self.logger = logger
        self.db_config = db_config

        self._pool = Queue(maxsize=pool_size)
        self._all_connections = []  # Track all connections for cleanup
        self._lock = threading.RLock()
        self._created_count = 0
        self._active_count = 0

        self.stats = {
            'connections_created': 0,
            'connections_acquired': 0,
            'connections_released': 0,
            'connections_failed': 0,
            'pool_waits': 0,
            'total_wait_time': 0.0
        }

    def _create_connection(self) -> Optional[duckdb.DuckDBPyConnection]:
        """Create a new DuckDB connection, or None if the pool is full."""
        with self._lock:
            if self._created_count >= self.pool_size:
                return None

            try:
                conn = duckdb.connect(database=self.db_path)
            except duckdb.Error as e:
                self.stats['connections_failed'] += 1
                self.logger.error(f"Failed to create connection: {e}")
                raise

            self._configure_connection(conn)

            self._all_connections.append(conn)
            self._created_count += 1
            self.stats['connections_created'] += 1

            self.logger.debug(f"Created new connection #{self._created_count}")
            return conn

    def _configure_connection(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Apply DuckDB engine settings to connection."""
        perf_config = self.db_config['performance']
        try:
            conn.execute(f"SET memory_limit = '{perf_config['memory_limit']}'")

            threads = perf_config['threads']
            if threads == 'auto':
                threads = max(1, os.cpu_count() or 1)
            conn.execute(f"SET threads = {int(threads)}")

            conn.execute(f"SET enable_progress_bar = {perf_config['enable_progress_bar']}")
        except duckdb.Error as e:
            self.logger.warning(f"Failed to configure connection: {e}")

    def acquire(self) -> duckdb.DuckDBPyConnection:
        """
        Acquire a connection from the pool.

        Returns:
            DuckDB connection

        Raises:
            RuntimeError: If no connection became available within the timeout
        """
        start_time = time.time()

        while True:
            try:
                conn = self._pool.get(block=False)
            except Empty:
                conn = self._create_connection()
                if conn is None:
                    self.stats['pool_waits'] += 1
                    remaining = self.timeout - (time.time() - start_time)
                    try:
                        conn = self._pool.get(timeout=max(0.0, remaining))
                    except Empty:
                        raise RuntimeError(
                            f"Unable to acquire database connection within {self.timeout}s"
                        )

            if self._is_connection_healthy(conn):
                break

            self.logger.warning("Discarded unhealthy connection")
            self._remove_connection(conn)

        with self._lock:
            self._active_count += 1
        self.stats['connections_acquired'] += 1

        wait_time = time.time() - start_time
        if wait_time > 0.1:
            self.stats['total_wait_time'] += wait_time
            self.logger.debug(f"Pool wait: {wait_time:.3f}s")

        return conn

    def release(self, conn: duckdb.DuckDBPyConnection) -> None:
        """
        Release a connection back to the pool.

        Args:
            conn: Connection to release
        """
        if conn is None:
            return

        with self._lock:
            tracked = conn in self._all_connections
            self._active_count = max(0, self._active_count - 1)

        # Connections closed by close_all() while checked out are dropped
        if not tracked:
            return

        if not self._is_connection_healthy(conn):
            self._remove_connection(conn)
            return

        try:
            self._pool.put(conn, block=False)
            self.stats['connections_released'] += 1
        except Full:
            self._remove_connection(conn)

    def discard(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Close a checked-out connection instead of returning it to the pool."""
        with self._lock:
            self._active_count = max(0, self._active_count - 1)
        self._remove_connection(conn)
        self.logger.warning("Discarded connection with unknown transaction state")

    def _is_connection_healthy(self, conn: duckdb.DuckDBPyConnection) -> bool:
        """Check if connection is healthy and responsive."""
        try:
            result = conn.execute("SELECT 1").fetchone()
            return result is not None and result[0] == 1
        except duckdb.Error:
            return False

    def _remove_connection(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Remove and close a connection."""
        with self._lock:
            if conn in self._all_connections:
                self._all_connections.remove(conn)
                self._created_count = max(0, self._created_count - 1)

        try:
            conn.close()
        except duckdb.Error as e:
            self.logger.warning(f"Error removing connection: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get connection pool statistics."""
        with self._lock:
            return {
                'pool_size': self.pool_size,
                'created_connections': self._created_count,
                'active_connections': self._active_count,
                'pooled_connections': self._pool.qsize(),
                'stats': self.stats.copy()
            }

    def close_all(self) -> None:
        """Close all connections in the pool."""
        self.logger.debug("Closing all connections in pool")

        while True:
            try:
                self._pool.get(block=False)
            except Empty:
                break

        with self._lock:
            connections = self._all_connections[:]
            self._all_connections.clear()
            self._created_count = 0

        for conn in connections:
            try:
                conn.close()
            except duckdb.Error as e:
                self.logger.warning(f"Error closing tracked connection: {e}")


class DuckDBConnectionManager:
    """
    Main connection manager for DuckDB database operations.

    This class is the database handle shared by the version manager, the
    migration runner and the backup manager. The pool is opened lazily, so
    after ``disconnect()`` the next query transparently reconnects to
    whatever file now lives at ``db_path``.
    """

    def __init__(self, main_config: Dict[str, Any]):
        """
        Initialize connection manager with configuration.

        Args:
            main_config: Main configuration dictionary (see Config.as_main_config)
        """
        self.main_config = main_config
        self.db_config = get_duckdb_config(main_config)

        if not validate_config(self.db_config):
            raise ValueError("Invalid database configuration")

        db_section = main_config.get('database', {})
        self.db_path = str(Path(db_section.get('path', 'data/schemaguard.duckdb')))

        self.logger = DatabaseLoggerAdapter(
            setup_db_logging(main_config),
            {'component': 'connection_manager', 'db_path': self.db_path}
        )

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn_config = self.db_config['connection']
        self.pool = ConnectionPool(
            db_path=self.db_path,
            pool_size=conn_config['pool_size'],
            timeout=conn_config['timeout'],
            logger=logging.getLogger('db.connection'),
            db_config=self.db_config
        )

        self.logger.info(f"DuckDB connection manager initialized: {self.db_path}")

    @contextmanager
    def get_connection(self):
        """
        Get a database connection from the pool using context manager.

        Usage:
            with manager.get_connection() as conn:
                result = conn.execute("SELECT * FROM table").fetchall()
        """
        conn = self.pool.acquire()
        start_time = time.time()
        self.logger.connection_event('acquired', f"Pool stats: {self.pool.get_stats()}")

        try:
            yield conn
        finally:
            self.pool.release(conn)
            duration = time.time() - start_time
            self.logger.connection_event('released', f"Duration: {duration:.3f}s")

    def execute_query(self, query: str, params: tuple = None, fetch: str = 'all') -> Any:
        """
        Execute a query with automatic connection management.

        Args:
            query: SQL query string
            params: Query parameters tuple
            fetch: Fetch method ('all', 'one', 'none')

        Returns:
            Query results based on fetch method
        """
        if fetch not in ('all', 'one', 'none'):
            raise ValueError(f"Invalid fetch method: {fetch}")

        start_time = time.time()

        try:
            with self.get_connection() as conn:
                if params:
                    cursor = conn.execute(query, params)
                else:
                    cursor = conn.execute(query)

                if fetch == 'all':
                    result = cursor.fetchall()
                elif fetch == 'one':
                    result = cursor.fetchone()
                else:
                    result = None

                duration = time.time() - start_time
                slow_threshold = self.db_config['query']['slow_query_threshold']
                if duration > slow_threshold:
                    self.logger.warning(f"Slow query detected: {duration:.3f}s > {slow_threshold}s")
                self.logger.query(query, params, duration)

                return result

        except duckdb.Error as e:
            duration = time.time() - start_time
            self.logger.error(f"Query failed after {duration:.3f}s: {e}")
            raise

    @contextmanager
    def transaction(self, operation: str):
        """
        Run statements on one pooled connection inside an explicit transaction.

        The transaction commits when the block exits normally. Any exception
        raised between BEGIN and COMMIT, KeyboardInterrupt included, rolls it
        back before propagating. A connection whose rollback fails is closed
        instead of being returned to the pool.

        Usage:
            with manager.transaction("load customers") as conn:
                conn.execute("INSERT INTO customers VALUES (1, 'Ravi')")
        """
        conn = self.pool.acquire()
        start_time = time.time()

        try:
            conn.execute("BEGIN TRANSACTION")
            yield conn
            conn.execute("COMMIT")
        except BaseException as e:
            if not self._rollback(conn):
                self.pool.discard(conn)
                conn = None
            self.logger.transaction(operation, False, time.time() - start_time, str(e) or type(e).__name__)
            raise
        finally:
            if conn is not None:
                self.pool.release(conn)

        self.logger.transaction(operation, True, time.time() - start_time)

    def _rollback(self, conn: duckdb.DuckDBPyConnection) -> bool:
        try:
            conn.execute("ROLLBACK")
            return True
        except duckdb.Error as e:
            self.logger.error(f"Rollback failed: {e}")
            return False

    def table_exists(self, table_name: str) -> bool:
        """Check whether a table exists in the main schema."""
        return table_name in self.list_existing_tables([table_name])

    def list_existing_tables(self, table_names: Iterable[str]) -> List[str]:
        """Return the subset of ``table_names`` present in the main schema."""
        names = list(table_names)
        if not names:
            return []

        placeholders = ', '.join('?' for _ in names)
        rows = self.execute_query(
            f"""
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = 'main' AND table_name IN ({placeholders})
            ORDER BY table_name
            """,
            tuple(names),
            fetch='all'
        )
        return [row[0] for row in rows]

    def checkpoint(self) -> None:
        """Flush the write-ahead log into the database file."""
        with self.get_connection() as conn:
            conn.execute("CHECKPOINT")
        self.logger.debug("Checkpoint completed")

    def disconnect(self) -> None:
        """
        Close every pooled connection so the database file can be replaced.

        The pool reconnects lazily on the next query.
        """
        self.pool.close_all()
        self.logger.info("Database connections released")

    def close(self) -> None:
        """Close all connections and cleanup resources."""
        self.logger.info("Shutting down connection manager")
        self.pool.close_all()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
