"""
Database logging configuration.

Database operations log under the ``db`` logger hierarchy. The level follows
the ``logging`` section of the main configuration; when ``db_log_file`` is
set, records go to that file only, otherwise they propagate to the
application's root handlers.
"""

import logging
from pathlib import Path
from typing import Dict, Any


class SafeFormatter(logging.Formatter):
    """Formatter that provides default values for missing fields."""

    def format(self, record):
        if not hasattr(record, 'database_context'):
            record.database_context = 'db'
        if not hasattr(record, 'trigger_name'):
            record.trigger_name = 'no_trigger'

        return super().format(record)


def setup_db_logging(main_config: Dict[str, Any]) -> logging.Logger:
    """
    Setup database logging based on main configuration.

    Args:
        main_config: Main configuration dictionary

    Returns:
        Configured logger for database operations
    """
    logging_config = main_config.get('logging', {})
    log_level = logging_config.get('level', 'INFO').upper()

    logger = logging.getLogger('db')
    logger.setLevel(getattr(logging, log_level))

    # Remove any existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    db_log_file = logging_config.get('db_log_file')
    if db_log_file:
        Path(db_log_file).parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(db_log_file)
        if log_level == 'DEBUG':
            formatter = SafeFormatter(
                '%(asctime)s - [%(database_context)s] - %(name)s - %(levelname)s - '
                '%(funcName)s:%(lineno)d - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            formatter = SafeFormatter(
                '%(asctime)s.%(msecs)03d - [%(database_context)s] - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        # Keep database records out of the main log
        logger.propagate = False
    else:
        logger.propagate = True

    return logger


def log_query(logger: logging.Logger, query: str, params: tuple = None,
              duration: float = None) -> None:
    """
    Log a database query at DEBUG level.

    Args:
        logger: Database logger instance
        query: SQL query string
        params: Query parameters tuple
        duration: Query execution time in seconds
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    message = f"Query: {' '.join(query.split())[:200]}"
    if params:
        message += f" | Params: {params}"
    if duration is not None:
        message += f" | Duration: {duration:.3f}s"
    logger.debug(message)


def log_transaction(logger: logging.Logger, operation: str, success: bool,
                    duration: float = None, error: str = None) -> None:
    """
    Log database transaction outcome.

    Args:
        logger: Database logger instance
        operation: Transaction operation description
        success: Whether transaction succeeded
        duration: Transaction duration in seconds
        error: Error message if transaction failed
    """
    if success:
        message = f"Transaction '{operation}' committed"
        if duration is not None:
            message += f" in {duration:.3f}s"
        logger.info(message)
    else:
        message = f"Transaction '{operation}' rolled back"
        if error:
            message += f": {error}"
        logger.error(message)


def log_connection_event(logger: logging.Logger, event: str, details: str = None) -> None:
    """
    Log connection pool events.

    Args:
        logger: Database logger instance
        event: Event type ('acquired', 'released', 'created', 'closed', 'error')
        details: Additional event details
    """
    if event == 'error':
        logger.error(f"Connection error: {details}")
    elif logger.isEnabledFor(logging.DEBUG):
        message = f"Connection {event}"
        if details:
            message += f": {details}"
        logger.debug(message)


class DatabaseLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds database-specific context to log messages.

    The database file stem is attached to every record as
    ``database_context`` so multi-database logs stay readable.
    """

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        """Add database context to log records."""
        db_path = self.extra.get('db_path')
        db_name = Path(db_path).stem if db_path else 'unknown'

        kwargs.setdefault('extra', {})
        kwargs['extra']['database_context'] = db_name

        return msg, kwargs

    def query(self, query: str, params: tuple = None, duration: float = None) -> None:
        """Log a database query."""
        log_query(self.logger, query, params, duration)

    def transaction(self, operation: str, success: bool, duration: float = None,
                    error: str = None) -> None:
        """Log a database transaction."""
        log_transaction(self.logger, operation, success, duration, error)

    def connection_event(self, event: str, details: str = None) -> None:
        """Log a connection pool event."""
        log_connection_event(self.logger, event, details)
