"""
Logging utilities for schemaguard.

Provides trigger-aware logging using Python's contextvars: every record
emitted while a migration trigger is being handled carries the trigger name
(app_startup, database_restore, ...) for easy filtering.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Dict, Any

# Thread-safe context variable for storing the active trigger
_trigger_context: ContextVar[Optional[str]] = ContextVar('trigger_name', default=None)

LOG_FORMAT = '%(asctime)s - [%(trigger_name)s] - %(name)s - %(levelname)s - %(message)s'


class TriggerFilter(logging.Filter):
    """
    Logging filter that adds the active trigger name to log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        trigger_name = _trigger_context.get()
        record.trigger_name = trigger_name if trigger_name else "no_trigger"
        return True


def set_trigger_context(trigger_name: str) -> None:
    """
    Set the current trigger name in the logging context.

    Args:
        trigger_name: Trigger name to attach to subsequent log messages
    """
    _trigger_context.set(trigger_name)


def clear_trigger_context() -> None:
    """Clear the current trigger name from the logging context."""
    _trigger_context.set(None)


def get_trigger_context() -> Optional[str]:
    return _trigger_context.get()


@contextmanager
def trigger_context(trigger_name: str):
    """Attach ``trigger_name`` to log records emitted inside the block."""
    token = _trigger_context.set(trigger_name)
    try:
        yield
    finally:
        _trigger_context.reset(token)


def setup_trigger_logging(root_logger: Optional[logging.Logger] = None) -> None:
    """
    Add TriggerFilter to all handlers of the specified logger.

    Args:
        root_logger: Logger to configure. If None, uses the root logger.
    """
    if root_logger is None:
        root_logger = logging.getLogger()

    trigger_filter = TriggerFilter()

    for handler in root_logger.handlers:
        handler.addFilter(trigger_filter)

    # Also cover child loggers that have their own handlers (e.g. 'db')
    for name in list(logging.root.manager.loggerDict):
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            handler.addFilter(trigger_filter)


def setup_main_logging(config: Dict[str, Any]) -> logging.Logger:
    """
    Setup main application logging.

    Writes to ``logging.log_file`` through a rotating handler when set,
    otherwise to stderr. Database logging is configured separately by
    ``setup_db_logging``.
    """
    log_config = config['logging']

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_config['level']))

    # Remove any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    log_file = log_config.get('log_file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_file,
            maxBytes=log_config.get('max_log_size_mb', 10) * 1024 * 1024,
            backupCount=log_config.get('backup_count', 3)
        )
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)

    setup_trigger_logging()

    logger = logging.getLogger(__name__)
    logger.info("Main application logging configuration initialized")

    return root_logger
