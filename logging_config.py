"""
Centralized logging configuration for Jewel Order Desk.

Flask serves each request on its own thread, and order mutations from
different requests can overlap. Every log line therefore carries the
thread name so interleaved optimistic updates and rollbacks can be told
apart.

Features:
    - Automatic thread name in all log messages
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages
    - Helper functions for getting loggers with consistent naming

Log Format:
    2024-09-15 10:15:30 [INFO    ] [MainThread] jewel_order_desk.app - Starting application
    2024-09-15 10:15:31 [INFO    ] [Thread-3 (process_request_thread)] jewel_order_desk.mutation.3f2a9c1e - Status change rolled back

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)

    # For one store mutation
    mutation_logger = get_mutation_logger(mutation_id)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "jewel_order_desk"


# =============================================================================
# THREAD CONTEXT FILTER
# =============================================================================

class ThreadContextFilter(logging.Filter):
    """
    Logging filter that adds thread context to all log records.

    Adds thread_name and thread_id to each record for use in the format
    string. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()
        return True


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with thread context.

    This sets up:
    1. Console handler (always enabled)
    2. Rotating file handler (optional)
    3. Error file handler (optional) - ERROR/CRITICAL only
    4. Thread context filter on every handler

    Args:
        app_name: Name of the root logger (default: "jewel_order_desk")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs relative to this file)
        enable_file_logging: Whether to write to log files (default: True)

    Returns:
        Configured root logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False  # Prevent duplicate logs to root logger

    # Remove any existing handlers (allows re-configuration)
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    thread_filter = ThreadContextFilter()

    # ---------------------------------------------------------------------
    # Console Handler (always enabled)
    # ---------------------------------------------------------------------
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    # ---------------------------------------------------------------------
    # File Handlers (optional)
    # ---------------------------------------------------------------------
    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"

        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        file_handler = RotatingFileHandler(
            filename=app_log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB per file
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(thread_filter)
        logger.addHandler(file_handler)

        error_log_file = log_dir / f"{app_name}_error.log"
        error_handler = RotatingFileHandler(
            filename=error_log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(thread_filter)
        logger.addHandler(error_handler)

        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


# =============================================================================
# LOGGER FACTORY FUNCTIONS
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger with the application namespace.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger under "jewel_order_desk", e.g.
        "jewel_order_desk.services.order_store"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def get_mutation_logger(mutation_id: str) -> logging.Logger:
    """
    Get a logger for a single order store mutation.

    The logger name includes the first 8 characters of the mutation id so
    the optimistic apply, the remote call and any rollback of one mutation
    can be filtered together.

    Args:
        mutation_id: UUID of the mutation

    Returns:
        Logger named "jewel_order_desk.mutation.<short id>"
    """
    short_id = mutation_id[:8] if len(mutation_id) >= 8 else mutation_id
    return logging.getLogger(f"{APP_LOGGER_NAME}.mutation.{short_id}")
