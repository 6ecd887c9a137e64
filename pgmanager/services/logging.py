"""Logging for the PG Manager API server and billing CLI.

Everything funnels through the root logger: pgmanager's own modules,
uvicorn's request/error loggers and SQLAlchemy. Output goes to stdout
and to the configured LOG_FILE at LOG_LEVEL (default INFO).
"""

import logging
import os
import sys
from pathlib import Path

APP_LOGGER = "pgmanager"

# uvicorn installs its own handlers unless told otherwise; these are re-pointed at root
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level_name: str | None = None) -> int:
    """Resolve a level name, falling back to LOG_LEVEL and then INFO."""
    level_str = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


def _route_to_root(name: str, level: int) -> None:
    server_logger = logging.getLogger(name)
    for handler in server_logger.handlers[:]:
        server_logger.removeHandler(handler)
    server_logger.propagate = True
    server_logger.setLevel(level)


def setup_server_logging(log_file: str = "logs/server.log", level_name: str | None = None) -> None:
    """
    Configure logging for the API server and CLI.

    Args:
        log_file: Path to log file (default: logs/server.log)
        level_name: Level name overriding LOG_LEVEL (optional)

    Behavior:
        - Root logger writes to stdout and log_file; earlier root handlers are replaced
        - pgmanager.* and uvicorn.* loggers propagate to root at the same level
        - SQL statements are logged only at DEBUG
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    log_level = get_log_level(level_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger(APP_LOGGER).setLevel(log_level)
    for name in SERVER_LOGGERS:
        _route_to_root(name, log_level)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if log_level == logging.DEBUG else logging.WARNING
    )
