"""
Loguru setup for the smriti CLI and for applications embedding the search core.

The library only ever calls ``logger``; nothing is configured on import.
Hosts call setup_logging() directly, or setup_logging_from_config() with a
loaded Config to honour the ``logging`` section.
"""

import os
import sys

from loguru import logger

from smriti.core.exceptions import ConfigurationError

CONSOLE_FORMAT = "<level>[{level.name}]</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Send log records to stderr and, optionally, to a rotating file.

    Args:
        level: Minimum level name, case-insensitive.
        log_file: Path to the log file. Missing parent directories are created.
        rotation: Size or age at which the file is rotated.
        retention: How long rotated files are kept.

    Raises:
        ConfigurationError: If the level name is unknown to loguru.
    """
    level = str(level).upper()
    try:
        logger.level(level)
    except ValueError as e:
        raise ConfigurationError(f"Unknown log level: {level!r}") from e

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(log_file, level=level, format=FILE_FORMAT, rotation=rotation, retention=retention)
        logger.debug(f"Logging to {log_file}")


def resolve_log_file(config) -> str | None:
    """Return the configured log file path, or None when file logging is off.

    A relative ``logging.file`` is placed under ``paths.log_dir``.
    """
    log_file = config.get("logging.file") or None
    if not log_file:
        return None
    log_file = os.path.expanduser(log_file)
    if os.path.isabs(log_file):
        return log_file
    return os.path.join(os.path.expanduser(config.get("paths.log_dir")), log_file)


def setup_logging_from_config(config, level: str | None = None) -> None:
    """Configure logging from a Config's ``logging`` section; ``level`` overrides it."""
    setup_logging(
        level=level or config.get("logging.level", "WARNING"),
        log_file=resolve_log_file(config),
        rotation=config.get("logging.rotation", "10 MB"),
        retention=config.get("logging.retention", "7 days"),
    )
