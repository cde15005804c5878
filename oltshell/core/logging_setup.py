"""
Logging configuration for oltshell.

Library modules only create module loggers; applications call
configure_logging() once at startup.
"""

import logging
from pathlib import Path
from typing import Optional, Union


DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging for the oltshell package.

    Args:
        level: Logging level (default: INFO). Names like "DEBUG" are accepted.
        format_string: Optional custom format string.
        handler: Optional custom handler (default: StreamHandler).
        log_file: Also write to this file.

    Example:
        from oltshell.core.logging_setup import configure_logging
        configure_logging(level=logging.DEBUG)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = DEFAULT_FORMAT

    if handler is None:
        handler = logging.StreamHandler()

    formatter = logging.Formatter(format_string)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("oltshell")
    package_logger.addHandler(handler)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.setLevel(level)
    return package_logger
