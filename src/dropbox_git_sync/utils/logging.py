"""Logging setup for sync runs."""

import logging
import logging.handlers
import time
from pathlib import Path
from typing import Optional

from ..config.settings import LoggingOptions

PACKAGE_LOGGER = "dropbox_git_sync"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# requests and GitPython log every connection / git subprocess
THIRD_PARTY_LOGGERS = ("urllib3", "git")


def setup_logging(options: LoggingOptions, log_to_console: bool = True) -> logging.Logger:
    """Route package logs to the console and a rotating log file.

    The console follows ``options.level``. The log file, when configured,
    always receives DEBUG records so a failed run can be inspected
    afterwards. Calling this again replaces the previous handlers.

    Args:
        options: Logging section of the sync configuration
        log_to_console: Whether to add a console handler

    Returns:
        The package logger
    """
    level = getattr(logging, options.level)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG if options.file else level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    if options.file:
        log_file = Path(options.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=options.max_file_size,
            backupCount=options.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    third_party_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return package_logger


class TimedOperation:
    """Time one group or branch pass and log how it ended.

    ``duration`` holds the elapsed seconds once the block exits, whether it
    completed or raised. Exceptions are never suppressed.
    """

    def __init__(self, logger: logging.Logger, label: str, level: int = logging.INFO):
        self.logger = logger
        self.label = label
        self.level = level
        self.duration: float = 0.0
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.monotonic()
        self.logger.log(self.level, f"Starting {self.label}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self._started
        if exc_type is None:
            self.logger.log(self.level, f"Completed {self.label} in {self.duration:.2f}s")
        else:
            self.logger.error(f"❌ Failed {self.label} after {self.duration:.2f}s: {exc_val}")
        return False
