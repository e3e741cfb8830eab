"""Logging configuration for the superstore normalizer."""

import logging
import sys
import time
from pathlib import Path

# Default log file name
DEFAULT_LOG_FILE = "superstore_normalizer.log"

# Root logger name shared by all modules
ROOT_LOGGER_NAME = "superstore_normalizer"

# Context keys masked in log output
SENSITIVE_FIELDS = frozenset({"password", "token", "secret", "api_key", "customer_name"})

RECORD_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _mask(context: dict[str, object]) -> dict[str, object]:
    return {
        key: "***" if key.lower() in SENSITIVE_FIELDS else value
        for key, value in context.items()
    }


def _build_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(RECORD_FORMAT, datefmt=TIMESTAMP_FORMAT))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Route package log records to a file and, optionally, stderr.

    Calling this again replaces the previous handlers, so the CLI can first
    log with defaults and then switch to the file and level from settings.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_file: Log file path (DEFAULT_LOG_FILE when None).
        console_output: Whether records are also written to stderr.

    Returns:
        The package logger.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(numeric_level)
    for old in list(package_logger.handlers):
        package_logger.removeHandler(old)
        old.close()

    log_path = Path(log_file or DEFAULT_LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    package_logger.addHandler(
        _build_handler(logging.FileHandler(log_path, encoding="utf-8"), numeric_level)
    )
    if console_output:
        package_logger.addHandler(_build_handler(logging.StreamHandler(sys.stderr), numeric_level))

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, nested under the package logger."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LogContext:
    """Logs the start, duration, and outcome of an operation.

    Exceptions are logged with their traceback and then propagate.
    Context values whose keys are in SENSITIVE_FIELDS are masked.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        """Initialize log context.

        Args:
            logger: Logger to write to.
            operation: Short name of the operation.
            **context: Values describing the operation's input.
        """
        self.logger = logger
        self.operation = operation
        self.context = context
        self._started = 0.0

    def __enter__(self) -> "LogContext":
        details = ", ".join(f"{key}={value}" for key, value in _mask(self.context).items())
        self.logger.debug(f"Begin {self.operation} ({details})")
        self._started = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        elapsed = time.perf_counter() - self._started
        if exc_type is None:
            self.logger.debug(f"{self.operation} finished in {elapsed:.3f}s")
        else:
            self.logger.error(
                f"{self.operation} failed after {elapsed:.3f}s: {exc_type.__name__}: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        return False
