"""
Structured JSON logging for the stockflow ingestion pipeline

Modules call get_logger(__name__). Loggers under the "stockflow" namespace
carry no handlers of their own and propagate to the package logger, so one
setup_logger() call (made by the CLI from settings) controls level and
format for staging, promotion and the stores alike.
"""
import logging
import os
import sys
import time
from typing import Any

from pythonjsonlogger import jsonlogger

DEFAULT_LOGGER_NAME = "stockflow"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s - %(message)s"

# Attributes of every LogRecord; an ``extra`` key with one of these names
# makes logging raise KeyError.
RESERVED_RECORD_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding timestamp, level, logger, module and function fields
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        if log_record.get("level"):
            log_record["level"] = log_record["level"].upper()
        else:
            log_record["level"] = record.levelname

        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName


def build_formatter(format_type: str) -> logging.Formatter:
    """Formatter for "json" (default) or "text" output."""
    if format_type == "text":
        return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return CustomJsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Setup and configure a logger with a single stdout handler

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL), defaults to LOG_LEVEL
        format_type: "json" or "text", defaults to LOG_FORMAT or "json"

    Returns:
        Configured logger instance
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = LOG_LEVELS.get(level_name, logging.INFO)
    format_type = format_type or os.getenv("LOG_FORMAT", "json")

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(build_formatter(format_type))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance

    Names under the package namespace share the package logger's handler,
    which is configured from the environment on first use. Any other name
    gets its own handler.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger instance
    """
    in_package = name == DEFAULT_LOGGER_NAME or name.startswith(DEFAULT_LOGGER_NAME + ".")

    if in_package:
        package_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
        if not package_logger.handlers:
            setup_logger(DEFAULT_LOGGER_NAME)
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger


def safe_extra(fields: dict[str, Any]) -> dict[str, Any]:
    """Suffix keys that would collide with LogRecord attributes (``filename`` -> ``filename_``)."""
    return {
        (f"{key}_" if key in RESERVED_RECORD_KEYS else key): value
        for key, value in fields.items()
    }


class log_operation:
    """
    Context manager logging start, completion or failure of an operation

    ``elapsed`` is readable inside the block, so callers can feed the same
    duration to metrics.

    Usage:
        with log_operation("Staging upload", logger=logger, upload_filename="products.csv") as op:
            ...
            metrics.observe_histogram(hist, op.elapsed)
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = safe_extra(extra_fields)
        self.start_time: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(
            f"Starting: {self.operation_name}",
            extra={"operation": self.operation_name, **self.extra_fields}
        )
        return self

    @property
    def elapsed(self) -> float:
        """Seconds since the operation started"""
        if self.start_time is None:
            return 0.0
        return time.perf_counter() - self.start_time

    def __exit__(self, exc_type, exc_val, exc_tb):
        fields = {
            "operation": self.operation_name,
            "duration_seconds": round(self.elapsed, 3),
            **self.extra_fields,
        }

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation_name}", extra={**fields, "status": "success"})
        else:
            self.logger.error(
                f"Failed: {self.operation_name}",
                extra={
                    **fields,
                    "status": "error",
                    "error_type": exc_type.__name__,
                    "error_message": str(exc_val),
                },
                exc_info=True
            )
        return False
