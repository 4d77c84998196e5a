"""
Structured logging configuration.

Provides JSON-formatted logs (python-json-logger) or plain text, with a
trace_id field for correlating the log lines of one CLI invocation.

Environment Variables:
    AUDITCHAIN_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    AUDITCHAIN_LOG_FORMAT: Log format (json, text) - default: text

Usage:
    from auditchain.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, trace_id="verify-1")
    logger.info("Verifying chain")
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger


def setup_logging(
    level: Optional[str] = None, fmt: Optional[str] = None, trace_id: Optional[str] = None
) -> None:
    """
    Configure the root logger.

    Args:
        level: Overrides AUDITCHAIN_LOG_LEVEL
        fmt: Overrides AUDITCHAIN_LOG_FORMAT ("json" or "text")
        trace_id: Stamped on every record that does not carry its own

    Logs go to stderr so command output on stdout stays clean.
    """
    log_level = (level or os.getenv("AUDITCHAIN_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("AUDITCHAIN_LOG_FORMAT", "text")).lower()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    resolved = level_map.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.addFilter(TraceIDFilter(trace_id))

    if log_format == "json":
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(trace_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [trace_id=%(trace_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("pika").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str, trace_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger with a trace_id for correlation.

    Args:
        name: Logger name (typically __name__)
        trace_id: Correlation id (e.g., command name plus pid)
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"trace_id": trace_id or "N/A"})


class TraceIDFilter(logging.Filter):
    """
    Adds trace_id to records that were not logged through get_logger().
    """

    def __init__(self, default: Optional[str] = None):
        super().__init__()
        self.default = default or "N/A"

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = self.default  # type: ignore
        return True
