"""
Structured Logging Configuration Module

Provides JSON-formatted structured logging for ledger replays. Log output
always goes to stderr (or a file) so it never mixes with the CSV report.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module if hasattr(record, 'module') else record.name,
            "message": record.getMessage(),
            "client_id": getattr(record, 'client_id', None),
            "tx_id": getattr(record, 'tx_id', None),
            "action": getattr(record, 'action', None),
            "reason": getattr(record, 'reason', None),
            "extra": getattr(record, 'extra', None)
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        # Add exception info if present
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "WARNING", logger_name: str = "payment_ledger",
                  log_format: str = "json", stream: Optional[TextIO] = None,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Name of the logger
        log_format: "json" for structured output, "text" for plain lines
        stream: Stream for the console handler, stderr by default
        log_file: If set, log to this file instead of the stream

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    if log_file:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)

    if log_format.lower() == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False

    return logger


def get_logger(name: str = "payment_ledger") -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               client_id: Optional[int] = None, tx_id: Optional[int] = None,
               action: Optional[str] = None, reason: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log an action with structured data.

    Args:
        logger: Logger instance
        level: Log level (info, warning, error, etc.)
        message: Log message
        client_id: Client the event targets
        tx_id: Transaction the event references
        action: Event verb being applied
        reason: Why the event was dropped, if it was
        extra: Additional structured data
    """
    levelno = getattr(logging, level.upper())
    if not logger.isEnabledFor(levelno):
        return

    # Create a LogRecord with extra fields
    record = logger.makeRecord(
        logger.name, levelno,
        __name__, 0, message, (), None
    )

    # Add custom fields
    if client_id is not None:
        record.client_id = client_id
    if tx_id is not None:
        record.tx_id = tx_id
    if action:
        record.action = action
    if reason:
        record.reason = reason
    if extra:
        record.extra = extra

    logger.handle(record)
