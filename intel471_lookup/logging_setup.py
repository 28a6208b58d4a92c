"""Logging configuration for Intel 471 lookups."""

import json
import logging
import sys

# Below DEBUG; used for per-request and per-response dumps
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class StructuredFormatter(logging.Formatter):
    """Appends ``extra={"fields": {...}}`` payloads to the message as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with its structured fields, if any."""
        message = super().format(record)
        fields = getattr(record, "fields", None)
        if fields:
            return f"{message} {json.dumps(fields, default=str, sort_keys=True)}"
        return message


def setup_logging(debug: bool = False, trace: bool = False) -> logging.Logger:
    """
    Set up logging for lookups.

    Args:
        debug: Enable debug-level logging
        trace: Enable trace-level logging (request and response dumps)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("intel471_lookup")
    if trace:
        logger.setLevel(TRACE)
    elif debug:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            StructuredFormatter(fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
        )
        logger.addHandler(handler)

    return logger
