import logging
import os
import re
import sys
from typing import Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ChunkPayloadFilter(logging.Filter):
    """Filter that truncates chunk payloads so raw bytes never flood the logs."""

    MAX_PAYLOAD_CHARS = 32

    PATTERNS = [
        re.compile(r'(["\']?data["\']?\s*[:=]\s*["\']?)([A-Za-z0-9+/=]{%d,})' % (MAX_PAYLOAD_CHARS + 1)),
        re.compile(r'(b["\'])([^"\']{%d,})' % (MAX_PAYLOAD_CHARS + 1)),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Truncate payloads in the message and its arguments."""
        if isinstance(record.msg, str):
            record.msg = self._truncate(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._truncate_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._truncate_value(arg) for arg in record.args)

        return True

    def _truncate(self, text: str) -> str:
        for pattern in self.PATTERNS:
            text = pattern.sub(
                lambda m: f"{m.group(1)}{m.group(2)[:self.MAX_PAYLOAD_CHARS]}...<truncated>",
                text
            )
        return text

    def _truncate_value(self, value):
        if isinstance(value, (bytes, bytearray)) and len(value) > self.MAX_PAYLOAD_CHARS:
            return f"<{len(value)} bytes>"
        if isinstance(value, str):
            return self._truncate(value)
        return value


def _build_formatter(correlation_id: Optional[str] = None) -> logging.Formatter:
    if correlation_id:
        return logging.Formatter(
            f'%(asctime)s - %(name)s - %(levelname)s - [{correlation_id}] - %(message)s',
            datefmt=LOG_DATE_FORMAT
        )
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    correlation_id: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component (e.g., 'client', 'api')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        correlation_id: Optional correlation ID to include in log format

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(correlation_id))
    handler.addFilter(ChunkPayloadFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
