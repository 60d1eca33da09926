"""Logging Configuration.

Settings for structured logging, log levels, and output formats.
"""

from dataclasses import dataclass
from enum import Enum


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


@dataclass
class LoggingConfig:
    """Structured logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    include_caller: bool = True
    service_name: str = "flipstaq-realtime"


DEFAULT_LOGGING_CONFIG = LoggingConfig()

# Record attributes copied into structured output when present
EXTRA_FIELDS = (
    "event",
    "code",
    "reason",
    "attempt",
    "delay_s",
    "conversation_id",
    "status_code",
    "duration_ms",
)
