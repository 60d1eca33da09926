"""Root logger setup for the chat client.

JSON lines for log shippers, colored single lines for a terminal. Both
formats carry the connection-scoped context bound by ChannelLogContext.
"""

import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from flipstaq.logging_config.config import (
    DEFAULT_LOGGING_CONFIG,
    EXTRA_FIELDS,
    LogFormat,
    LoggingConfig,
    LogLevel,
)
from flipstaq.logging_config.context import get_context_dict

QUIET_LOGGERS = ("asyncio", "websockets", "httpx", "httpcore")


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter.

    Produces one JSON object per log line with consistent fields:
    timestamp, level, logger, message, plus any bound context.
    """

    def __init__(self, service_name: str = "flipstaq-realtime", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        if self.include_caller:
            log_entry["module"] = record.module
            log_entry["function"] = record.funcName
            log_entry["line"] = record.lineno

        ctx = get_context_dict()
        if ctx:
            log_entry.update(ctx)

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored console formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]

        ctx = get_context_dict()
        ctx_str = ""
        if ctx:
            parts = [f"{k}={v}" for k, v in ctx.items()]
            ctx_str = f" [{', '.join(parts)}]"

        line = (
            f"{color}{timestamp} {record.levelname:8s}{self.RESET} "
            f"{record.name}: {record.getMessage()}{ctx_str}"
        )

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)

        return line


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Install a single stderr handler on the root logger.

    FLIPSTAQ_LOG_LEVEL and FLIPSTAQ_LOG_FORMAT, when set, override the
    level and format of ``config``.
    """
    config = _apply_env_overrides(config or DEFAULT_LOGGING_CONFIG)

    if config.format == LogFormat.JSON:
        formatter = StructuredFormatter(
            service_name=config.service_name,
            include_caller=config.include_caller,
        )
    else:
        formatter = ConsoleFormatter()

    # stderr keeps stdout free for the chat transcript
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.value))

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _apply_env_overrides(config: LoggingConfig) -> LoggingConfig:
    level = os.environ.get("FLIPSTAQ_LOG_LEVEL", "").upper()
    if level in LogLevel.__members__:
        config = replace(config, level=LogLevel(level))
    fmt = os.environ.get("FLIPSTAQ_LOG_FORMAT", "").lower()
    if fmt in {f.value for f in LogFormat}:
        config = replace(config, format=LogFormat(fmt))
    return config

