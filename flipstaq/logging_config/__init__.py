"""Structured Logging.

Provides structured JSON logging and connection-scoped log context
for the FlipStaq realtime client.
"""

from flipstaq.logging_config.config import LogFormat, LoggingConfig, LogLevel
from flipstaq.logging_config.context import (
    ChannelLogContext,
    generate_connection_id,
    get_context_dict,
)
from flipstaq.logging_config.setup import (
    ConsoleFormatter,
    StructuredFormatter,
    configure_logging,
)

__all__ = [
    "ChannelLogContext",
    "ConsoleFormatter",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "StructuredFormatter",
    "configure_logging",
    "generate_connection_id",
    "get_context_dict",
]
