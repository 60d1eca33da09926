"""Error codes and exception hierarchy for the FlipStaq client."""

from flipstaq.errors.config import ERROR_STATUS_MAP, ErrorCode
from flipstaq.errors.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ChannelError,
    FlipStaqError,
    FrameDecodeError,
    InvalidTransitionError,
    NotConnectedError,
    NotFoundError,
    RequestFailedError,
    SendMessageError,
    SendTimeoutError,
    ServiceUnavailableError,
    TransportClosed,
    TransportError,
    ValidationError,
)

__all__ = [
    # Config
    "ERROR_STATUS_MAP",
    "ErrorCode",
    # REST
    "AuthenticationError",
    "AuthorizationError",
    "FlipStaqError",
    "NotFoundError",
    "RequestFailedError",
    "ServiceUnavailableError",
    "ValidationError",
    # Channel
    "ChannelError",
    "FrameDecodeError",
    "InvalidTransitionError",
    "NotConnectedError",
    "SendMessageError",
    "SendTimeoutError",
    "TransportClosed",
    "TransportError",
]
