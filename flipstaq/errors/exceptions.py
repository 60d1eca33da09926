"""Custom Exception Hierarchy.

Typed exceptions for the REST collaborator and the realtime channel.
REST errors map to HTTP status codes; channel errors are raised only
to the immediate caller of a correlated send or converted to events.
"""

from typing import Any, Dict, List, Optional

from flipstaq.errors.config import ERROR_STATUS_MAP, ErrorCode


class FlipStaqError(Exception):
    """Base exception for all FlipStaq client errors.

    All custom exceptions inherit from this, allowing callers to catch
    the entire hierarchy in one place.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = ERROR_STATUS_MAP.get(error_code, 500)
        self.details = details or []


# ── REST errors ──────────────────────────────────────────────────────


class ValidationError(FlipStaqError):
    """Raised when input fails validation before or during a request."""

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        field: Optional[str] = None,
    ):
        details = [{"field": field, "issue": message}] if field else None
        super().__init__(message, error_code, details)


class AuthenticationError(FlipStaqError):
    """Raised when authentication fails or is missing."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.AUTHENTICATION_REQUIRED,
    ):
        super().__init__(message, error_code)


class AuthorizationError(FlipStaqError):
    """Raised when the user lacks required permissions."""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        error_code: ErrorCode = ErrorCode.INSUFFICIENT_PERMISSIONS,
    ):
        super().__init__(message, error_code)


class NotFoundError(FlipStaqError):
    """Raised when a requested resource does not exist."""

    def __init__(
        self,
        message: str = "Not found",
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        details = []
        if resource_type or resource_id:
            details = [{"resource_type": resource_type, "resource_id": resource_id}]
        super().__init__(message, error_code, details)


class RequestFailedError(FlipStaqError):
    """Raised for any other non-2xx response."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message, ErrorCode.REQUEST_FAILED)
        self.status_code = status_code


class ServiceUnavailableError(FlipStaqError):
    """Raised when the gateway cannot be reached."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        error_code: ErrorCode = ErrorCode.SERVICE_UNAVAILABLE,
    ):
        super().__init__(message, error_code)


# ── Channel errors ───────────────────────────────────────────────────


class ChannelError(FlipStaqError):
    """Base class for realtime channel failures."""


class NotConnectedError(ChannelError):
    """Raised when a frame needs an open socket and there is none."""

    def __init__(self, message: str = "WebSocket not connected"):
        super().__init__(message, ErrorCode.NOT_CONNECTED)


class SendMessageError(ChannelError):
    """Raised when the server reports a failed send."""

    def __init__(self, message: str = "Failed to send message"):
        super().__init__(message, ErrorCode.SEND_FAILED)


class SendTimeoutError(ChannelError):
    """Raised when no reply arrives inside the correlation window."""

    def __init__(self, message: str = "Message send timeout", timeout: Optional[float] = None):
        super().__init__(message, ErrorCode.SEND_TIMEOUT)
        self.timeout = timeout


class FrameDecodeError(ChannelError):
    """Raised when an inbound frame is not a JSON object."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message, ErrorCode.MALFORMED_FRAME)
        self.raw = raw


class TransportError(ChannelError):
    """Raised by the transport when the socket cannot be used."""

    def __init__(self, message: str = "Transport error"):
        super().__init__(message, ErrorCode.TRANSPORT_ERROR)


class TransportClosed(TransportError):
    """Raised by the transport once the socket has closed."""

    def __init__(self, code: int, reason: str = ""):
        super().__init__(f"Connection closed ({code}): {reason}" if reason else f"Connection closed ({code})")
        self.code = code
        self.reason = reason


class InvalidTransitionError(ChannelError):
    """Raised when the connection state machine is driven illegally."""

    def __init__(self, state: str, action: str):
        super().__init__(
            f"Cannot {action} while {state}", ErrorCode.INVALID_TRANSITION
        )
        self.state = state
        self.action = action
