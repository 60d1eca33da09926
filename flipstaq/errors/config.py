"""Error Configuration.

Defines error codes and their HTTP status mapping for the REST
collaborator and the realtime channel.
"""

from enum import Enum
from typing import Dict


class ErrorCode(Enum):
    """Standardized error codes."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    EMPTY_MESSAGE = "EMPTY_MESSAGE"

    # Authentication errors (401)
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"

    # Authorization errors (403)
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Not found errors (404)
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"

    # Generic request failure
    REQUEST_FAILED = "REQUEST_FAILED"

    # Realtime channel
    NOT_CONNECTED = "NOT_CONNECTED"
    SEND_FAILED = "SEND_FAILED"
    SEND_TIMEOUT = "SEND_TIMEOUT"
    MALFORMED_FRAME = "MALFORMED_FRAME"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # Server errors (500 / 503)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


# Map error codes to HTTP status codes
ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.FILE_TOO_LARGE: 400,
    ErrorCode.UNSUPPORTED_FILE_TYPE: 400,
    ErrorCode.EMPTY_MESSAGE: 400,
    ErrorCode.AUTHENTICATION_REQUIRED: 401,
    ErrorCode.INSUFFICIENT_PERMISSIONS: 403,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.CONVERSATION_NOT_FOUND: 404,
    ErrorCode.REQUEST_FAILED: 500,
    ErrorCode.NOT_CONNECTED: 503,
    ErrorCode.SEND_FAILED: 502,
    ErrorCode.SEND_TIMEOUT: 504,
    ErrorCode.MALFORMED_FRAME: 400,
    ErrorCode.TRANSPORT_ERROR: 503,
    ErrorCode.INVALID_TRANSITION: 500,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}
