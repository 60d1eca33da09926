"""Wire codec for realtime frames.

One JSON object per transport message. Inbound frames come in three
shapes that share one object, so they are decoded once at the boundary
into an explicit variant:

    {"success": true, "message": {...}}     -> SendAck
    {"success": false, "error": "..."}      -> SendFailure
    {"error": "..."}                        -> SendFailure
    {"event": "...", "data"|"payload": {}}  -> EventFrame

Outbound frames are always ``{"event": <tag>, "payload": <object>}``.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from flipstaq.errors import FrameDecodeError

UNKNOWN_ERROR = "Unknown error"


@dataclass
class SendAck:
    """Positive reply to a prior request frame."""
    message: Any = None
    raw: dict = field(default_factory=dict)

    @property
    def carries_message(self) -> bool:
        """True when the ack holds a chat message (not a join/read ack)."""
        return isinstance(self.message, dict)


@dataclass
class SendFailure:
    """Negative reply to a prior request frame."""
    error: str = UNKNOWN_ERROR


@dataclass
class EventFrame:
    """Server-pushed event."""
    event: str
    data: dict = field(default_factory=dict)


Frame = Union[SendAck, SendFailure, EventFrame]


def decode_frame(raw: Union[str, bytes]) -> Frame:
    """Decode one inbound transport message.

    Raises:
        FrameDecodeError: when the message is not a JSON object or an
            event frame has no usable tag or payload.
    """
    try:
        obj = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError, RecursionError) as e:
        raise FrameDecodeError(f"Invalid JSON frame: {e}", raw=_preview(raw)) from e

    if not isinstance(obj, dict):
        raise FrameDecodeError("Frame is not a JSON object", raw=_preview(raw))

    if obj.get("success") is not None:
        if obj["success"]:
            return SendAck(message=obj.get("message"), raw=obj)
        return SendFailure(error=_error_text(obj.get("error")))

    if obj.get("error"):
        return SendFailure(error=_error_text(obj["error"]))

    event = obj.get("event")
    if not isinstance(event, str) or not event:
        raise FrameDecodeError("Frame has no event tag", raw=_preview(raw))

    data = obj.get("data") or obj.get("payload") or {}
    if not isinstance(data, dict):
        raise FrameDecodeError(f"Payload of '{event}' is not an object", raw=_preview(raw))

    return EventFrame(event=event, data=data)


def encode_frame(event: Union[str, Enum], payload: Optional[dict] = None) -> str:
    """Serialize an outbound frame."""
    tag = event.value if isinstance(event, Enum) else event
    return json.dumps({"event": tag, "payload": payload or {}}, separators=(",", ":"))


def _error_text(value: Any) -> str:
    if not value:
        return UNKNOWN_ERROR
    return value if isinstance(value, str) else json.dumps(value, default=str)


def _preview(raw: Union[str, bytes], limit: int = 100) -> str:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return str(raw)[:limit]
