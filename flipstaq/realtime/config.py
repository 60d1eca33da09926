"""Configuration for the realtime channel."""

from dataclasses import dataclass
from enum import Enum

from flipstaq.settings import Settings


class ClientEvent(str, Enum):
    """Local events emitted by the channel client to its subscribers."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    NEW_MESSAGE = "newMessage"
    MESSAGE_READ_STATUS_CHANGED = "messageReadStatusChanged"
    USER_ONLINE = "userOnline"
    USER_OFFLINE = "userOffline"
    USER_TYPING = "userTyping"
    SEND_MESSAGE_RESPONSE = "sendMessageResponse"
    SEND_MESSAGE_ERROR = "sendMessageError"


class ServerEvent(str, Enum):
    """Event tags the relay pushes to clients."""
    NEW_MESSAGE = "newMessage"
    MESSAGE_READ_STATUS_CHANGED = "messageReadStatusChanged"
    USER_ONLINE = "userOnline"
    USER_OFFLINE = "userOffline"
    USER_TYPING = "userTyping"
    PING = "ping"
    PONG = "pong"


class OutboundEvent(str, Enum):
    """Event tags the client writes to the relay."""
    SEND_MESSAGE = "sendMessage"
    MARK_AS_READ = "markAsRead"
    JOIN_CONVERSATION = "joinConversation"
    LEAVE_CONVERSATION = "leaveConversation"
    TYPING = "typing"
    PING = "ping"
    PONG = "pong"


# ── Close codes ──────────────────────────────────────────────────────

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006
MANUAL_DISCONNECT_REASON = "Manual disconnect"

# ── Default Constants ────────────────────────────────────────────────

DEFAULT_HEARTBEAT_INTERVAL = 30.0  # seconds
DEFAULT_RECONNECT_BASE_DELAY = 1.0  # seconds
DEFAULT_RECONNECT_MAX_ATTEMPTS = 5
DEFAULT_SEND_TIMEOUT = 10.0  # seconds
DEFAULT_TYPING_TTL = 10.0  # seconds


@dataclass
class ChannelConfig:
    """Tunables for the realtime channel client."""

    url: str = "ws://localhost:8001/ws"
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    reconnect_base_delay: float = DEFAULT_RECONNECT_BASE_DELAY
    reconnect_max_attempts: int = DEFAULT_RECONNECT_MAX_ATTEMPTS
    send_timeout: float = DEFAULT_SEND_TIMEOUT
    typing_ttl: float = DEFAULT_TYPING_TTL

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChannelConfig":
        return cls(
            url=settings.ws_url,
            heartbeat_interval=settings.heartbeat_interval,
            reconnect_base_delay=settings.reconnect_base_delay,
            reconnect_max_attempts=settings.reconnect_max_attempts,
            send_timeout=settings.send_timeout,
            typing_ttl=settings.typing_ttl,
        )
