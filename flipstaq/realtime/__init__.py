"""Realtime chat channel.

Single persistent socket to the message relay with bounded exponential
reconnect, typed event fan-out, presence/typing tracking and correlated
chat-message sends.

Example:
    from flipstaq.realtime import RealtimeContext
    from flipstaq.settings import get_settings

    async with RealtimeContext.from_settings(get_settings()) as rt:
        rt.on_new_message(print)
        await rt.client.join_conversation("conv-1")
"""

from flipstaq.realtime.client import RealtimeChannelClient
from flipstaq.realtime.config import (
    ABNORMAL_CLOSURE,
    NORMAL_CLOSURE,
    ChannelConfig,
    ClientEvent,
    OutboundEvent,
    ServerEvent,
)
from flipstaq.realtime.context import RealtimeContext
from flipstaq.realtime.events import EventEmitter
from flipstaq.realtime.frames import (
    EventFrame,
    SendAck,
    SendFailure,
    decode_frame,
    encode_frame,
)
from flipstaq.realtime.messaging import send_chat_message
from flipstaq.realtime.models import (
    Attachment,
    ChatMessage,
    MessageStatus,
    ReadStatusChange,
    SendMessageRequest,
    TypingEvent,
    UserStatus,
)
from flipstaq.realtime.presence import OnlineStatusMap, TypingTracker
from flipstaq.realtime.state import (
    ChannelState,
    ConnectionState,
    ConnectionStateMachine,
    ReconnectPolicy,
)
from flipstaq.realtime.transport import (
    WebsocketsTransport,
    build_connection_uri,
)

__all__ = [
    # Config
    "ABNORMAL_CLOSURE",
    "NORMAL_CLOSURE",
    "ChannelConfig",
    "ClientEvent",
    "OutboundEvent",
    "ServerEvent",
    # Client
    "RealtimeChannelClient",
    "RealtimeContext",
    "EventEmitter",
    # Frames
    "EventFrame",
    "SendAck",
    "SendFailure",
    "decode_frame",
    "encode_frame",
    # Models
    "Attachment",
    "ChatMessage",
    "MessageStatus",
    "ReadStatusChange",
    "SendMessageRequest",
    "TypingEvent",
    "UserStatus",
    # State
    "ChannelState",
    "ConnectionState",
    "ConnectionStateMachine",
    "ReconnectPolicy",
    # Presence
    "OnlineStatusMap",
    "TypingTracker",
    # Messaging / transport
    "send_chat_message",
    "WebsocketsTransport",
    "build_connection_uri",
]
