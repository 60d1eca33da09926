"""Application-root realtime context.

One ``RealtimeContext`` is built at startup and handed to whatever needs
the channel, instead of a module-level singleton. It owns the channel
client together with the presence and typing maps fed by it.
"""

import logging
from typing import Callable, Optional

from flipstaq.auth import TokenStore, token_store_from_settings
from flipstaq.realtime.client import RealtimeChannelClient, SleepFn
from flipstaq.realtime.config import ChannelConfig, ClientEvent
from flipstaq.realtime.models import ChatMessage, ReadStatusChange, TypingEvent, UserStatus
from flipstaq.realtime.presence import OnlineStatusMap, TypingTracker
from flipstaq.realtime.transport import Transport
from flipstaq.settings import Settings

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class RealtimeContext:
    """Channel client plus the state derived from its events.

    Example:
        async with RealtimeContext.from_settings(get_settings()) as rt:
            rt.on_new_message(lambda msg: print(msg.content))
            await rt.client.join_conversation("conv-1")
    """

    def __init__(
        self,
        client: RealtimeChannelClient,
        presence: Optional[OnlineStatusMap] = None,
        typing: Optional[TypingTracker] = None,
    ):
        self.client = client
        self.presence = presence or OnlineStatusMap()
        self.typing = typing or TypingTracker(ttl=client.config.typing_ttl)
        self.presence.attach(client)
        self.typing.attach(client)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        token_store: Optional[TokenStore] = None,
        transport: Optional[Transport] = None,
        backoff_sleep: Optional[SleepFn] = None,
    ) -> "RealtimeContext":
        kwargs = {"backoff_sleep": backoff_sleep} if backoff_sleep else {}
        client = RealtimeChannelClient(
            token_store or token_store_from_settings(settings),
            config=ChannelConfig.from_settings(settings),
            transport=transport,
            **kwargs,
        )
        return cls(client)

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def start(self) -> None:
        await self.client.connect()

    async def refresh(self) -> bool:
        """Connect when a token is available and the channel is down.

        Call after a login or whenever the stored token changes. Returns
        True when a connection attempt was made.
        """
        if self.client.connection_state != "disconnected" or not self.client.has_token:
            return False
        await self.client.connect()
        return True

    async def close(self) -> None:
        await self.client.disconnect()
        self.presence.detach(self.client)
        self.typing.detach(self.client)

    async def __aenter__(self) -> "RealtimeContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self.client.is_connected

    @property
    def connection_state(self) -> str:
        return self.client.connection_state

    # ── Queries ───────────────────────────────────────────────────────

    def is_user_online(self, user_id: str) -> bool:
        return self.presence.is_online(user_id)

    def typing_in(self, conversation_id: str) -> list[TypingEvent]:
        return self.typing.typing_in(conversation_id)

    # ── Subscriptions returning an unsubscribe callable ───────────────

    def on_new_message(self, handler: Callable[[ChatMessage], None]) -> Unsubscribe:
        self.client.on(ClientEvent.NEW_MESSAGE, handler)
        return lambda: self.client.off(ClientEvent.NEW_MESSAGE, handler)

    def on_message_read_status_changed(
        self, handler: Callable[[ReadStatusChange], None]
    ) -> Unsubscribe:
        self.client.on(ClientEvent.MESSAGE_READ_STATUS_CHANGED, handler)
        return lambda: self.client.off(ClientEvent.MESSAGE_READ_STATUS_CHANGED, handler)

    def on_user_status_changed(self, handler: Callable[[UserStatus], None]) -> Unsubscribe:
        """``handler`` sees both online and offline transitions."""
        self.client.on(ClientEvent.USER_ONLINE, handler)
        self.client.on(ClientEvent.USER_OFFLINE, handler)

        def unsubscribe() -> None:
            self.client.off(ClientEvent.USER_ONLINE, handler)
            self.client.off(ClientEvent.USER_OFFLINE, handler)

        return unsubscribe

    def on_typing(self, handler: Callable[[TypingEvent], None]) -> Unsubscribe:
        self.client.on(ClientEvent.USER_TYPING, handler)
        return lambda: self.client.off(ClientEvent.USER_TYPING, handler)
