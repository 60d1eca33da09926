"""Presence and typing state fed by channel events.

Both maps are written only by inbound frames (through the subscriptions
installed by ``attach``) and read by UI code. Typing entries carry an
expiry timestamp; expired entries are hidden on read and removed by
``sweep``, which also runs on every insert.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from flipstaq.realtime.client import RealtimeChannelClient
from flipstaq.realtime.config import DEFAULT_TYPING_TTL, ClientEvent
from flipstaq.realtime.models import TypingEvent, UserStatus

logger = logging.getLogger(__name__)


class OnlineStatusMap:
    """user id -> UserStatus, from ``userOnline`` / ``userOffline``."""

    def __init__(self):
        self._users: dict[str, UserStatus] = {}

    def attach(self, client: RealtimeChannelClient) -> None:
        client.on(ClientEvent.USER_ONLINE, self._on_status)
        client.on(ClientEvent.USER_OFFLINE, self._on_status)

    def detach(self, client: RealtimeChannelClient) -> None:
        client.off(ClientEvent.USER_ONLINE, self._on_status)
        client.off(ClientEvent.USER_OFFLINE, self._on_status)

    def _on_status(self, status: UserStatus) -> None:
        self._users[status.user_id] = status

    def get(self, user_id: str) -> Optional[UserStatus]:
        return self._users.get(user_id)

    def is_online(self, user_id: str) -> bool:
        status = self._users.get(user_id)
        return status.is_online if status else False

    def online_users(self) -> list[UserStatus]:
        return [s for s in self._users.values() if s.is_online]

    def snapshot(self) -> dict[str, UserStatus]:
        return dict(self._users)

    def __len__(self) -> int:
        return len(self._users)


@dataclass
class _TypingEntry:
    event: TypingEvent
    expires_at: float


class TypingTracker:
    """(conversation id, user id) -> TypingEvent with soft expiry.

    Args:
        ttl: Seconds an ``isTyping=true`` entry stays visible without a
            matching ``isTyping=false``.
        clock: Monotonic time source, in seconds.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TYPING_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[tuple[str, str], _TypingEntry] = {}

    def attach(self, client: RealtimeChannelClient) -> None:
        client.on(ClientEvent.USER_TYPING, self.record)

    def detach(self, client: RealtimeChannelClient) -> None:
        client.off(ClientEvent.USER_TYPING, self.record)

    def record(self, event: TypingEvent) -> None:
        if event.is_typing:
            self.sweep()
            self._entries[event.key] = _TypingEntry(event, self._clock() + self.ttl)
        else:
            self._entries.pop(event.key, None)

    def is_typing(self, conversation_id: str, user_id: str) -> bool:
        entry = self._entries.get((conversation_id, user_id))
        return entry is not None and entry.expires_at > self._clock()

    def typing_in(self, conversation_id: str) -> list[TypingEvent]:
        """Users currently typing in one conversation."""
        now = self._clock()
        return [
            entry.event
            for (conv_id, _), entry in self._entries.items()
            if conv_id == conversation_id and entry.expires_at > now
        ]

    def snapshot(self) -> dict[tuple[str, str], TypingEvent]:
        now = self._clock()
        return {k: e.event for k, e in self._entries.items() if e.expires_at > now}

    def sweep(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Expired %d typing indicator(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
