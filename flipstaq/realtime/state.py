"""Connection lifecycle state machine and reconnect policy.

Transitions are pure functions over an immutable ``ChannelState`` so the
lifecycle can be exercised without a socket:

    IDLE --connect--> CONNECTING --opened--> OPEN
    OPEN | CONNECTING --close requested--> CLOSING --closed--> IDLE
    OPEN | CONNECTING --closed(code != 1000)--> BACKOFF(n) | IDLE (cap reached)
    BACKOFF(n) --connect--> CONNECTING
    BACKOFF(n) --cancel--> IDLE
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from flipstaq.errors import InvalidTransitionError
from flipstaq.realtime.config import (
    DEFAULT_RECONNECT_BASE_DELAY,
    DEFAULT_RECONNECT_MAX_ATTEMPTS,
    NORMAL_CLOSURE,
)

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Lifecycle phases of the channel connection."""
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    BACKOFF = "backoff"

    @property
    def label(self) -> str:
        """Public connection state: disconnected/connecting/connected/closing."""
        return _LABELS[self]


_LABELS = {
    ConnectionState.IDLE: "disconnected",
    ConnectionState.BACKOFF: "disconnected",
    ConnectionState.CONNECTING: "connecting",
    ConnectionState.OPEN: "connected",
    ConnectionState.CLOSING: "closing",
}


@dataclass(frozen=True)
class ChannelState:
    """Phase plus the number of reconnect attempts since the last open."""
    phase: ConnectionState = ConnectionState.IDLE
    attempt: int = 0


@dataclass(frozen=True)
class ReconnectPolicy:
    """Bounded exponential backoff: ``base_delay * 2 ** (attempt - 1)``."""
    base_delay: float = DEFAULT_RECONNECT_BASE_DELAY
    max_attempts: int = DEFAULT_RECONNECT_MAX_ATTEMPTS

    def delay_for(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return self.base_delay * (2 ** (attempt - 1))

    def allows(self, attempt: int) -> bool:
        return 1 <= attempt <= self.max_attempts


# ── Pure transitions ─────────────────────────────────────────────────


def request_connect(state: ChannelState, manual: bool = False) -> ChannelState:
    """Begin a connection attempt.

    A manual request from IDLE starts a fresh retry budget.
    """
    if state.phase not in (ConnectionState.IDLE, ConnectionState.BACKOFF):
        raise InvalidTransitionError(state.phase.value, "connect")
    attempt = 0 if manual and state.phase == ConnectionState.IDLE else state.attempt
    return ChannelState(ConnectionState.CONNECTING, attempt)


def opened(state: ChannelState) -> ChannelState:
    if state.phase != ConnectionState.CONNECTING:
        raise InvalidTransitionError(state.phase.value, "open")
    return ChannelState(ConnectionState.OPEN, 0)


def request_close(state: ChannelState) -> ChannelState:
    if state.phase not in (ConnectionState.OPEN, ConnectionState.CONNECTING):
        raise InvalidTransitionError(state.phase.value, "close")
    return replace(state, phase=ConnectionState.CLOSING)


def closed(
    state: ChannelState, code: int, policy: ReconnectPolicy
) -> Tuple[ChannelState, Optional[float]]:
    """Apply a socket close.

    Returns:
        The next state and, when a reconnect should be scheduled, its delay
        in seconds (None otherwise).
    """
    if state.phase not in (
        ConnectionState.OPEN, ConnectionState.CONNECTING, ConnectionState.CLOSING
    ):
        raise InvalidTransitionError(state.phase.value, "apply close")

    if state.phase == ConnectionState.CLOSING or code == NORMAL_CLOSURE:
        return ChannelState(ConnectionState.IDLE, state.attempt), None

    next_attempt = state.attempt + 1
    if not policy.allows(next_attempt):
        return ChannelState(ConnectionState.IDLE, state.attempt), None
    return ChannelState(ConnectionState.BACKOFF, next_attempt), policy.delay_for(next_attempt)


def cancel_backoff(state: ChannelState) -> ChannelState:
    if state.phase not in (ConnectionState.BACKOFF, ConnectionState.IDLE):
        raise InvalidTransitionError(state.phase.value, "cancel backoff")
    return replace(state, phase=ConnectionState.IDLE)


# ── Holder ───────────────────────────────────────────────────────────


class ConnectionStateMachine:
    """Mutable holder that applies the pure transitions above."""

    def __init__(self, policy: Optional[ReconnectPolicy] = None):
        self.policy = policy or ReconnectPolicy()
        self._state = ChannelState()

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def phase(self) -> ConnectionState:
        return self._state.phase

    @property
    def attempt(self) -> int:
        return self._state.attempt

    @property
    def exhausted(self) -> bool:
        """True once the retry budget has been spent and nothing is pending."""
        return (
            self._state.phase == ConnectionState.IDLE
            and self._state.attempt >= self.policy.max_attempts
        )

    def connect(self, manual: bool = False) -> ChannelState:
        return self._set(request_connect(self._state, manual=manual))

    def opened(self) -> ChannelState:
        return self._set(opened(self._state))

    def close(self) -> ChannelState:
        return self._set(request_close(self._state))

    def closed(self, code: int) -> Optional[float]:
        new_state, delay = closed(self._state, code, self.policy)
        self._set(new_state)
        return delay

    def cancel_backoff(self) -> ChannelState:
        return self._set(cancel_backoff(self._state))

    def _set(self, new_state: ChannelState) -> ChannelState:
        if new_state != self._state:
            logger.debug(
                "Channel %s(%d) -> %s(%d)",
                self._state.phase.value,
                self._state.attempt,
                new_state.phase.value,
                new_state.attempt,
            )
        self._state = new_state
        return new_state
