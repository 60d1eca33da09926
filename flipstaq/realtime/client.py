"""Realtime channel client.

Owns the single socket to the message relay: authenticates with the
bearer token in the connection URI, keeps the link alive with
application-level pings, reconnects with bounded exponential backoff
after abnormal closes, decodes inbound frames once and fans them out to
named subscribers, and exposes fire-and-forget send operations.

Example:
    client = RealtimeChannelClient(FileTokenStore("~/.flipstaq/auth.json"))
    client.on(ClientEvent.NEW_MESSAGE, lambda msg: print(msg.content))
    await client.connect()
    await client.join_conversation("conv-1")
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from flipstaq.auth import TokenStore
from flipstaq.errors import FrameDecodeError, TransportClosed, TransportError
from flipstaq.logging_config import ChannelLogContext
from flipstaq.realtime.config import (
    ABNORMAL_CLOSURE,
    MANUAL_DISCONNECT_REASON,
    NORMAL_CLOSURE,
    ChannelConfig,
    ClientEvent,
    OutboundEvent,
    ServerEvent,
)
from flipstaq.realtime.events import EventEmitter, EventHandler, EventName
from flipstaq.realtime.frames import (
    Frame,
    SendAck,
    SendFailure,
    decode_frame,
    encode_frame,
)
from flipstaq.realtime.models import (
    ChatMessage,
    ReadStatusChange,
    SendMessageRequest,
    TypingEvent,
    UserStatus,
)
from flipstaq.realtime.state import (
    ConnectionState,
    ConnectionStateMachine,
    ReconnectPolicy,
)
from flipstaq.realtime.transport import (
    Connection,
    Transport,
    WebsocketsTransport,
    build_connection_uri,
    redact_uri,
)

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]

# Server event tag -> payload decoder; the decoded object is what subscribers get.
_PAYLOAD_DECODERS: dict[str, Callable[[dict], Any]] = {
    ServerEvent.NEW_MESSAGE.value: ChatMessage.from_wire,
    ServerEvent.MESSAGE_READ_STATUS_CHANGED.value: ReadStatusChange.from_wire,
    ServerEvent.USER_ONLINE.value: functools.partial(UserStatus.from_wire, is_online=True),
    ServerEvent.USER_OFFLINE.value: functools.partial(UserStatus.from_wire, is_online=False),
    ServerEvent.USER_TYPING.value: TypingEvent.from_wire,
}


class RealtimeChannelClient:
    """Connection lifecycle plus event dispatch for the chat relay.

    Args:
        token_store: Source of the bearer token.
        config: Channel tunables (URL, heartbeat, backoff, timeouts).
        transport: Socket factory; defaults to the websockets transport.
        backoff_sleep: Awaitable used to wait out reconnect delays.
    """

    def __init__(
        self,
        token_store: TokenStore,
        config: Optional[ChannelConfig] = None,
        transport: Optional[Transport] = None,
        backoff_sleep: SleepFn = asyncio.sleep,
    ):
        self._config = config or ChannelConfig()
        self._token_store = token_store
        self._transport = transport or WebsocketsTransport()
        self._sleep = backoff_sleep
        self._machine = ConnectionStateMachine(
            ReconnectPolicy(
                base_delay=self._config.reconnect_base_delay,
                max_attempts=self._config.reconnect_max_attempts,
            )
        )
        self._events = EventEmitter()
        self._conn: Optional[Connection] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None

    # ── Introspection ─────────────────────────────────────────────────

    @property
    def config(self) -> ChannelConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._machine.phase

    @property
    def reconnect_attempt(self) -> int:
        return self._machine.attempt

    @property
    def is_connected(self) -> bool:
        return (
            self._machine.phase == ConnectionState.OPEN
            and self._conn is not None
            and self._conn.is_open
        )

    @property
    def connection_state(self) -> str:
        """One of disconnected, connecting, connected, closing."""
        return self._machine.phase.label

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def has_token(self) -> bool:
        return bool(self._token_store.get_token())

    # ── Subscriptions ─────────────────────────────────────────────────

    def on(self, event: EventName, handler: EventHandler) -> None:
        self._events.on(event, handler)

    def off(self, event: EventName, handler: EventHandler) -> None:
        self._events.off(event, handler)

    def once(self, event: EventName, handler: EventHandler) -> EventHandler:
        return self._events.once(event, handler)

    def handler_count(self, event: EventName) -> int:
        return self._events.handler_count(event)

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the socket unless it is already open or opening.

        Never raises: a missing token is logged, and open failures are
        reported through the ``error``/``disconnected`` events.
        """
        await self._connect(manual=True)

    async def disconnect(self) -> None:
        """Close with code 1000; no reconnect follows."""
        self._cancel_reconnect()
        self._stop_heartbeat()

        phase = self._machine.phase
        if phase == ConnectionState.BACKOFF:
            self._machine.cancel_backoff()
            logger.info("Pending reconnect cancelled")
            self._events.emit(
                ClientEvent.DISCONNECTED,
                {"code": NORMAL_CLOSURE, "reason": MANUAL_DISCONNECT_REASON},
            )
            return
        if phase == ConnectionState.CONNECTING:
            # _connect() finishes the close once the open resolves
            self._machine.close()
            return
        if phase != ConnectionState.OPEN:
            return

        conn = self._conn
        self._conn = None
        self._machine.close()
        self._cancel_reader()
        if conn is not None:
            try:
                await conn.close(NORMAL_CLOSURE, MANUAL_DISCONNECT_REASON)
            except TransportError as e:
                logger.warning("Error while closing WebSocket: %s", e)
        self._finish_close(NORMAL_CLOSURE, MANUAL_DISCONNECT_REASON)

    async def _connect(self, manual: bool) -> None:
        phase = self._machine.phase
        if phase in (ConnectionState.CONNECTING, ConnectionState.OPEN, ConnectionState.CLOSING):
            logger.debug("connect() ignored while %s", phase.value)
            return

        token = self._token_store.get_token()
        if not token:
            logger.warning("No auth token available for WebSocket connection")
            if phase == ConnectionState.BACKOFF:
                self._cancel_reconnect()
                self._machine.cancel_backoff()
            return

        if manual:
            self._cancel_reconnect()
        self._machine.connect(manual=manual)

        uri = build_connection_uri(self._config.url, token)
        logger.info("Connecting to WebSocket %s", redact_uri(uri))
        try:
            conn = await self._transport.connect(uri)
        except TransportError as e:
            logger.error("WebSocket connect failed: %s", e)
            self._events.emit(ClientEvent.ERROR, e)
            self._finish_close(ABNORMAL_CLOSURE, e.message)
            return

        if self._machine.phase == ConnectionState.CLOSING:
            # disconnect() arrived while the open was in flight
            try:
                await conn.close(NORMAL_CLOSURE, MANUAL_DISCONNECT_REASON)
            except TransportError as e:
                logger.warning("Error while closing WebSocket: %s", e)
            self._finish_close(NORMAL_CLOSURE, MANUAL_DISCONNECT_REASON)
            return

        self._conn = conn
        self._machine.opened()
        with ChannelLogContext():
            self._reader_task = asyncio.create_task(self._read_loop(conn))
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(conn))
            logger.info("WebSocket connected")
        self._events.emit(ClientEvent.CONNECTED, {})

    def _finish_close(self, code: int, reason: str) -> None:
        self._conn = None
        self._stop_heartbeat()
        delay = self._machine.closed(code)
        logger.info(
            "WebSocket disconnected: %s %s", code, reason,
            extra={"code": code, "reason": reason},
        )
        if delay is not None:
            self._schedule_reconnect(delay)
        elif code != NORMAL_CLOSURE and self._machine.exhausted:
            logger.error("Max reconnection attempts reached")
        self._events.emit(ClientEvent.DISCONNECTED, {"code": code, "reason": reason})

    # ── Reconnect ─────────────────────────────────────────────────────

    def _schedule_reconnect(self, delay: float) -> None:
        attempt = self._machine.attempt
        logger.info(
            "Attempting to reconnect in %.1fs (attempt %d/%d)",
            delay, attempt, self._machine.policy.max_attempts,
            extra={"attempt": attempt, "delay_s": delay},
        )
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await self._sleep(delay)
        self._reconnect_task = None
        await self._connect(manual=False)

    def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # ── Reader & heartbeat ────────────────────────────────────────────

    async def _read_loop(self, conn: Connection) -> None:
        while True:
            try:
                raw = await conn.recv()
            except TransportClosed as e:
                code, reason = e.code, e.reason
                break
            except TransportError as e:
                logger.error("WebSocket error: %s", e)
                self._events.emit(ClientEvent.ERROR, e)
                code, reason = ABNORMAL_CLOSURE, e.message
                break
            await self._handle_raw(raw)

        if conn is self._conn:
            self._reader_task = None
            self._finish_close(code, reason)

    async def _heartbeat_loop(self, conn: Connection) -> None:
        while conn is self._conn:
            await asyncio.sleep(self._config.heartbeat_interval)
            if conn is self._conn and conn.is_open:
                await self._send(OutboundEvent.PING, {})

    def _cancel_reader(self) -> None:
        task, self._reader_task = self._reader_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _stop_heartbeat(self) -> None:
        task, self._heartbeat_task = self._heartbeat_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # ── Inbound ───────────────────────────────────────────────────────

    async def _handle_raw(self, raw: Union[str, bytes]) -> None:
        try:
            frame = decode_frame(raw)
        except FrameDecodeError as e:
            logger.error("Dropping malformed frame: %s (%s)", e.message, e.raw)
            return
        try:
            await self._dispatch(frame)
        except Exception:
            # a bad frame must never end the read loop
            logger.exception("Error while dispatching frame")

    async def _dispatch(self, frame: Frame) -> None:
        if isinstance(frame, SendAck):
            logger.debug("WebSocket response: success")
            self._events.emit(ClientEvent.SEND_MESSAGE_RESPONSE, frame)
            return
        if isinstance(frame, SendFailure):
            logger.debug("WebSocket response: error %s", frame.error)
            self._events.emit(ClientEvent.SEND_MESSAGE_ERROR, frame)
            return

        event = frame.event
        if event == ServerEvent.PING.value:
            await self._send(OutboundEvent.PONG, {})
            return
        if event == ServerEvent.PONG.value:
            logger.debug("Received pong from server")
            return

        decoder = _PAYLOAD_DECODERS.get(event)
        if decoder is None:
            logger.warning("Unknown WebSocket event: %s", event, extra={"event": event})
            return
        try:
            payload = decoder(frame.data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed '%s' payload: %r", event, e, extra={"event": event})
            return
        logger.debug("WebSocket message received: %s", event, extra={"event": event})
        self._events.emit(event, payload)

    # ── Outbound ──────────────────────────────────────────────────────

    async def send_message(self, request: Union[SendMessageRequest, dict]) -> bool:
        payload = request.to_wire() if isinstance(request, SendMessageRequest) else request
        return await self._send(OutboundEvent.SEND_MESSAGE, payload)

    async def mark_as_read(self, message_id: str, read: bool = True) -> bool:
        return await self._send(
            OutboundEvent.MARK_AS_READ, {"messageId": message_id, "read": read}
        )

    async def join_conversation(self, conversation_id: str) -> bool:
        return await self._send(
            OutboundEvent.JOIN_CONVERSATION, {"conversationId": conversation_id}
        )

    async def leave_conversation(self, conversation_id: str) -> bool:
        return await self._send(
            OutboundEvent.LEAVE_CONVERSATION, {"conversationId": conversation_id}
        )

    async def send_typing(self, conversation_id: str, is_typing: bool) -> bool:
        return await self._send(
            OutboundEvent.TYPING,
            {"conversationId": conversation_id, "isTyping": is_typing},
        )

    async def _send(self, event: OutboundEvent, payload: dict) -> bool:
        """Write one frame if the socket is open; drop it otherwise."""
        conn = self._conn
        if conn is None or self._machine.phase != ConnectionState.OPEN or not conn.is_open:
            logger.warning(
                "WebSocket not connected, cannot send message: %s", event.value,
                extra={"event": event.value},
            )
            return False
        try:
            await conn.send(encode_frame(event, payload))
        except TransportError as e:
            logger.warning("Failed to write '%s': %s", event.value, e, extra={"event": event.value})
            return False
        return True
