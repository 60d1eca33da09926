"""Socket transport for the realtime channel.

The client only talks to the small ``Transport``/``Connection`` protocols
below, so the lifecycle can be driven by an in-memory fake. The default
implementation uses the ``websockets`` asyncio client.
"""

import asyncio
import logging
from typing import Optional, Protocol, Union
from urllib.parse import quote, urlsplit, urlunsplit

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from flipstaq.errors import TransportClosed, TransportError
from flipstaq.realtime.config import ABNORMAL_CLOSURE, NORMAL_CLOSURE

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """One open socket."""

    @property
    def is_open(self) -> bool:
        ...

    async def send(self, data: str) -> None:
        ...

    async def recv(self) -> Union[str, bytes]:
        """Next message; raises TransportClosed once the socket is closed."""
        ...

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        ...


class Transport(Protocol):
    """Factory for connections."""

    async def connect(self, uri: str) -> Connection:
        """Open a socket; raises TransportError when the open fails."""
        ...


def build_connection_uri(base_url: str, token: str) -> str:
    """Append the bearer token as the ``token`` query credential."""
    parts = urlsplit(base_url)
    credential = f"token={quote(token, safe='')}"
    query = f"{parts.query}&{credential}" if parts.query else credential
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def redact_uri(uri: str) -> str:
    """Strip the query string so tokens never reach the logs."""
    parts = urlsplit(uri)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class WebsocketsConnection:
    """``Connection`` backed by a websockets client connection."""

    def __init__(self, ws):
        self._ws = ws
        self._closed: Optional[TransportClosed] = None

    @property
    def is_open(self) -> bool:
        return self._closed is None

    async def send(self, data: str) -> None:
        if self._closed is not None:
            raise self._closed
        try:
            await self._ws.send(data)
        except ConnectionClosed as e:
            raise self._mark_closed(e) from e

    async def recv(self) -> Union[str, bytes]:
        if self._closed is not None:
            raise self._closed
        try:
            return await self._ws.recv()
        except ConnectionClosed as e:
            raise self._mark_closed(e) from e

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        if self._closed is None:
            self._closed = TransportClosed(code, reason)
        await self._ws.close(code=code, reason=reason)

    def _mark_closed(self, exc: ConnectionClosed) -> TransportClosed:
        if self._closed is None:
            frame = exc.rcvd or exc.sent
            if frame is not None:
                self._closed = TransportClosed(frame.code, frame.reason)
            else:
                self._closed = TransportClosed(ABNORMAL_CLOSURE, "")
        return self._closed


class WebsocketsTransport:
    """Default transport using the ``websockets`` library.

    Keepalive is done with application-level ``ping`` frames, so the
    protocol-level ping of the library is disabled.
    """

    def __init__(self, open_timeout: float = 10.0):
        self.open_timeout = open_timeout

    async def connect(self, uri: str) -> Connection:
        try:
            ws = await websockets.connect(
                uri,
                ping_interval=None,
                open_timeout=self.open_timeout,
            )
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            raise TransportError(f"Could not open {redact_uri(uri)}: {e}") from e
        return WebsocketsConnection(ws)
