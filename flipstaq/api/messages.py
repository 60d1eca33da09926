"""Conversation & message REST client.

History fetch, conversation management and file upload go over HTTP
via httpx. Sending and read receipts prefer the realtime channel and
fall back to HTTP when the socket is not open.

Example:
    service = MessageService(get_settings(), token_store, channel=client)
    conversations = await service.get_conversations()
    history = await service.get_messages(conversations[0].id)
    sent = await service.send_message("Is this still available?", conversations[0].id)
"""

import logging
import mimetypes
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from flipstaq.api.models import Conversation, UploadedFile
from flipstaq.auth import TokenStore
from flipstaq.errors import (
    AuthenticationError,
    AuthorizationError,
    ErrorCode,
    NotFoundError,
    RequestFailedError,
    ServiceUnavailableError,
    ValidationError,
)
from flipstaq.realtime.client import RealtimeChannelClient
from flipstaq.realtime.messaging import send_chat_message
from flipstaq.realtime.models import (
    Attachment,
    ChatMessage,
    MessageStatus,
    SendMessageRequest,
)
from flipstaq.settings import Settings

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/messages/"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB

ALLOWED_UPLOAD_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
})


class MessageService:
    """REST collaborator of the realtime channel.

    Args:
        settings: Provides ``api_url``, ``request_timeout`` and ``send_timeout``.
        token_store: Source of the bearer token for the Authorization header.
        channel: Realtime client used for sends/read receipts when connected.
        http_client: Pre-built client (tests inject one with a MockTransport).
    """

    def __init__(
        self,
        settings: Settings,
        token_store: TokenStore,
        channel: Optional[RealtimeChannelClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings
        self._token_store = token_store
        self._channel = channel
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            base_url=settings.api_url.rstrip("/") + API_PREFIX,
            timeout=settings.request_timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "MessageService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def _socket_ready(self) -> bool:
        return self._channel is not None and self._channel.is_connected

    # ── Conversations ─────────────────────────────────────────────────

    async def get_conversations(self) -> list[Conversation]:
        body = await self._request("GET", "conversations")
        return [Conversation.from_api(c) for c in _unwrap_list(body)]

    async def create_conversation(self, username: str) -> Conversation:
        """Start (or fetch) a conversation with ``username``."""
        handle = username if username.startswith("@") else f"@{username}"
        body = await self._request("POST", "conversations", json={"username": handle})
        return Conversation.from_api(_unwrap(body))

    async def get_messages(
        self, conversation_id: str, page: int = 1, limit: int = 50
    ) -> list[ChatMessage]:
        """One page of history; history messages are ``delivered``."""
        body = await self._request(
            "GET",
            f"conversations/{conversation_id}/messages",
            params={"page": page, "limit": limit},
            not_found="Conversation not found",
        )
        return [
            ChatMessage.from_wire(m, status=MessageStatus.DELIVERED)
            for m in _unwrap_list(body, "data", "messages")
        ]

    async def search_users(self, query: str) -> list[dict]:
        body = await self._request("GET", "users/search", params={"q": query})
        return _unwrap_list(body)

    # ── Sending ───────────────────────────────────────────────────────

    async def send_message(
        self,
        content: str,
        conversation_id: str,
        attachments: Optional[list[Attachment]] = None,
    ) -> ChatMessage:
        """Send over the socket when open, otherwise over HTTP."""
        request = SendMessageRequest(
            conversation_id=conversation_id,
            content=content.strip() or None,
            attachments=list(attachments or []),
        )
        if request.is_empty:
            raise ValidationError(
                "Either content or attachments must be provided",
                error_code=ErrorCode.EMPTY_MESSAGE,
            )

        if self._socket_ready:
            return await send_chat_message(
                self._channel, request, timeout=self._settings.send_timeout
            )

        logger.info(
            "WebSocket unavailable, sending over HTTP",
            extra={"conversation_id": conversation_id},
        )
        body = await self._request("POST", "", json=request.to_wire())
        return ChatMessage.from_wire(_unwrap(body), status=MessageStatus.SENT)

    async def mark_message_as_read(self, message_id: str, read: bool = True) -> None:
        if self._socket_ready and await self._channel.mark_as_read(message_id, read):
            return
        await self._request(
            "PATCH", f"{message_id}/read", json={"read": read},
            not_found="Message not found",
        )

    async def mark_conversation_as_read(self, conversation_id: str) -> None:
        await self._request(
            "PATCH", f"conversations/{conversation_id}/read", json={},
            not_found="Conversation not found",
        )
        logger.info(
            "Conversation marked as read", extra={"conversation_id": conversation_id}
        )

    # ── Upload ────────────────────────────────────────────────────────

    async def upload_file(
        self, path: Union[str, Path], content_type: Optional[str] = None
    ) -> UploadedFile:
        """Upload an attachment; size and type are checked before sending."""
        path = Path(path)
        size = path.stat().st_size
        if size > MAX_UPLOAD_BYTES:
            raise ValidationError(
                "File size exceeds 10MB limit",
                error_code=ErrorCode.FILE_TOO_LARGE,
                field="file",
            )

        content_type = content_type or mimetypes.guess_type(path.name)[0] or ""
        if content_type not in ALLOWED_UPLOAD_TYPES:
            raise ValidationError(
                "File type not supported",
                error_code=ErrorCode.UNSUPPORTED_FILE_TYPE,
                field="file",
            )

        with path.open("rb") as fh:
            body = await self._request(
                "POST",
                "upload",
                files={"file": (path.name, fh, content_type)},
                bad_request="Invalid file type or size",
            )
        return UploadedFile.from_api(_unwrap(body))

    # ── Transport ─────────────────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        token = self._token_store.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        endpoint: str,
        not_found: str = "Not found",
        bad_request: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        try:
            resp = await self._http_client.request(
                method, endpoint, headers=self._headers(), **kwargs
            )
        except httpx.TransportError as e:
            logger.error("Error making request to %s: %s", endpoint or "/", e)
            raise ServiceUnavailableError(f"Request to {endpoint or '/'} failed: {e}") from e

        if resp.is_success:
            if not resp.content:
                return None
            return resp.json()

        status = resp.status_code
        logger.warning(
            "%s %s returned %d", method, endpoint or "/", status,
            extra={"status_code": status},
        )
        if status == 401:
            raise AuthenticationError()
        if status == 403:
            raise AuthorizationError()
        if status == 404:
            raise NotFoundError(not_found)
        if status == 400 and bad_request:
            raise ValidationError(bad_request)
        raise RequestFailedError(
            f"Request failed: {resp.reason_phrase or status}", status_code=status
        )


def _unwrap(body: Any) -> Any:
    """Gateway responses are either ``{"data": ...}`` or the bare payload."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _unwrap_list(body: Any, *keys: str) -> list:
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for key in keys or ("data",):
            value = body.get(key)
            if isinstance(value, list):
                return value
    return []
