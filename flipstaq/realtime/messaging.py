"""Correlated chat-message send over the realtime channel.

The relay answers a ``sendMessage`` frame with a bare success/error
frame that carries no request id. A send therefore races three outcomes
(success frame, error frame, timeout) and takes whichever comes first.
Two sends in flight at once can have their replies swapped; callers that
need strict attribution must not overlap sends.
"""

import asyncio
import logging
from typing import Optional

from flipstaq.errors import (
    ErrorCode,
    NotConnectedError,
    SendMessageError,
    SendTimeoutError,
    ValidationError,
)
from flipstaq.realtime.client import RealtimeChannelClient
from flipstaq.realtime.config import ClientEvent
from flipstaq.realtime.frames import SendAck, SendFailure
from flipstaq.realtime.models import ChatMessage, MessageStatus, SendMessageRequest

logger = logging.getLogger(__name__)


async def send_chat_message(
    client: RealtimeChannelClient,
    request: SendMessageRequest,
    timeout: Optional[float] = None,
) -> ChatMessage:
    """Send a chat message and wait for the relay's verdict.

    Both one-shot listeners are removed before this returns or raises.

    Raises:
        ValidationError: request has neither content nor attachments.
        NotConnectedError: the socket is not open.
        SendMessageError: the relay reported a failure.
        SendTimeoutError: no reply inside ``timeout`` seconds.
    """
    if request.is_empty:
        raise ValidationError(
            "Either content or attachments must be provided",
            error_code=ErrorCode.EMPTY_MESSAGE,
        )

    timeout = client.config.send_timeout if timeout is None else timeout
    outcome: asyncio.Future = asyncio.get_running_loop().create_future()

    def on_response(ack: SendAck) -> None:
        # join/leave/markAsRead acks carry no message object
        if ack.carries_message and not outcome.done():
            outcome.set_result(ack.message)

    def on_error(failure: SendFailure) -> None:
        if not outcome.done():
            outcome.set_exception(SendMessageError(failure.error))

    client.on(ClientEvent.SEND_MESSAGE_RESPONSE, on_response)
    client.on(ClientEvent.SEND_MESSAGE_ERROR, on_error)
    try:
        if not await client.send_message(request):
            raise NotConnectedError()
        try:
            raw = await asyncio.wait_for(outcome, timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Message send timeout after %.1fs", timeout,
                extra={"conversation_id": request.conversation_id},
            )
            raise SendTimeoutError(timeout=timeout) from None
    finally:
        client.off(ClientEvent.SEND_MESSAGE_RESPONSE, on_response)
        client.off(ClientEvent.SEND_MESSAGE_ERROR, on_error)

    try:
        return ChatMessage.from_wire(raw, status=MessageStatus.SENT)
    except (KeyError, TypeError, ValueError) as e:
        raise SendMessageError(f"Malformed message in send response: {e!r}") from e
