"""Typed payloads carried by realtime frames.

Wire payloads use camelCase keys; these dataclasses are the decoded,
snake_case form handed to subscribers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


def _require_object(data: Any, what: str) -> None:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be an object, got {type(data).__name__}")


class MessageStatus(str, Enum):
    """Delivery status of a chat message as shown to the user."""
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


@dataclass
class Attachment:
    """A file (or product cover) attached to a chat message."""
    file_url: str = ""
    file_name: str = ""
    file_type: str = ""
    file_size: int = 0
    id: Optional[str] = None
    metadata: Optional[dict] = None

    @classmethod
    def from_wire(cls, data: dict) -> "Attachment":
        _require_object(data, "attachment")
        return cls(
            file_url=data.get("fileUrl", ""),
            file_name=data.get("fileName", ""),
            file_type=data.get("fileType", ""),
            file_size=int(data.get("fileSize", 0) or 0),
            id=data.get("id"),
            metadata=data.get("metadata"),
        )

    def to_wire(self) -> dict:
        out: dict[str, Any] = {
            "fileUrl": self.file_url,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
        }
        if self.id:
            out["id"] = self.id
        if self.metadata:
            out["metadata"] = self.metadata
        return out


@dataclass
class ChatMessage:
    """A chat message, pushed as ``newMessage`` or returned by a send."""
    id: str
    conversation_id: str = ""
    sender_id: str = ""
    content: Optional[str] = None
    created_at: str = ""
    is_read: bool = False
    status: MessageStatus = MessageStatus.SENT
    attachments: list[Attachment] = field(default_factory=list)
    sender: Optional[dict] = None

    @classmethod
    def from_wire(
        cls, data: dict, status: MessageStatus = MessageStatus.SENT
    ) -> "ChatMessage":
        _require_object(data, "message")
        return cls(
            id=str(data["id"]),
            conversation_id=data.get("conversationId", ""),
            sender_id=data.get("senderId", ""),
            content=data.get("content"),
            created_at=data.get("createdAt", ""),
            is_read=bool(data.get("read", data.get("isRead", False))),
            status=status,
            attachments=[
                Attachment.from_wire(a) for a in data.get("attachments") or []
            ],
            sender=data.get("sender"),
        )


@dataclass
class SendMessageRequest:
    """Outbound chat message; either content or attachments must be set."""
    conversation_id: str
    content: Optional[str] = None
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.content and self.content.strip()) and not self.attachments

    def to_wire(self) -> dict:
        out: dict[str, Any] = {"conversationId": self.conversation_id}
        if self.content and self.content.strip():
            out["content"] = self.content.strip()
        if self.attachments:
            out["attachments"] = [a.to_wire() for a in self.attachments]
        return out


@dataclass
class ReadStatusChange:
    """``messageReadStatusChanged`` payload."""
    message_id: str
    read: bool = True

    @classmethod
    def from_wire(cls, data: dict) -> "ReadStatusChange":
        return cls(message_id=str(data["messageId"]), read=bool(data.get("read", True)))


@dataclass
class UserStatus:
    """Presence of one user, derived from ``userOnline``/``userOffline``."""
    user_id: str
    username: str = ""
    is_online: bool = False

    @classmethod
    def from_wire(cls, data: dict, is_online: bool) -> "UserStatus":
        return cls(
            user_id=str(data["userId"]),
            username=data.get("username", ""),
            is_online=is_online,
        )


@dataclass
class TypingEvent:
    """``userTyping`` payload."""
    user_id: str
    conversation_id: str
    username: str = ""
    is_typing: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.conversation_id, self.user_id)

    @classmethod
    def from_wire(cls, data: dict) -> "TypingEvent":
        return cls(
            user_id=str(data["userId"]),
            conversation_id=str(data["conversationId"]),
            username=data.get("username", ""),
            is_typing=bool(data.get("isTyping", False)),
        )
