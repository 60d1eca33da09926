"""Response models for the conversation/message REST API."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Participant:
    """A conversation member as returned by the gateway."""
    id: str
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    avatar: Optional[str] = None
    is_online: bool = False
    last_seen: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Participant":
        return cls(
            id=str(data.get("id", "")),
            username=data.get("username", ""),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            avatar=data.get("avatar"),
            is_online=bool(data.get("isOnline", False)),
            last_seen=data.get("lastSeen"),
        )

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username


@dataclass
class LastMessage:
    """Preview of the newest message in a conversation."""
    id: str
    content: Optional[str] = None
    sender_id: str = ""
    created_at: str = ""
    is_read: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "LastMessage":
        return cls(
            id=str(data.get("id", "")),
            content=data.get("content"),
            sender_id=data.get("senderId", ""),
            created_at=data.get("createdAt", ""),
            is_read=bool(data.get("read", False)),  # backend calls it "read"
        )


@dataclass
class Conversation:
    """A conversation summary."""
    id: str
    participants: list[Participant] = field(default_factory=list)
    last_message: Optional[LastMessage] = None
    unread_count: int = 0
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Conversation":
        last = data.get("lastMessage")
        return cls(
            id=str(data.get("id", "")),
            participants=[Participant.from_api(p) for p in data.get("participants") or []],
            last_message=LastMessage.from_api(last) if last else None,
            unread_count=int(data.get("unreadCount") or 0),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
        )

    def other_participant(self, user_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id != user_id:
                return p
        return None


@dataclass
class UploadedFile:
    """Result of a file upload, ready to attach to a message."""
    file_url: str
    file_name: str
    file_type: str
    file_size: int

    @classmethod
    def from_api(cls, data: dict) -> "UploadedFile":
        return cls(
            file_url=data.get("fileUrl", ""),
            file_name=data.get("fileName", ""),
            file_type=data.get("fileType", ""),
            file_size=int(data.get("fileSize", 0) or 0),
        )
