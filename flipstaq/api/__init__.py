"""REST collaborator: conversations, message history, uploads."""

from flipstaq.api.messages import (
    ALLOWED_UPLOAD_TYPES,
    MAX_UPLOAD_BYTES,
    MessageService,
)
from flipstaq.api.models import Conversation, LastMessage, Participant, UploadedFile

__all__ = [
    "ALLOWED_UPLOAD_TYPES",
    "MAX_UPLOAD_BYTES",
    "Conversation",
    "LastMessage",
    "MessageService",
    "Participant",
    "UploadedFile",
]
