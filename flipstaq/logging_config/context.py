"""Channel Log Context.

Binds connection-scoped identifiers (connection id, user id) to every
log record emitted while a realtime connection is live.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any


_connection_id_var: ContextVar[str] = ContextVar("connection_id", default="")
_user_id_var: ContextVar[str] = ContextVar("user_id", default="")
_extra_context_var: ContextVar[dict] = ContextVar("extra_context", default={})


def generate_connection_id() -> str:
    """Generate a unique connection ID using UUID4."""
    return str(uuid.uuid4())


def get_connection_id() -> str:
    return _connection_id_var.get()


def get_user_id() -> str:
    return _user_id_var.get()


def get_context_dict() -> dict[str, Any]:
    """Get all context variables as a dictionary for log binding."""
    ctx = {}
    conn_id = _connection_id_var.get()
    if conn_id:
        ctx["connection_id"] = conn_id
    user_id = _user_id_var.get()
    if user_id:
        ctx["user_id"] = user_id
    extra = _extra_context_var.get()
    if extra:
        ctx.update(extra)
    return ctx


@dataclass
class ChannelLogContext:
    """Context manager for connection-scoped logging context.

    Tasks created inside the block inherit the bound values, so the
    reader and heartbeat tasks of a connection log with its id.

    Example:
        with ChannelLogContext(user_id="u1") as ctx:
            logger.info("connected")  # includes connection_id, user_id
    """

    connection_id: str = ""
    user_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    _tokens: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.connection_id:
            self.connection_id = generate_connection_id()

    def __enter__(self) -> "ChannelLogContext":
        self._tokens = [
            (_connection_id_var, _connection_id_var.set(self.connection_id)),
            (_user_id_var, _user_id_var.set(self.user_id)),
            (_extra_context_var, _extra_context_var.set(self.extra.copy())),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the context."""
        current = _extra_context_var.get()
        _extra_context_var.set({**current, **kwargs})
        self.extra.update(kwargs)
