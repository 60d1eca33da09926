"""Event subscription table.

Maps an event name to the set of handlers registered for it. Emission
isolates handlers from each other: a handler that raises is logged and
the remaining handlers still run.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Union[None, Awaitable[None]]]
EventName = Union[str, Enum]


def _name(event: EventName) -> str:
    # str-mixin enums hash by member name, not value
    return event.value if isinstance(event, Enum) else event


class EventEmitter:
    """Named-event fan-out with set semantics per event."""

    def __init__(self):
        self._handlers: dict[str, set[EventHandler]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(self, event: EventName, handler: EventHandler) -> None:
        """Register ``handler`` for ``event``. Re-registering is a no-op."""
        self._handlers.setdefault(_name(event), set()).add(handler)

    def off(self, event: EventName, handler: EventHandler) -> None:
        """Remove ``handler``; drops the event entry once it is empty."""
        name = _name(event)
        handlers = self._handlers.get(name)
        if handlers is None:
            return
        handlers.discard(handler)
        if not handlers:
            del self._handlers[name]

    def once(self, event: EventName, handler: EventHandler) -> EventHandler:
        """Register a handler that unregisters itself after one call.

        Returns the wrapper actually registered, for use with ``off``.
        """
        def wrapper(data: Any) -> Any:
            self.off(event, wrapper)
            return handler(data)

        self.on(event, wrapper)
        return wrapper

    def emit(self, event: EventName, data: Any = None) -> int:
        """Invoke every handler registered for ``event``.

        Coroutine handlers are scheduled on the running loop.

        Returns:
            Number of handlers invoked.
        """
        name = _name(event)
        handlers = tuple(self._handlers.get(name, ()))
        for handler in handlers:
            try:
                result = handler(data)
                if asyncio.iscoroutine(result):
                    self._schedule(name, result)
            except Exception:
                logger.exception("Error in handler for '%s'", name, extra={"event": name})
        return len(handlers)

    def handler_count(self, event: EventName) -> int:
        return len(self._handlers.get(_name(event), ()))

    def has_handlers(self, event: EventName) -> bool:
        return _name(event) in self._handlers

    @property
    def events(self) -> list[str]:
        return sorted(self._handlers)

    def clear(self) -> None:
        self._handlers.clear()

    def _schedule(self, name: str, coro: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro)
        self._pending.add(task)

        def _done(t: asyncio.Task) -> None:
            self._pending.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    "Error in async handler for '%s'",
                    name,
                    exc_info=t.exception(),
                    extra={"event": name},
                )

        task.add_done_callback(_done)
