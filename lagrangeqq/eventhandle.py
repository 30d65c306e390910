"""Subscribable event channels."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_log = logging.getLogger(__name__)

# Writes are rare, so one lock guards every handle.
_subscribe_lock = threading.Lock()


class EventHandle(Generic[T]):
    """A list of handlers called with ``(client, event)`` in subscription order."""

    def __init__(self) -> None:
        self._handlers: tuple[Callable[[Any, T], Any], ...] = ()

    def subscribe(self, handler: Callable[[Any, T], Any]) -> None:
        """Add a handler to the end of the list."""
        with _subscribe_lock:
            self._handlers = (*self._handlers, handler)

    def dispatch(self, client: Any, event: T) -> None:
        """Call every handler in turn.

        An exception from a handler is logged and stops the remaining
        handlers; it is not propagated to the caller.
        """
        handlers = self._handlers
        try:
            for handler in handlers:
                handler(client, event)
        except Exception:
            _log.exception("event error")