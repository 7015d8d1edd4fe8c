"""Per-namespace callbacks and the registry of namespaces."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from socketweave.handler import FuncHandler, HandlerDispatchError, new_event_func
from socketweave.parser.packet import Header, InvalidPacketTypeError, PacketType


def _dispatch_message(args: tuple[Any, ...]) -> str:
    return str(args[0]) if args else ""


class NamespaceHandler:
    """Connect, disconnect, error and event callbacks of one namespace."""

    def __init__(self, broadcast: Any = None) -> None:
        self.broadcast = broadcast
        self.connect_callback: Callable[[Any], Any] | None = None
        self.disconnect_callback: Callable[[Any, str], Any] | None = None
        self.error_callback: Callable[[Any, BaseException], Any] | None = None
        self._events: dict[str, FuncHandler] = {}
        self._lock = threading.Lock()

    def on_connect(self, f: Callable[[Any], Any]) -> None:
        """Set the callback run when a connection joins; it raises to refuse."""
        self.connect_callback = f

    def on_disconnect(self, f: Callable[[Any, str], Any]) -> None:
        """Set the callback run with the reason when a connection leaves."""
        self.disconnect_callback = f

    def on_error(self, f: Callable[[Any, BaseException], Any]) -> None:
        """Set the callback run when an error packet arrives."""
        self.error_callback = f

    def on_event(self, event: str, f: Callable[..., Any]) -> None:
        """Register the handler for ``event``."""
        handler = new_event_func(f)
        with self._lock:
            self._events[event] = handler

    def _event(self, event: str) -> FuncHandler | None:
        with self._lock:
            return self._events.get(event)

    def get_event_types(self, event: str) -> list[Any] | None:
        """Return the argument types of ``event``'s handler, or None if it has none."""
        handler = self._event(event)
        return None if handler is None else list(handler.arg_types)

    def dispatch(self, conn: Any, header: Header, *args: Any) -> None:
        """Run the callback for a connect, disconnect or error packet.

        Error packets and every other packet type raise
        :class:`InvalidPacketTypeError` after any error callback has run.
        """
        kind = header.type
        if kind == PacketType.CONNECT:
            if self.connect_callback is not None:
                self.connect_callback(conn)
            return None
        if kind == PacketType.DISCONNECT:
            if self.disconnect_callback is not None:
                self.disconnect_callback(conn, _dispatch_message(args))
            return None
        if kind == PacketType.ERROR and self.error_callback is not None:
            message = _dispatch_message(args) or "parser error dispatch"
            self.error_callback(conn, HandlerDispatchError(message))
        raise InvalidPacketTypeError()

    def dispatch_event(self, conn: Any, event: str, *args: Any) -> list[Any] | None:
        """Run ``event``'s handler; returns None when no handler is registered."""
        handler = self._event(event)
        if handler is None:
            return None
        return handler.call(conn, *args)


class NamespaceHandlers:
    """Thread-safe map from namespace name to its handler."""

    def __init__(self) -> None:
        self._handlers: dict[str, NamespaceHandler] = {}
        self._lock = threading.Lock()

    def set(self, namespace: str, handler: NamespaceHandler) -> None:
        """Store ``handler`` for ``namespace``."""
        with self._lock:
            self._handlers[namespace] = handler

    def get(self, namespace: str) -> NamespaceHandler | None:
        """Return the handler of ``namespace``, or None."""
        with self._lock:
            return self._handlers.get(namespace)