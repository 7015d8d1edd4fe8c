"""Session id generation and the pool of live sessions."""

from __future__ import annotations

import threading
from typing import Any, Protocol

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    digits = []
    while True:
        value, rest = divmod(value, 36)
        digits.append(_BASE36[rest])
        if value == 0:
            return "".join(reversed(digits))


class _IDGenerator(Protocol):
    def new_id(self) -> str: ...


class DefaultIDGenerator:
    """Generates increasing numbers written in base 36."""

    def __init__(self, last_id: int = 0) -> None:
        self.last_id = last_id
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Return the next id."""
        with self._lock:
            self.last_id += 1
            return _base36(self.last_id)


class SessionManager:
    """Thread-safe pool of sessions keyed by their ``id`` attribute."""

    def __init__(self, generator: _IDGenerator | None = None) -> None:
        self.generator = generator if generator is not None else DefaultIDGenerator()
        self._sessions: dict[str, Any] = {}
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Return a fresh session id from the generator."""
        return self.generator.new_id()

    def add(self, session: Any) -> None:
        """Store ``session`` under its id."""
        with self._lock:
            self._sessions[session.id] = session

    def get(self, sid: str) -> Any | None:
        """Return the session with id ``sid``, or None."""
        with self._lock:
            return self._sessions.get(sid)

    def remove(self, sid: str) -> None:
        """Drop the session with id ``sid`` if present."""
        with self._lock:
            self._sessions.pop(sid, None)

    def count(self) -> int:
        """Return the number of sessions held."""
        with self._lock:
            return len(self._sessions)