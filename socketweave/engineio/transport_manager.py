"""Registry of transports in their upgrade order."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class InvalidFrameError(Exception):
    """A frame of an unknown type was written."""

    def __init__(self, message: str = "invalid frame type") -> None:
        super().__init__(message)


class TransportManager:
    """Transports by name; later transports are upgrades of earlier ones.

    Each transport must have a ``name`` attribute.
    """

    def __init__(self, transports: Iterable[Any]) -> None:
        transports = list(transports)
        self._order = [t.name for t in transports]
        self._transports = {t.name: t for t in transports}

    def upgrade_from(self, name: str) -> list[str] | None:
        """Return the names of transports after ``name``, or None if unknown."""
        if name not in self._order:
            return None
        return self._order[self._order.index(name) + 1:]

    def get(self, name: str) -> Any | None:
        """Return the transport called ``name``, or None."""
        return self._transports.get(name)