"""Connection parameters sent in the handshake."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from typing import IO, Any

_MILLISECOND = timedelta(milliseconds=1)


@dataclass
class ConnParameters:
    """Ping timing, session id and available upgrades of a connection."""

    ping_interval: timedelta = timedelta(0)
    ping_timeout: timedelta = timedelta(0)
    sid: str = ""
    upgrades: list[str] = field(default_factory=list)

    def write_to(self, stream: IO[bytes]) -> int:
        """Write the parameters as one JSON line; return the bytes written."""
        document = {
            "sid": self.sid,
            "upgrades": list(self.upgrades),
            "pingInterval": self.ping_interval // _MILLISECOND,
            "pingTimeout": self.ping_timeout // _MILLISECOND,
        }
        data = (json.dumps(document, separators=(",", ":"), ensure_ascii=False) + "\n").encode(
            "utf-8"
        )
        written = stream.write(data)
        return len(data) if written is None else written


def _milliseconds(document: dict[str, Any], key: str) -> timedelta:
    value = document.get(key)
    if value is None:
        return timedelta(0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return timedelta(milliseconds=value)


def read_conn_parameters(stream: IO[Any]) -> ConnParameters:
    """Read parameters written by :meth:`ConnParameters.write_to`.

    Raises ``EOFError`` when the stream is empty and ``ValueError`` when
    it does not hold valid parameters.
    """
    data = stream.read()
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    text = data.lstrip()
    if not text:
        raise EOFError("no connection parameters to read")

    document, _ = json.JSONDecoder().raw_decode(text)
    if not isinstance(document, dict):
        raise ValueError("connection parameters must be a JSON object")

    sid = document.get("sid") or ""
    if not isinstance(sid, str):
        raise ValueError("sid must be a string")
    upgrades = document.get("upgrades") or []
    if not isinstance(upgrades, list) or not all(isinstance(u, str) for u in upgrades):
        raise ValueError("upgrades must be a list of strings")

    return ConnParameters(
        ping_interval=_milliseconds(document, "pingInterval"),
        ping_timeout=_milliseconds(document, "pingTimeout"),
        sid=sid,
        upgrades=upgrades,
    )