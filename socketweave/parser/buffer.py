"""Binary attachment carried in event arguments."""

from __future__ import annotations

import base64
import dataclasses
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from socketweave.parser.packet import ParserError


@dataclass
class Buffer:
    """Binary data sent as a separate frame alongside a packet.

    Once attached for sending, a buffer is written into the JSON as a
    placeholder that points at its frame by number.
    """

    data: bytes = b""
    num: int = 0
    is_binary: bool = False

    def as_dict(self) -> dict[str, Any]:
        """Return the JSON object this buffer is written as."""
        if self.is_binary:
            return {"_placeholder": True, "num": self.num}
        return {"type": "Buffer", "data": list(self.data or b"")}

    def to_json(self) -> str:
        """Return the compact JSON text for this buffer."""
        return json.dumps(self.as_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str | bytes | Mapping[str, Any]) -> Buffer:
        """Build a Buffer from JSON text or an already decoded JSON object."""
        if isinstance(text, (str, bytes, bytearray)):
            try:
                obj = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ParserError(f"invalid buffer JSON: {exc}") from exc
        else:
            obj = text
        if obj is None:
            return cls()
        if not isinstance(obj, Mapping):
            raise ParserError("buffer must be a JSON object")
        fields = {str(key).lower(): value for key, value in obj.items()}
        return cls(
            data=_to_bytes(fields.get("data")),
            num=_to_int(fields.get("num")),
            is_binary=bool(fields.get("_placeholder", False)),
        )


def _to_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except ValueError as exc:
            raise ParserError(f"invalid buffer data: {exc}") from exc
    if isinstance(value, list):
        try:
            return bytes(value)
        except (TypeError, ValueError) as exc:
            raise ParserError(f"invalid buffer data: {exc}") from exc
    raise ParserError("invalid buffer data")


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ParserError("invalid buffer number")
    return value


def _walk_buffers(value: Any) -> Iterator[Buffer]:
    """Yield every Buffer inside nested lists, tuples, mappings and dataclasses."""
    if isinstance(value, Buffer):
        yield value
    elif isinstance(value, (str, bytes, bytearray)):
        return
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from _walk_buffers(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _walk_buffers(item)
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        for item in dataclasses.fields(value):
            yield from _walk_buffers(getattr(value, item.name))