"""Packet encoder writing a text frame followed by binary attachment frames."""

from __future__ import annotations

import base64
import dataclasses
import json
from typing import Any

from socketweave.parser.buffer import Buffer, _walk_buffers
from socketweave.parser.packet import FrameType, Header, PacketType

_BINARY_TYPES = (PacketType.BINARY_EVENT, PacketType.BINARY_ACK)

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def attach_buffers(value: Any, start: int = 0) -> tuple[list[bytes], int]:
    """Number every Buffer in ``value`` from ``start`` and mark it for sending.

    Returns the attachment payloads in order and the next free number.
    """
    found = []
    index = start
    for buffer in _walk_buffers(value):
        buffer.num = index
        buffer.is_binary = True
        found.append(bytes(buffer.data or b""))
        index += 1
    return found, index


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Buffer):
        return obj.as_dict()
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


def _dumps(value: Any) -> str:
    text = json.dumps(
        value, ensure_ascii=False, separators=(",", ":"), default=_json_default
    )
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


class Encoder:
    """Writes packets to a frame writer.

    The writer must provide ``write_frame(frame_type, data)`` taking a
    :class:`FrameType` and the frame's bytes.
    """

    def __init__(self, writer: Any) -> None:
        self._writer = writer

    def encode(self, header: Header, *args: Any) -> None:
        """Write one packet with ``args`` as its JSON argument array."""
        buffers, count = attach_buffers(list(args))

        packet_type = PacketType(header.type)
        if buffers and packet_type in (PacketType.EVENT, PacketType.ACK):
            packet_type = PacketType(packet_type + 3)

        parts = [str(int(packet_type))]
        if packet_type in _BINARY_TYPES:
            parts.append(f"{count}-")
        if header.namespace:
            parts.append(header.namespace)
            if header.id != 0 or args:
                parts.append(",")
        if header.need_ack:
            parts.append(str(header.id))
        if args:
            parts.append(_dumps(list(args)) + "\n")

        self._writer.write_frame(FrameType.TEXT, "".join(parts).encode("utf-8"))
        for data in buffers:
            self._writer.write_frame(FrameType.BINARY, data)