"""Packet decoder reading a text frame and its binary attachment frames."""

from __future__ import annotations

import dataclasses
import itertools
import json
import types as _types
import typing
from collections.abc import Mapping
from typing import Any

from socketweave.parser.buffer import Buffer, _walk_buffers
from socketweave.parser.packet import (
    FrameType,
    Header,
    InvalidBinaryBufferTypeError,
    InvalidFirstPacketTypeError,
    InvalidPacketTypeError,
    PacketType,
    ParserError,
)

_MISSING = object()
_DIGITS = range(ord("0"), ord("9") + 1)


class _Cursor:
    """Byte-at-a-time reader over one text frame."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def peek(self) -> int | None:
        return None if self.at_end() else self._data[self._pos]

    def read(self) -> int | None:
        byte = self.peek()
        if byte is not None:
            self._pos += 1
        return byte

    def rest(self) -> bytes:
        return self._data[self._pos:]


def _read_number(cur: _Cursor) -> tuple[int, bool]:
    value, seen = 0, False
    while (byte := cur.peek()) is not None and byte in _DIGITS:
        cur.read()
        value = value * 10 + byte - ord("0")
        seen = True
    return value, seen


def _read_until(cur: _Cursor, stop: int) -> bytes:
    out = bytearray()
    while (byte := cur.read()) is not None and byte != stop:
        out.append(byte)
    return bytes(out)


def _read_header(cur: _Cursor) -> tuple[Header, int]:
    first = cur.read()
    if first is None:
        raise EOFError("empty packet")
    code = first - ord("0")
    if not 0 <= code <= PacketType.BINARY_ACK:
        raise InvalidPacketTypeError()
    packet_type = PacketType(code)

    if cur.at_end():
        return Header(packet_type), 0
    num, has_num = _read_number(cur)
    if cur.at_end():
        return Header(packet_type, num, has_num), 0

    buffer_count = 0
    if cur.peek() == ord("-"):
        cur.read()
        buffer_count, num, has_num = num, 0, False

    if cur.at_end():
        return Header(packet_type), buffer_count

    namespace = query = ""
    if cur.peek() == ord("/"):
        raw = _read_until(cur, ord(",")).decode("utf-8")
        namespace, _, query = raw.partition("?")

    if cur.at_end():
        return Header(packet_type, namespace=namespace, query=query), buffer_count

    packet_id, need_ack = _read_number(cur)
    if not need_ack:
        packet_id, need_ack = num, has_num
    return Header(packet_type, packet_id, need_ack, namespace, query), buffer_count


def _read_event(cur: _Cursor) -> str:
    if cur.at_end():
        raise EOFError("packet ends before event name")
    if cur.peek() != ord("["):
        return ""
    cur.read()
    name = bytearray()
    while True:
        byte = cur.peek()
        if byte is None:
            raise EOFError("packet ends inside event name")
        if byte == ord("]"):
            break
        cur.read()
        if byte == ord(","):
            break
        name.append(byte)
    try:
        event = json.loads(bytes(name))
    except json.JSONDecodeError as exc:
        raise ParserError(f"invalid event name: {exc}") from exc
    if not isinstance(event, str):
        raise ParserError("event name must be a string")
    return event


def _zero(typ: Any) -> Any:
    target = typing.get_origin(typ) or typ
    if target in (bool, int, float, str, list, dict, tuple, Buffer):
        return target()
    return None


def _convert(value: Any, typ: Any) -> Any:
    if typ is None or typ is Any or typ is object:
        return value
    if value is None:
        return _zero(typ)

    origin = typing.get_origin(typ)
    if origin is typing.Union or origin is _types.UnionType:
        for arm in typing.get_args(typ):
            if arm is type(None):
                continue
            try:
                return _convert(value, arm)
            except ParserError:
                continue
        raise ParserError(f"cannot decode {type(value).__name__} into {typ}")
    if origin in (list, tuple):
        if not isinstance(value, list):
            raise ParserError(f"cannot decode {type(value).__name__} into {typ}")
        inner = (typing.get_args(typ) or (Any,))[0]
        return origin(_convert(item, inner) for item in value)
    if origin is dict:
        if not isinstance(value, Mapping):
            raise ParserError(f"cannot decode {type(value).__name__} into {typ}")
        inner = (typing.get_args(typ) or (Any, Any))[-1]
        return {key: _convert(item, inner) for key, item in value.items()}

    if typ is Buffer:
        if not isinstance(value, Mapping):
            raise ParserError("buffer must be a JSON object")
        return Buffer.from_json(value)
    if dataclasses.is_dataclass(typ):
        return _convert_dataclass(value, typ)
    if typ is bool:
        if not isinstance(value, bool):
            raise ParserError(f"cannot decode {type(value).__name__} into bool")
        return value
    if typ is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ParserError(f"cannot decode {type(value).__name__} into int")
        return value
    if typ is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ParserError(f"cannot decode {type(value).__name__} into float")
        return float(value)
    if isinstance(typ, type) and isinstance(value, typ):
        return value
    raise ParserError(f"cannot decode {type(value).__name__} into {typ}")


def _field_type(item: dataclasses.Field) -> Any:
    # Annotations kept as text cannot be resolved safely; accept any value.
    return Any if isinstance(item.type, str) else item.type


def _convert_dataclass(value: Any, typ: type) -> Any:
    if not isinstance(value, Mapping):
        raise ParserError(f"cannot decode {type(value).__name__} into {typ.__name__}")
    lowered = {str(key).lower(): item for key, item in value.items()}
    kwargs = {}
    for item in dataclasses.fields(typ):
        if not item.init:
            continue
        hint = _field_type(item)
        raw = value.get(item.name, lowered.get(item.name.lower(), _MISSING))
        kwargs[item.name] = _zero(hint) if raw is _MISSING else _convert(raw, hint)
    return typ(**kwargs)


class Decoder:
    """Reads packets from a frame reader.

    The reader must provide ``next_frame()`` returning a pair of
    :class:`FrameType` and the frame's bytes, raising ``EOFError`` when
    no frames are left.
    """

    def __init__(self, reader: Any) -> None:
        self._reader = reader
        self._packet: _Cursor | None = None
        self._buffer_count = 0
        self._is_event = False

    def close(self) -> None:
        """Drop any packet still being read."""
        self.discard_last()

    def discard_last(self) -> None:
        """Drop the rest of the current text frame."""
        self._packet = None

    def decode_header(self) -> tuple[Header, str]:
        """Read the next packet's header and, for events, the event name."""
        frame_type, data = self._reader.next_frame()
        if frame_type != FrameType.TEXT:
            raise InvalidFirstPacketTypeError()
        if isinstance(data, str):
            data = data.encode("utf-8")

        cur = _Cursor(bytes(data))
        self._packet = cur
        header, self._buffer_count = _read_header(cur)
        if header.type in (PacketType.BINARY_EVENT, PacketType.BINARY_ACK):
            header = dataclasses.replace(header, type=PacketType(header.type - 3))

        self._is_event = header.type == PacketType.EVENT
        event = _read_event(cur) if self._is_event else ""
        return header, event

    def decode_args(self, types: list[Any]) -> list[Any]:
        """Decode the packet's arguments into the given types.

        Binary attachments that follow the packet are read and put in
        place of their placeholders.
        """
        if self._packet is None:
            raise ParserError("no packet to decode")
        text = self._packet.rest()
        if self._is_event:
            text = b"[" + text
        self.discard_last()

        body = text.decode("utf-8").lstrip()
        if not body:
            return []
        try:
            values, _ = json.JSONDecoder().raw_decode(body)
        except json.JSONDecodeError as exc:
            raise ParserError(f"invalid arguments: {exc}") from exc
        if values is None:
            values = []
        if not isinstance(values, list):
            raise ParserError("arguments must be a JSON array")

        args = [
            _zero(typ) if value is _MISSING else _convert(value, typ)
            for typ, value in itertools.zip_longest(
                types, values[: len(types)], fillvalue=_MISSING
            )
        ]

        attachments = [self._read_attachment() for _ in range(self._buffer_count)]
        for buffer in _walk_buffers(args):
            if not buffer.is_binary:
                continue
            if buffer.num >= len(attachments):
                raise ParserError(f"missing binary attachment {buffer.num}")
            buffer.data = attachments[buffer.num]
            buffer.num = 0
            buffer.is_binary = False
        return args

    def _read_attachment(self) -> bytes:
        frame_type, data = self._reader.next_frame()
        if frame_type != FrameType.BINARY:
            raise InvalidBinaryBufferTypeError()
        return bytes(data)