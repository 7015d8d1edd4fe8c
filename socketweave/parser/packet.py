"""Packet header types, frame types and parser errors."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class PacketType(enum.IntEnum):
    """Socket.IO packet type, written as a single digit on the wire."""

    CONNECT = 0
    DISCONNECT = 1
    EVENT = 2
    ACK = 3
    ERROR = 4
    BINARY_EVENT = 5
    BINARY_ACK = 6


class FrameType(enum.IntEnum):
    """Kind of transport frame carrying a packet or an attachment."""

    TEXT = 0
    BINARY = 1


@dataclass
class Header:
    """Header of a packet."""

    type: PacketType = PacketType.CONNECT
    id: int = 0
    need_ack: bool = False
    namespace: str = ""
    query: str = ""


@dataclass
class Payload:
    """A packet header with its arguments."""

    header: Header
    data: list[Any] = field(default_factory=list)


class ParserError(Exception):
    """Raised when a packet cannot be encoded or decoded."""


class InvalidPacketTypeError(ParserError):
    """The packet type is not one the protocol knows."""

    def __init__(self, message: str = "invalid packet type") -> None:
        super().__init__(message)


class InvalidBinaryBufferTypeError(ParserError):
    """An attachment frame arrived as text instead of binary."""

    def __init__(self, message: str = "buffer packet should be binary") -> None:
        super().__init__(message)


class InvalidFirstPacketTypeError(ParserError):
    """A packet began with a binary frame instead of a text one."""

    def __init__(self, message: str = "first packet should be text frame") -> None:
        super().__init__(message)