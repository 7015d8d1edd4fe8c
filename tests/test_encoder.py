from dataclasses import dataclass

import pytest

from socketweave.parser.buffer import Buffer
from socketweave.parser.encoder import Encoder, attach_buffers
from socketweave.parser.packet import FrameType, Header, PacketType


class _FakeWriter:
    def __init__(self):
        self.frames = []

    def write_frame(self, frame_type, data):
        self.frames.append((frame_type, data))


def _cases():
    return [
        ("Empty", Header(PacketType.CONNECT, 0, False, "", ""), "", None, [b"0"]),
        (
            "Data",
            Header(PacketType.ERROR, 0, False, "", ""),
            "",
            ["error"],
            [b'4["error"]\n'],
        ),
        (
            "BData",
            Header(PacketType.EVENT, 0, False, "", ""),
            "msg",
            [Buffer(b"\x01\x02\x03")],
            [b'51-["msg",{"_placeholder":true,"num":0}]\n', b"\x01\x02\x03"],
        ),
        ("ID", Header(PacketType.CONNECT, 0, True, "", ""), "", None, [b"00"]),
        (
            "IDData",
            Header(PacketType.ACK, 13, True, "", ""),
            "",
            ["error"],
            [b'313["error"]\n'],
        ),
        (
            "IDBData",
            Header(PacketType.ACK, 13, True, "", ""),
            "",
            [Buffer(b"\x01\x02\x03")],
            [b'61-13[{"_placeholder":true,"num":0}]\n', b"\x01\x02\x03"],
        ),
        (
            "Namespace",
            Header(PacketType.DISCONNECT, 0, False, "/woot", ""),
            "",
            None,
            [b"1/woot"],
        ),
        (
            "NamespaceData",
            Header(PacketType.EVENT, 0, False, "/woot", ""),
            "msg",
            [1],
            [b'2/woot,["msg",1]\n'],
        ),
        (
            "NamespaceBData",
            Header(PacketType.EVENT, 0, False, "/woot", ""),
            "msg",
            [Buffer(b"\x02\x03\x04")],
            [b'51-/woot,["msg",{"_placeholder":true,"num":0}]\n', b"\x02\x03\x04"],
        ),
        (
            "NamespaceID",
            Header(PacketType.DISCONNECT, 1, True, "/woot", ""),
            "",
            None,
            [b"1/woot,1"],
        ),
        (
            "NamespaceIDData",
            Header(PacketType.EVENT, 1, True, "/woot", ""),
            "msg",
            [1],
            [b'2/woot,1["msg",1]\n'],
        ),
        (
            "NamespaceIDBData",
            Header(PacketType.EVENT, 1, True, "/woot", ""),
            "msg",
            [Buffer(b"\x02\x03\x04")],
            [b'51-/woot,1["msg",{"_placeholder":true,"num":0}]\n', b"\x02\x03\x04"],
        ),
    ]


@pytest.mark.parametrize(
    "name, header, event, values, frames", _cases(), ids=[c[0] for c in _cases()]
)
def test_encoder(name, header, event, values, frames):
    writer = _FakeWriter()
    encoder = Encoder(writer)
    args = list(values or [])
    if header.type == PacketType.EVENT:
        args = [event, *args]

    encoder.encode(header, *args)

    assert [t for t, _ in writer.frames] == [FrameType.TEXT] + [FrameType.BINARY] * (
        len(frames) - 1
    )
    assert [d for _, d in writer.frames] == frames


@dataclass
class _Holder:
    data: Buffer
    i: int


def _attach_cases():
    return [
        ("&Buffer", Buffer(b"\x01\x02"), 1, [b"\x01\x02"]),
        ("list{Buffer}", [Buffer(b"\x01\x02")], 1, [b"\x01\x02"]),
        (
            "list{Buffer,Buffer}",
            [Buffer(b"\x01\x02"), Buffer(b"\x03\x04")],
            2,
            [b"\x01\x02", b"\x03\x04"],
        ),
        ("tuple{Buffer}", (Buffer(b"\x01\x02"),), 1, [b"\x01\x02"]),
        (
            "tuple{Buffer,Buffer}",
            (Buffer(b"\x01\x02"), Buffer(b"\x03\x04")),
            2,
            [b"\x01\x02", b"\x03\x04"],
        ),
        ("Struct{Buffer}", _Holder(Buffer(b"\x01\x02"), 3), 1, [b"\x01\x02"]),
        ("map{Buffer}", {"data": Buffer(b"\x01\x02"), "i": 3}, 1, [b"\x01\x02"]),
    ]


@pytest.mark.parametrize(
    "name, data, count, binary", _attach_cases(), ids=[c[0] for c in _attach_cases()]
)
def test_attach_buffers(name, data, count, binary):
    found, index = attach_buffers(data, 0)
    assert index == count
    assert found == binary


def test_attach_buffers_marks_and_numbers_from_start():
    first, second = Buffer(b"a"), Buffer(b"b")
    found, index = attach_buffers([first, {"x": second}], 5)
    assert index == 7
    assert (first.num, first.is_binary) == (5, True)
    assert (second.num, second.is_binary) == (6, True)
    assert found == [b"a", b"b"]


def test_encode_without_buffers_keeps_plain_type():
    writer = _FakeWriter()
    Encoder(writer).encode(Header(PacketType.EVENT), "ping")
    assert writer.frames == [(FrameType.TEXT, b'2["ping"]\n')]


def test_encode_escapes_html_characters():
    writer = _FakeWriter()
    Encoder(writer).encode(Header(PacketType.EVENT), "<b>")
    assert writer.frames[0][1] == b'2["\\u003cb\\u003e"]\n'