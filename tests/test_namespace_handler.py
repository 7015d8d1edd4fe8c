import pytest

from socketweave.handler import HandlerDispatchError
from socketweave.namespace_handler import NamespaceHandler, NamespaceHandlers
from socketweave.parser.packet import Header, InvalidPacketTypeError, PacketType


class Conn:
    pass


def test_namespace_handler_callbacks():
    handler = NamespaceHandler()
    connected = []
    reasons = []
    errors = []
    handler.on_connect(lambda c: connected.append(c))
    handler.on_disconnect(lambda c, reason: reasons.append(reason))
    handler.on_error(lambda c, err: errors.append(err))

    conn = Conn()
    assert handler.dispatch(conn, Header(PacketType.CONNECT)) is None
    assert connected == [conn]

    assert handler.dispatch(conn, Header(PacketType.DISCONNECT), "disconnect") is None
    assert reasons == ["disconnect"]

    with pytest.raises(InvalidPacketTypeError):
        handler.dispatch(conn, Header(PacketType.ERROR), "failed")
    assert str(errors[0]) == "failed"

    assert handler.get_event_types("not_exist") is None
    assert handler.dispatch_event(conn, "not_exist") is None


def test_error_dispatch_default_message():
    handler = NamespaceHandler()
    errors = []
    handler.on_error(lambda c, err: errors.append(err))
    with pytest.raises(InvalidPacketTypeError):
        handler.dispatch(Conn(), Header(PacketType.ERROR))
    assert isinstance(errors[0], HandlerDispatchError)
    assert str(errors[0]) == "parser error dispatch"


def test_dispatch_without_callbacks():
    handler = NamespaceHandler()
    assert handler.dispatch(Conn(), Header(PacketType.CONNECT)) is None
    with pytest.raises(InvalidPacketTypeError):
        handler.dispatch(Conn(), Header(PacketType.EVENT))


def test_connect_callback_can_refuse():
    handler = NamespaceHandler()

    def refuse(c):
        raise PermissionError("nope")

    handler.on_connect(refuse)
    with pytest.raises(PermissionError):
        handler.dispatch(Conn(), Header(PacketType.CONNECT))


def test_namespace_handler_event():
    handler = NamespaceHandler()

    def handled(c: Conn, text: str) -> str:
        return "handled " + text

    def nothing(c: Conn):
        return None

    handler.on_event("e", handled)
    handler.on_event("n", nothing)

    assert handler.get_event_types("e") == [str]
    assert handler.dispatch_event(Conn(), "e", "str") == ["handled str"]
    assert handler.dispatch_event(Conn(), "n") == []


def test_on_event_rejects_bad_handler():
    handler = NamespaceHandler()
    with pytest.raises(TypeError):
        handler.on_event("e", 1)
    assert handler.get_event_types("e") is None


def test_broadcast_is_kept():
    marker = object()
    assert NamespaceHandler(marker).broadcast is marker


def test_namespace_handlers_registry():
    registry = NamespaceHandlers()
    assert registry.get("/chat") is None
    handler = NamespaceHandler()
    registry.set("/chat", handler)
    assert registry.get("/chat") is handler
    replacement = NamespaceHandler()
    registry.set("/chat", replacement)
    assert registry.get("/chat") is replacement