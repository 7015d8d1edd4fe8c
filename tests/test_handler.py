import uuid

import pytest

from socketweave.handler import (
    DecodeArgsError,
    ErrorMessage,
    HandlerDispatchError,
    new_ack_func,
    new_event_func,
    new_v4_uuid,
)


class Conn:
    pass


def _no_args():
    return None


def _int_only(n: int):
    return None


def _returns_error() -> Exception:
    return Exception("x")


def _conn_only(c: Conn):
    return None


def _conn_int(c: Conn, n: int):
    return None


def _conn_int_error(c: Conn, n: int) -> Exception:
    return Exception("x")


@pytest.mark.parametrize("f", [1, _no_args, _int_only, _returns_error])
def test_new_event_func_rejects(f):
    with pytest.raises(TypeError):
        new_event_func(f)


@pytest.mark.parametrize(
    "f, expected",
    [
        (_conn_only, []),
        (_conn_int, [int]),
        (_conn_int_error, [int]),
    ],
)
def test_new_event_func_accepts(f, expected):
    handler = new_event_func(f)
    assert handler.arg_types == expected
    assert handler.func is f


def test_new_event_func_accepts_unannotated_connection():
    handler = new_event_func(lambda conn, value: value)
    assert len(handler.arg_types) == 1


def test_new_ack_func_rejects_non_callable():
    with pytest.raises(TypeError):
        new_ack_func(1)


def _ack_int_error(n: int) -> Exception:
    return Exception("x")


@pytest.mark.parametrize(
    "f, expected",
    [
        (_no_args, []),
        (_int_only, [int]),
        (_ack_int_error, [int]),
    ],
)
def test_new_ack_func(f, expected):
    assert new_ack_func(f).arg_types == expected


def _return_one():
    return 1


def _int_return_one(n: int):
    return 1


@pytest.mark.parametrize(
    "f, args, expected",
    [
        (_no_args, [], []),
        (_int_only, [1], []),
        (_return_one, [], [1]),
        (_int_return_one, [1], [1]),
    ],
)
def test_handler_call(f, args, expected):
    assert new_ack_func(f).call(*args) == expected


def test_handler_call_wrong_arguments():
    with pytest.raises(HandlerDispatchError):
        new_ack_func(_no_args).call(1)


def test_handler_call_wraps_exception():
    def boom():
        raise RuntimeError("broken")

    with pytest.raises(HandlerDispatchError) as info:
        new_ack_func(boom).call()
    assert "broken" in str(info.value)
    assert isinstance(info.value.__cause__, RuntimeError)


def test_handler_call_spreads_tuple():
    handler = new_ack_func(lambda: (1, "two"))
    assert handler.call() == [1, "two"]


def test_error_message_text():
    err = ErrorMessage("/chat", ValueError("bad"))
    assert str(err) == "error in namespace: (/chat) with error: (bad)"
    assert err.namespace == "/chat"


def test_default_error_messages():
    assert str(HandlerDispatchError()) == "handler dispatch error"
    assert str(DecodeArgsError()) == "decode args error"


def test_new_v4_uuid():
    first = new_v4_uuid()
    second = new_v4_uuid()
    assert uuid.UUID(first).version == 4
    assert first != second