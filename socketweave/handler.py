"""Event and acknowledgement callbacks, and the errors raised around them."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

ALIAS_ROOT_NAMESPACE = "/"
ROOT_NAMESPACE = ""

CLIENT_DISCONNECT_MSG = "client namespace disconnect"

DEFAULT_HEADER_TYPES = (str,)

_CONN_TYPE_NAME = "Conn"
_EMPTY = object()


class HandlerDispatchError(Exception):
    """A handler could not be dispatched or failed while running."""

    def __init__(self, message: str = "handler dispatch error") -> None:
        super().__init__(message)


class DecodeArgsError(Exception):
    """The arguments of a packet could not be decoded for its handler."""

    def __init__(self, message: str = "decode args error") -> None:
        super().__init__(message)


class ErrorMessage(Exception):
    """An error tied to the namespace it happened in."""

    def __init__(self, namespace: str, err: BaseException | str) -> None:
        super().__init__(namespace, err)
        self.namespace = namespace
        self.err = err

    def __str__(self) -> str:
        return f"error in namespace: ({self.namespace}) with error: ({self.err})"


@dataclass
class FuncHandler:
    """A callback together with the types of the arguments it takes."""

    func: Callable[..., Any]
    arg_types: list[Any] = field(default_factory=list)

    def call(self, *args: Any) -> list[Any]:
        """Run the callback and return its results as a list.

        A callback returning ``None`` gives an empty list and a tuple is
        spread into several results. Any failure is raised as
        :class:`HandlerDispatchError`.
        """
        try:
            result = self.func(*args)
        except Exception as exc:
            raise HandlerDispatchError(f"event call error: {exc}") from exc
        if result is None:
            return []
        if isinstance(result, tuple):
            return list(result)
        return [result]


def _underlying_function(f: Callable[..., Any]) -> tuple[Any, int]:
    """Return the plain function behind ``f`` and how many leading parameters it binds."""
    if hasattr(f, "__code__"):
        return f, 0
    inner = getattr(f, "__func__", None)
    if inner is not None and hasattr(inner, "__code__"):
        return inner, 1
    call = getattr(type(f), "__call__", None)
    if call is not None and hasattr(call, "__code__"):
        return call, 1
    raise TypeError("cannot inspect handler")


def _positional_params(f: Callable[..., Any]) -> list[tuple[str, Any]]:
    func, skip = _underlying_function(f)
    code = func.__code__
    names = code.co_varnames[: code.co_argcount][skip:]
    annotations = getattr(func, "__annotations__", None) or {}
    return [(name, annotations.get(name, _EMPTY)) for name in names]


def _arg_type(annotation: Any) -> Any:
    if annotation is _EMPTY or isinstance(annotation, str):
        return Any
    return annotation


def _type_name(annotation: Any) -> str | None:
    if isinstance(annotation, str):
        return annotation.strip().rsplit(".", 1)[-1]
    return getattr(annotation, "__name__", None)


def new_event_func(f: Callable[..., Any]) -> FuncHandler:
    """Wrap an event handler, whose first parameter receives the connection.

    A first parameter that is annotated must be annotated with a type
    named ``Conn``. Raises ``TypeError`` for anything else.
    """
    if not callable(f):
        raise TypeError("event handler must be a function")

    params = _positional_params(f)
    if not params:
        raise TypeError("handler function should be like f(conn, ...)")

    _, first_type = params[0]
    if first_type is not _EMPTY and _type_name(first_type) != _CONN_TYPE_NAME:
        raise TypeError("handler function should be like f(conn: Conn, ...)")

    return FuncHandler(f, [_arg_type(hint) for _, hint in params[1:]])


def new_ack_func(f: Callable[..., Any]) -> FuncHandler:
    """Wrap an acknowledgement callback; every parameter is an argument."""
    if not callable(f):
        raise TypeError("ack callback must be a function")
    return FuncHandler(f, [_arg_type(hint) for _, hint in _positional_params(f)])


def new_v4_uuid() -> str:
    """Return a random version 4 UUID as text."""
    return str(uuid.uuid4())