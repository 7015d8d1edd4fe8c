"""Room management and broadcasting shared between servers through Redis."""

from __future__ import annotations

import base64
import dataclasses
import json
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import redis

from socketweave import log
from socketweave.handler import new_v4_uuid
from socketweave.parser.buffer import Buffer

ROOM_LEN_REQUEST = "0"
CLEAR_ROOM_REQUEST = "1"
ALL_ROOMS_REQUEST = "2"

_SUBSCRIPTION_TYPES = ("subscribe", "unsubscribe", "psubscribe", "punsubscribe")


@dataclass
class _PendingRequest:
    """A request published to all servers, waiting for their replies."""

    num_sub: int
    msg_count: int = 0
    connections: int = 0
    rooms: set[str] = field(default_factory=set)
    done: threading.Event = field(default_factory=threading.Event)
    lock: threading.Lock = field(default_factory=threading.Lock)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Buffer):
        return obj.as_dict()
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


def _dumps(document: Any) -> str:
    return json.dumps(
        document, separators=(",", ":"), ensure_ascii=False, default=_json_default
    )


def _text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return "" if value is None else str(value)


class RedisBroadcast:
    """Rooms of one namespace, with broadcasts and room queries shared
    with every other server subscribed to the same Redis.

    Connections must have an ``id`` attribute and an ``emit(event, *args)``
    method.
    """

    def __init__(
        self,
        nsp: str,
        client: Any = None,
        *,
        prefix: str = "socket.io",
        host: str = "127.0.0.1",
        port: int = 6379,
        password: str | None = None,
        db: int = 0,
        request_timeout: float | None = None,
        start: bool = True,
    ) -> None:
        if client is None:
            client = redis.Redis(host=host, port=port, password=password or None, db=db)
        self._client = client
        self.nsp = nsp
        self.uid = new_v4_uuid()
        self.key = f"{prefix}#{nsp}#{self.uid}"
        self.request_channel = f"{prefix}-request#{nsp}"
        self.response_channel = f"{prefix}-response#{nsp}"
        self.request_timeout = request_timeout

        self._rooms: dict[str, dict[Any, Any]] = {}
        self._lock = threading.Lock()
        self._requests: dict[str, _PendingRequest] = {}
        self._requests_lock = threading.Lock()

        self._pubsub = client.pubsub()
        self._pubsub.psubscribe(f"{prefix}#{nsp}#*")
        self._pubsub.subscribe(self.request_channel, self.response_channel)

        self._thread: threading.Thread | None = None
        if start:
            self._thread = threading.Thread(target=self.serve, daemon=True)
            self._thread.start()

    # Local room management

    def join(self, room: str, connection: Any) -> None:
        """Add ``connection`` to ``room``."""
        with self._lock:
            self._rooms.setdefault(room, {})[connection.id] = connection

    def leave(self, room: str, connection: Any) -> None:
        """Remove ``connection`` from ``room``; an emptied room is dropped."""
        with self._lock:
            members = self._rooms.get(room)
            if members is None:
                return
            members.pop(connection.id, None)
            if not members:
                del self._rooms[room]

    def leave_all(self, connection: Any) -> None:
        """Remove ``connection`` from every room."""
        with self._lock:
            for room in list(self._rooms):
                members = self._rooms[room]
                members.pop(connection.id, None)
                if not members:
                    del self._rooms[room]

    def clear(self, room: str) -> None:
        """Drop ``room`` here and ask the other servers to drop it too."""
        with self._lock:
            self._rooms.pop(room, None)
        self._publish(
            self.request_channel,
            {
                "RequestType": CLEAR_ROOM_REQUEST,
                "RequestID": new_v4_uuid(),
                "Room": room,
                "UUID": self.uid,
            },
        )

    def send(self, room: str, event: str, *args: Any) -> None:
        """Emit ``event`` to the room's connections on every server."""
        self._send_local(room, event, args)
        self._publish_message(room, event, args)

    def send_all(self, event: str, *args: Any) -> None:
        """Emit ``event`` to the connections of all rooms on every server."""
        self._send_all_local(event, args)
        self._publish_message("", event, args)

    def for_each(self, room: str, f: Callable[[Any], Any]) -> None:
        """Call ``f`` with each local connection in ``room``."""
        with self._lock:
            members = list(self._rooms.get(room, {}).values())
        for connection in members:
            f(connection)

    def rooms(self, connection: Any = None) -> list[str]:
        """Rooms ``connection`` is in, or every room on all servers if None."""
        if connection is None:
            return self.all_rooms()
        with self._lock:
            return [room for room, members in self._rooms.items() if connection.id in members]

    # Queries answered by all servers

    def room_len(self, room: str) -> int:
        """Number of connections in ``room`` over all servers; -1 on failure."""
        request = {
            "RequestType": ROOM_LEN_REQUEST,
            "RequestID": new_v4_uuid(),
            "Room": room,
        }
        try:
            num_sub = self._num_sub(self.request_channel)
        except (redis.RedisError, ValueError):
            return -1

        pending = _PendingRequest(num_sub)
        with self._requests_lock:
            self._requests[request["RequestID"]] = pending
        try:
            try:
                self._client.publish(self.request_channel, _dumps(request))
            except redis.RedisError:
                return -1
            self._wait(pending)
            return pending.connections
        finally:
            with self._requests_lock:
                self._requests.pop(request["RequestID"], None)

    def all_rooms(self) -> list[str]:
        """Sorted names of the rooms held by any server."""
        request = {"RequestType": ALL_ROOMS_REQUEST, "RequestID": new_v4_uuid()}
        try:
            num_sub = self._num_sub(self.request_channel)
        except (redis.RedisError, ValueError):
            num_sub = 0

        pending = _PendingRequest(num_sub)
        with self._requests_lock:
            self._requests[request["RequestID"]] = pending
        try:
            try:
                self._client.publish(self.request_channel, _dumps(request))
            except redis.RedisError:
                return []
            self._wait(pending)
            return sorted(pending.rooms)
        finally:
            with self._requests_lock:
                self._requests.pop(request["RequestID"], None)

    # Incoming messages

    def handle(self, message: dict[str, Any]) -> bool:
        """Process one pub/sub message; return False when serving should stop."""
        kind = _text(message.get("type"))
        if kind in _SUBSCRIPTION_TYPES:
            return message.get("data") != 0
        if kind not in ("message", "pmessage"):
            return True

        channel = _text(message.get("channel"))
        data = message.get("data")
        if channel == self.request_channel:
            self._on_request(data)
            return True
        if channel == self.response_channel:
            self._on_response(data)
            return True
        try:
            self._on_message(channel, data)
        except ValueError as exc:
            log.error("redis broadcast message:", exc)
            return False
        return True

    def serve(self) -> None:
        """Handle subscribed messages until unsubscribed or an error occurs."""
        try:
            for message in self._pubsub.listen():
                if not self.handle(message):
                    return
        except (redis.RedisError, OSError, ValueError) as exc:
            log.error("redis broadcast serve:", exc)

    def close(self) -> None:
        """Unsubscribe from every channel and release the subscription."""
        try:
            self._pubsub.punsubscribe()
            self._pubsub.unsubscribe()
        finally:
            self._pubsub.close()

    # Internals

    def _wait(self, pending: _PendingRequest) -> None:
        if not pending.done.wait(self.request_timeout):
            raise TimeoutError("no reply from every subscribed server")

    def _num_sub(self, channel: str) -> int:
        reply = self._client.pubsub_numsub(channel)
        try:
            count = reply[0][1]
        except (IndexError, TypeError, KeyError) as exc:
            raise ValueError("unexpected reply to PUBSUB NUMSUB") from exc
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError("redis reply cast to int error")
        return count

    def _publish(self, channel: str, document: Any) -> None:
        try:
            payload = _dumps(document)
        except (TypeError, ValueError):
            return
        try:
            self._client.publish(channel, payload)
        except redis.RedisError as exc:
            log.error("redis publish:", exc)

    def _publish_message(self, room: str, event: str, args: tuple[Any, ...]) -> None:
        self._publish(self.key, {"args": list(args), "opts": [room, event]})

    def _send_local(self, room: str, event: str, args: Any) -> None:
        with self._lock:
            members = list(self._rooms.get(room, {}).values())
        for connection in members:
            connection.emit(event, *args)

    def _send_all_local(self, event: str, args: Any) -> None:
        with self._lock:
            members = [c for room in self._rooms.values() for c in room.values()]
        for connection in members:
            connection.emit(event, *args)

    def _local_rooms(self) -> list[str]:
        with self._lock:
            return list(self._rooms)

    def _on_message(self, channel: str, data: Any) -> None:
        parts = channel.split("#")
        if len(parts) < 2:
            raise ValueError("invalid broadcast channel")
        if parts[-2] != self.nsp or parts[-1] == self.uid:
            return

        try:
            document = json.loads(_text(data))
        except json.JSONDecodeError as exc:
            raise ValueError("invalid broadcast message") from exc
        if not isinstance(document, dict):
            raise ValueError("invalid broadcast message")
        args = document.get("args") or []
        opts = document.get("opts") or []
        if not isinstance(args, list) or not isinstance(opts, list):
            raise ValueError("invalid broadcast message")

        room = opts[0] if opts else None
        if not isinstance(room, str):
            raise ValueError("invalid room")
        event = opts[1] if len(opts) > 1 else None
        if not isinstance(event, str):
            raise ValueError("invalid event")

        if room:
            self._send_local(room, event, args)
        else:
            self._send_all_local(event, args)

    def _on_request(self, data: Any) -> None:
        try:
            request = json.loads(_text(data))
        except json.JSONDecodeError:
            return
        if not isinstance(request, dict) or not all(
            isinstance(v, str) or v is None for v in request.values()
        ):
            return
        request = {key: value or "" for key, value in request.items()}

        kind = request.get("RequestType", "")
        if kind == ROOM_LEN_REQUEST:
            with self._lock:
                count = len(self._rooms.get(request.get("Room", ""), {}))
            self._publish(
                self.response_channel,
                {
                    "RequestType": kind,
                    "RequestID": request.get("RequestID", ""),
                    "Connections": count,
                },
            )
        elif kind == ALL_ROOMS_REQUEST:
            self._publish(
                self.response_channel,
                {
                    "RequestType": kind,
                    "RequestID": request.get("RequestID", ""),
                    "Rooms": self._local_rooms(),
                },
            )
        elif kind == CLEAR_ROOM_REQUEST:
            if request.get("UUID", "") == self.uid:
                return
            with self._lock:
                self._rooms.pop(request.get("Room", ""), None)

    def _on_response(self, data: Any) -> None:
        try:
            response = json.loads(_text(data))
        except json.JSONDecodeError:
            return
        if not isinstance(response, dict):
            return
        request_id = response.get("RequestID")
        if not isinstance(request_id, str):
            return
        with self._requests_lock:
            pending = self._requests.get(request_id)
        if pending is None:
            return

        kind = response.get("RequestType")
        if kind == ROOM_LEN_REQUEST:
            connections = response.get("Connections")
            if isinstance(connections, bool) or not isinstance(connections, (int, float)):
                return
            with pending.lock:
                pending.msg_count += 1
                pending.connections += int(connections)
                finished = pending.msg_count == pending.num_sub
            if finished:
                pending.done.set()
        elif kind == ALL_ROOMS_REQUEST:
            rooms = response.get("Rooms")
            if not isinstance(rooms, list):
                pending.done.set()
                return
            with pending.lock:
                pending.msg_count += 1
                pending.rooms.update(str(room) for room in rooms)
                finished = pending.msg_count == pending.num_sub
            if finished:
                pending.done.set()