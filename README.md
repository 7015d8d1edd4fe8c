# socketweave

Building blocks for a Socket.IO server: the packet format, per-namespace
dispatch of callbacks, engine.io handshake helpers, and a room broadcaster
shared between processes through Redis.

## Install

```
pip install socketweave
```

## Modules

- `socketweave.parser.packet`: `PacketType`, `FrameType`, the `Header` and
  `Payload` dataclasses, and the errors `ParserError`,
  `InvalidPacketTypeError`, `InvalidBinaryBufferTypeError` and
  `InvalidFirstPacketTypeError`.
- `socketweave.parser.buffer`: `Buffer`, binary data sent as its own frame.
  `as_dict()`, `to_json()` and `Buffer.from_json(...)` give its JSON form:
  `{"type":"Buffer","data":[...]}`, or `{"_placeholder":true,"num":N}` once
  it has been attached for sending.
- `socketweave.parser.encoder`: `Encoder` and `attach_buffers(value, start)`.
- `socketweave.parser.decoder`: `Decoder`.
- `socketweave.handler`: `new_event_func`, `new_ack_func`, `FuncHandler`,
  `ErrorMessage`, `HandlerDispatchError`, `DecodeArgsError` and
  `new_v4_uuid()`.
- `socketweave.namespace_handler`: `NamespaceHandler` and the thread-safe
  registry `NamespaceHandlers`.
- `socketweave.engineio.parameters`: `ConnParameters` and
  `read_conn_parameters`.
- `socketweave.engineio.transport_manager`: `TransportManager` and
  `InvalidFrameError`.
- `socketweave.engineio.mime`: `mime_is_support_binary` and `Addr`.
- `socketweave.engineio.clock`: `timestamp()` and `timestamp_from_clock()`.
- `socketweave.engineio.sessions`: `SessionManager` and `DefaultIDGenerator`.
- `socketweave.redis_broadcast`: `RedisBroadcast`.
- `socketweave.log`: `error(msg, err)` and `info(msg, *args)`. Both log
  through the standard `logging` logger named `socketweave`.

## Encoding a packet

`Encoder` writes to any object with a `write_frame(frame_type, data)` method.
The arguments given to `encode` become the packet's JSON array. For an event,
the event name comes first.

```python
from socketweave.parser.buffer import Buffer
from socketweave.parser.encoder import Encoder
from socketweave.parser.packet import Header, PacketType

class Sink:
    def __init__(self):
        self.frames = []

    def write_frame(self, frame_type, data):
        self.frames.append((frame_type, data))

sink = Sink()
Encoder(sink).encode(Header(type=PacketType.EVENT, namespace="/woot"), "msg", Buffer(b"\x01\x02"))
```

`sink.frames` now holds two frames:

- a text frame, `b'51-/woot,["msg",{"_placeholder":true,"num":0}]\n'`;
- a binary frame, `b"\x01\x02"`.

An event or ack that carries buffers is sent as a binary event or binary
ack. The number of attachments goes before the `-`.

## Decoding a packet

`Decoder` reads from any object whose `next_frame()` returns a
`(FrameType, bytes)` pair and raises `EOFError` when no frames are left.

```python
from socketweave.parser.buffer import Buffer
from socketweave.parser.decoder import Decoder
from socketweave.parser.packet import FrameType

class Source:
    def __init__(self, frames):
        self._frames = iter(frames)

    def next_frame(self):
        try:
            return next(self._frames)
        except StopIteration:
            raise EOFError from None

decoder = Decoder(Source(sink.frames))
header, event = decoder.decode_header()   # EVENT in "/woot", event "msg"
args = decoder.decode_args([Buffer])      # [Buffer(data=b"\x01\x02", ...)]
```

`decode_args` converts each value to the type given for its position. The
supported types are `int`, `float`, `bool`, `str`, lists, dicts, unions,
dataclasses, `Buffer`, and `Any` to keep the value as it is. It reads the
binary attachment frames and puts their data into the matching buffers. A
value that does not fit its type raises `ParserError`.

## Namespace handlers

```python
from socketweave.namespace_handler import NamespaceHandler

handler = NamespaceHandler()
handler.on_event("chat", lambda conn, text: "got " + text)
handler.dispatch_event(conn, "chat", "hi")   # ["got hi"]
handler.dispatch_event(conn, "unknown")      # None
```

Rules for event handlers:

- The first parameter of an event handler receives the connection. If that
  parameter is annotated, the annotation must be a type named `Conn`.
- The annotations of the other parameters are the argument types reported
  by `get_event_types`.
- `dispatch(conn, header, *args)` runs the callbacks set with
  `on_connect`, `on_disconnect` or `on_error`.
- Error packets and unknown packet types raise `InvalidPacketTypeError`.
- A handler that raises is reported as `HandlerDispatchError`.

## Engine.io helpers

```python
import io
from datetime import timedelta
from socketweave.engineio.parameters import ConnParameters, read_conn_parameters

params = ConnParameters(timedelta(seconds=10), timedelta(seconds=5), "abc", ["websocket"])
stream = io.BytesIO()
params.write_to(stream)
# b'{"sid":"abc","upgrades":["websocket"],"pingInterval":10000,"pingTimeout":5000}\n'
stream.seek(0)
assert read_conn_parameters(stream) == params
```

The other helpers:

- `mime_is_support_binary`:
  - returns `True` for `application/octet-stream`;
  - returns `False` for UTF-8 `text/plain`;
  - raises `ValueError` for anything else.
- `TransportManager([...]).upgrade_from(name)` lists the transports
  registered after `name`. Each transport needs a `name` attribute.
- `SessionManager` stores sessions by their `id` attribute. Its `new_id()`
  comes from `DefaultIDGenerator` unless you give another generator. The
  default ids count up in base 36, starting at `"1"`.
- `timestamp()` encodes the current time in nanoseconds as a short
  base-64 string.

## Rooms across processes with Redis

```python
from socketweave.redis_broadcast import RedisBroadcast

rooms = RedisBroadcast("/chat", host="127.0.0.1", port=6379, request_timeout=5.0)
rooms.join("lobby", connection)          # connection has .id and .emit(event, *args)
rooms.send("lobby", "message", "hello")  # local members, and every other server
rooms.room_len("lobby")                  # members on all servers, -1 on failure
rooms.all_rooms()                        # sorted room names from all servers
rooms.close()
```

You can also pass a ready `redis.Redis` client as the second argument.
`prefix`, `password` and `db` choose the channels and the database.

By default a background thread runs `serve()`. With `start=False`, feed
pub/sub messages to `handle(message)` yourself. With no `request_timeout`,
a query waits until every subscribed server has replied. A query that times
out raises `TimeoutError`.

## What this package does not do

There is no HTTP or WebSocket server, no polling or websocket transport, and
no connection or session object to plug into them. `SessionManager`,
`NamespaceHandler` and `RedisBroadcast` work with whatever objects you give
them. The package does not accept connections or carry frames over a
network. Your own server code has to do that.

## Running the tests

```
pip install -e ".[test]"
pytest
```