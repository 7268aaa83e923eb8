# lanmouse

`lanmouse` holds the pieces a frontend of a LAN mouse and keyboard
sharing service needs, using only the Python standard library:

- the JSON-lines channel between the running service and its frontends,
  with a blocking client, an asyncio client and an asyncio listener for
  the service side;
- the compact binary protocol that carries pointer and keyboard events,
  enter/leave/ack handshakes and ping/pong keep-alives between devices;
- a toolkit-independent model of the frontend: client and key objects,
  list rows, the main window state and the authorization dialogs, kept
  up to date by the events the service sends.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## What this package does not do

- It does not capture or emulate input and is not the sharing service
  itself; it only talks to a service over its frontend socket.
- It has no graphical interface. `lanmouse.window.Window` and the rows and
  dialogs hold the state a window would show (client list, toasts,
  placeholders, visibility flags), but nothing is drawn.

## The `lanmouse-frontend` command

```
lanmouse-frontend [--socket-path PATH]
```

It waits until the service's socket accepts a connection, then feeds every
event the service sends into a `Window` model. When the event stream ends
or fails it exits with status 1. Since it draws nothing, it is mostly
useful as a headless client that keeps the frontend state in sync.

On Linux the socket is `lan-mouse-socket.sock` in `$XDG_RUNTIME_DIR`; on
macOS it is in `~/Library/Caches`. `lanmouse.ipc.default_socket_path`
works out the path and raises `SocketPathError` when the needed
environment variable is missing. On Windows the channel uses TCP on
`127.0.0.1:5252` instead.

## Library use

### Shared types — `lanmouse.ipc`

`Position` (left, right, top, bottom, with `opposite()` and
`Position.parse()`, which raises `PositionParseError`), `ClientConfig` and
`ClientState` (each with `to_json()` / `from_json()`), `Status` (true when
enabled), `DEFAULT_PORT` (4242), and the errors rooted at `IpcError`:
`InvalidMessageError`, `SocketPathError`, `IpcConnectionError`,
`ConnectionTimeoutError`, `IpcListenerCreationError` and
`AlreadyRunningError`.

```python
from lanmouse.ipc import Position

Position.parse("left").opposite()   # Position.RIGHT
str(Position.parse("top"))          # "top"
```

### Requests and events — `lanmouse.messages`

One dataclass per request a frontend can send (`ActivateRequest`,
`CreateRequest`, `ChangePortRequest`, `DeleteRequest`, `EnumerateRequest`,
`ResolveDnsRequest`, `UpdateHostnameRequest`, `UpdatePortRequest`,
`UpdatePositionRequest`, `UpdateFixIpsRequest`, `EnableCaptureRequest`,
`EnableEmulationRequest`, `SyncRequest`, `AuthorizeKeyRequest`,
`RemoveAuthorizedKeyRequest`, `UpdateEnterHookRequest`) and per event the
service reports (`CreatedEvent`, `NoSuchClientEvent`, `StateEvent`,
`DeletedEvent`, `PortChangedEvent`, `EnumerateEvent`, `ErrorEvent`,
`CaptureStatusEvent`, `EmulationStatusEvent`, `AuthorizedUpdatedEvent`,
`PublicKeyFingerprintEvent`, `DeviceConnectedEvent`, `DeviceEnteredEvent`,
`IncomingDisconnectedEvent`, `ConnectionAttemptEvent`).

`encode_request` / `decode_request` and `encode_event` / `decode_event`
turn them into single JSON lines and back; malformed lines raise
`InvalidMessageError`.

### Talking to the service

```python
from lanmouse.connect import connect
from lanmouse.messages import CreateRequest

reader, writer = connect()
writer.request(CreateRequest())
for event in reader:
    print(event)
```

`connect()` retries until the service is reachable, doubling the delay
between attempts up to one second. `FrontendEventReader.next_event()`
returns `None` once the service closes the connection.

`lanmouse.connect_async.connect_async(timeout=None, socket_path=None)`
does the same under asyncio, returning an `AsyncFrontendEventReader` to
use with `async for` and an `AsyncFrontendRequestWriter`; with a timeout
it raises `ConnectionTimeoutError` if the service does not come up in
time.

On the service side, `await lanmouse.listen.AsyncFrontendListener.create()`
binds the socket, removing one left behind by a stopped service and
raising `AlreadyRunningError` if another instance answers on it. Iterating
it with `async for` yields the requests of every connected frontend; a new
connection is reported as a `SyncRequest`, and an invalid request line is
raised without ending the iteration. `broadcast(event)` sends an event to
every frontend and drops those that fail; `close()` disconnects everyone
and removes the socket.

### Network protocol — `lanmouse.proto`

Events encode into at most 21 big-endian bytes (`MAX_EVENT_SIZE`):

```python
from lanmouse import proto

data = proto.encode(proto.Ack(7))
str(proto.decode(data))   # "Ack(7)"
```

The events are `Enter`, `Leave`, `Ack`, `Ping`, `Pong` and `Input`, which
wraps `PointerMotion`, `PointerButton`, `PointerAxis`,
`PointerAxisDiscrete120`, `KeyboardKey` or `KeyboardModifiers`. Unknown
event types, unknown positions and truncated data raise
`proto.ProtocolError`.

### Frontend model

- `lanmouse.models`: `Signal` (connect, block, unblock, emit),
  `ClientObject`, whose property changes are notified to
  `connect_notify` handlers, `ClientData` and `KeyObject`.
- `lanmouse.rows`: `ClientRow` and `KeyRow`, which mirror their objects
  and turn user edits into request signals; `position_to_index` and
  `index_to_position` map positions to selector indices.
- `lanmouse.dialogs`: `AuthorizationDialog` and `FingerprintDialog`.
- `lanmouse.window`: `Window`, which applies service updates and sends
  user actions as requests through any object with a `request()` method.
- `lanmouse.app`: `handle_event(window, event)` applies one event,
  `run(window, reader)` applies a whole stream and raises
  `FrontendExitError` when it ends, and `main()` is the command above.