"""Binary network protocol for input and control events."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

# type: u8, time: u32, dx: f64, dy: f64
MAX_EVENT_SIZE = 1 + 4 + 2 * 8


class ProtocolError(ValueError):
    """Data violates the protocol."""


class Position(IntEnum):
    """Side of the screen the cursor entered from."""

    LEFT = 0
    RIGHT = 1
    TOP = 2
    BOTTOM = 3

    def __str__(self) -> str:
        return self.name.lower()


class EventType(IntEnum):
    """Wire identifiers of protocol events."""

    POINTER_MOTION = 0
    POINTER_BUTTON = 1
    POINTER_AXIS = 2
    POINTER_AXIS_VALUE120 = 3
    KEYBOARD_KEY = 4
    KEYBOARD_MODIFIERS = 5
    PING = 6
    PONG = 7
    ENTER = 8
    LEAVE = 9
    ACK = 10


@dataclass(frozen=True)
class PointerMotion:
    time: int
    dx: float
    dy: float


@dataclass(frozen=True)
class PointerButton:
    time: int
    button: int
    state: int


@dataclass(frozen=True)
class PointerAxis:
    time: int
    axis: int
    value: float


@dataclass(frozen=True)
class PointerAxisDiscrete120:
    axis: int
    value: int


@dataclass(frozen=True)
class KeyboardKey:
    time: int
    key: int
    state: int


@dataclass(frozen=True)
class KeyboardModifiers:
    depressed: int
    latched: int
    locked: int
    group: int


InputEvent = Union[
    PointerMotion,
    PointerButton,
    PointerAxis,
    PointerAxisDiscrete120,
    KeyboardKey,
    KeyboardModifiers,
]


@dataclass(frozen=True)
class Enter:
    """The cursor entered the receiver's region at the given side."""

    position: Position

    def __str__(self) -> str:
        return f"Enter({self.position})"


@dataclass(frozen=True)
class Leave:
    """The cursor left the receiver's region."""

    serial: int

    def __str__(self) -> str:
        return f"Leave({self.serial})"


@dataclass(frozen=True)
class Ack:
    """Acknowledges an Enter or Leave with the same serial."""

    serial: int

    def __str__(self) -> str:
        return f"Ack({self.serial})"


@dataclass(frozen=True)
class Input:
    """An input event to emulate."""

    event: InputEvent

    def __str__(self) -> str:
        return str(self.event)


@dataclass(frozen=True)
class Ping:
    """Liveness probe; answered with Pong."""

    def __str__(self) -> str:
        return "ping"


@dataclass(frozen=True)
class Pong:
    """Answer to Ping; true when emulation is available."""

    alive: bool

    def __str__(self) -> str:
        return f"pong: {'alive' if self.alive else 'not available'}"


ProtoEvent = Union[Enter, Leave, Ack, Input, Ping, Pong]

_FORMATS = {
    EventType.POINTER_MOTION: "Idd",
    EventType.POINTER_BUTTON: "III",
    EventType.POINTER_AXIS: "IBd",
    EventType.POINTER_AXIS_VALUE120: "Bi",
    EventType.KEYBOARD_KEY: "IIB",
    EventType.KEYBOARD_MODIFIERS: "IIII",
    EventType.PING: "",
    EventType.PONG: "B",
    EventType.ENTER: "B",
    EventType.LEAVE: "I",
    EventType.ACK: "I",
}


def event_type(event: ProtoEvent) -> EventType:
    """Return the wire identifier of an event."""
    match event:
        case Input(PointerMotion()):
            return EventType.POINTER_MOTION
        case Input(PointerButton()):
            return EventType.POINTER_BUTTON
        case Input(PointerAxis()):
            return EventType.POINTER_AXIS
        case Input(PointerAxisDiscrete120()):
            return EventType.POINTER_AXIS_VALUE120
        case Input(KeyboardKey()):
            return EventType.KEYBOARD_KEY
        case Input(KeyboardModifiers()):
            return EventType.KEYBOARD_MODIFIERS
        case Ping():
            return EventType.PING
        case Pong():
            return EventType.PONG
        case Enter():
            return EventType.ENTER
        case Leave():
            return EventType.LEAVE
        case Ack():
            return EventType.ACK
    raise TypeError(f"not a protocol event: {event!r}")


def _fields(event: ProtoEvent) -> tuple:
    match event:
        case Input(PointerMotion(time, dx, dy)):
            return time, dx, dy
        case Input(PointerButton(time, button, state)):
            return time, button, state
        case Input(PointerAxis(time, axis, value)):
            return time, axis, value
        case Input(PointerAxisDiscrete120(axis, value)):
            return axis, value
        case Input(KeyboardKey(time, key, state)):
            return time, key, state
        case Input(KeyboardModifiers(depressed, latched, locked, group)):
            return depressed, latched, locked, group
        case Ping():
            return ()
        case Pong(alive):
            return (1 if alive else 0,)
        case Enter(position):
            return (int(position),)
        case Leave(serial) | Ack(serial):
            return (serial,)
    raise TypeError(f"not a protocol event: {event!r}")


def encode(event: ProtoEvent) -> bytes:
    """Encode an event into its big-endian wire form."""
    kind = event_type(event)
    try:
        return struct.pack(">B" + _FORMATS[kind], kind, *_fields(event))
    except struct.error as exc:
        raise ProtocolError(f"cannot encode {event!r}: {exc}") from exc


def decode(data: bytes) -> ProtoEvent:
    """Decode an event; bytes after the event are ignored."""
    buf = bytes(data)
    if not buf:
        raise ProtocolError("empty event")
    raw = buf[0]
    try:
        kind = EventType(raw)
    except ValueError:
        raise ProtocolError(f"invalid event id: `{raw}`") from None
    try:
        values = struct.unpack_from(">" + _FORMATS[kind], buf, 1)
    except struct.error as exc:
        raise ProtocolError(f"truncated {kind.name.lower()} event") from exc

    match kind:
        case EventType.POINTER_MOTION:
            return Input(PointerMotion(*values))
        case EventType.POINTER_BUTTON:
            return Input(PointerButton(*values))
        case EventType.POINTER_AXIS:
            return Input(PointerAxis(*values))
        case EventType.POINTER_AXIS_VALUE120:
            return Input(PointerAxisDiscrete120(*values))
        case EventType.KEYBOARD_KEY:
            return Input(KeyboardKey(*values))
        case EventType.KEYBOARD_MODIFIERS:
            return Input(KeyboardModifiers(*values))
        case EventType.PING:
            return Ping()
        case EventType.PONG:
            return Pong(values[0] != 0)
        case EventType.ENTER:
            try:
                return Enter(Position(values[0]))
            except ValueError:
                raise ProtocolError(f"invalid position: `{values[0]}`") from None
        case EventType.LEAVE:
            return Leave(values[0])
        case _:
            return Ack(values[0])