import pytest

from lanmouse.proto import (
    MAX_EVENT_SIZE,
    Ack,
    Enter,
    EventType,
    Input,
    KeyboardKey,
    KeyboardModifiers,
    Leave,
    Ping,
    PointerAxis,
    PointerAxisDiscrete120,
    PointerButton,
    PointerMotion,
    Pong,
    Position,
    ProtocolError,
    decode,
    encode,
    event_type,
)

EVENTS = [
    Input(PointerMotion(time=12, dx=1.5, dy=-2.25)),
    Input(PointerButton(time=13, button=272, state=1)),
    Input(PointerAxis(time=14, axis=1, value=-15.0)),
    Input(PointerAxisDiscrete120(axis=0, value=-120)),
    Input(KeyboardKey(time=15, key=30, state=1)),
    Input(KeyboardModifiers(depressed=1, latched=2, locked=16, group=0)),
    Ping(),
    Pong(True),
    Pong(False),
    Enter(Position.LEFT),
    Enter(Position.BOTTOM),
    Leave(42),
    Ack(42),
]


@pytest.mark.parametrize("event", EVENTS)
def test_round_trip(event):
    assert decode(encode(event)) == event


@pytest.mark.parametrize("event", EVENTS)
def test_round_trip_in_zeroed_buffer(event):
    encoded = encode(event)
    buf = encoded + bytes(MAX_EVENT_SIZE - len(encoded))
    assert decode(buf) == event


@pytest.mark.parametrize("event", EVENTS)
def test_encoded_fits_and_leads_with_type(event):
    encoded = encode(event)
    assert len(encoded) <= MAX_EVENT_SIZE
    assert encoded[0] == event_type(event)


def test_motion_is_largest_event():
    assert len(encode(EVENTS[0])) == MAX_EVENT_SIZE


def test_ping_wire_bytes():
    assert encode(Ping()) == b"\x06"


def test_enter_wire_bytes():
    assert encode(Enter(Position.TOP)) == b"\x08\x02"


def test_leave_wire_bytes_big_endian():
    assert encode(Leave(1)) == b"\x09\x00\x00\x00\x01"


def test_event_type_ids_are_sequential():
    assert [EventType(i) for i in range(len(EventType))] == list(EventType)
    assert EventType(0) == EventType.POINTER_MOTION
    assert EventType(10) == EventType.ACK


def test_event_type_mapping():
    assert event_type(Input(KeyboardKey(0, 1, 0))) == EventType.KEYBOARD_KEY
    assert event_type(Ack(0)) == EventType.ACK
    assert event_type(Input(PointerAxisDiscrete120(0, 0))) == EventType.POINTER_AXIS_VALUE120


def test_event_type_rejects_other():
    with pytest.raises(TypeError):
        event_type("ping")


def test_pong_nonzero_is_alive():
    assert decode(bytes([EventType.PONG, 7])) == Pong(True)


def test_invalid_event_id():
    with pytest.raises(ProtocolError):
        decode(bytes([len(EventType)]))


def test_invalid_position():
    with pytest.raises(ProtocolError):
        decode(bytes([EventType.ENTER, len(Position)]))


def test_truncated_event():
    with pytest.raises(ProtocolError):
        decode(encode(Leave(7))[:3])


def test_empty_event():
    with pytest.raises(ProtocolError):
        decode(b"")


def test_encode_out_of_range():
    with pytest.raises(ProtocolError):
        encode(Leave(-1))


def test_position_strings():
    assert [str(Position(i)) for i in range(4)] == ["left", "right", "top", "bottom"]


def test_display_forms():
    assert str(Ping()) == "ping"
    assert str(Enter(Position.RIGHT)).startswith("Enter(")
    assert "right" in str(Enter(Position.RIGHT))
    assert "42" in str(Leave(42)) and str(Leave(42)).startswith("Leave(")
    assert str(Ack(3)).startswith("Ack(")
    assert "not available" in str(Pong(False))
    assert "not available" not in str(Pong(True))
    motion = PointerMotion(1, 2.0, 3.0)
    assert str(Input(motion)) == str(motion)