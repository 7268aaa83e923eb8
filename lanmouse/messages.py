"""Requests and events exchanged between the service and its frontends."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Optional

from lanmouse.ipc import (
    ClientConfig,
    ClientState,
    InvalidMessageError,
    IPAddress,
    Position,
    SocketAddr,
    Status,
    _bool,
    _fail,
    _format_socket_addr,
    _ip_list,
    _object,
    _opt_str,
    _parse_socket_addr,
    _position,
    _status,
    _str,
    _tuple,
    _u16,
    _u64,
    _field,
    _list,
)


class _Message:
    TAG: ClassVar[str] = ""
    UNIT: ClassVar[bool] = False

    def _payload(self) -> Any:
        return None

    @classmethod
    def _from_payload(cls, payload: Any) -> Any:
        return cls()


_REQUESTS: dict[str, type[_Message]] = {}
_EVENTS: dict[str, type[_Message]] = {}


def _registrar(registry: dict[str, type[_Message]]) -> Callable:
    def register(tag: str, unit: bool = False) -> Callable:
        def decorate(cls: type[_Message]) -> type[_Message]:
            cls.TAG = tag
            cls.UNIT = unit
            registry[tag] = cls
            return cls

        return decorate

    return register


_request = _registrar(_REQUESTS)
_event = _registrar(_EVENTS)


def _client_entry(payload: Any) -> tuple[int, ClientConfig, ClientState]:
    handle, config, state = _tuple(payload, 3)
    return _u64(handle), ClientConfig.from_json(config), ClientState.from_json(state)


# ---------------------------------------------------------------- requests


@_request("Activate")
@dataclass
class ActivateRequest(_Message):
    handle: int
    active: bool

    def _payload(self) -> Any:
        return [self.handle, self.active]

    @classmethod
    def _from_payload(cls, payload: Any) -> ActivateRequest:
        handle, active = _tuple(payload, 2)
        return cls(_u64(handle), _bool(active))


@_request("Create", unit=True)
@dataclass
class CreateRequest(_Message):
    pass


@_request("ChangePort")
@dataclass
class ChangePortRequest(_Message):
    port: int

    def _payload(self) -> Any:
        return self.port

    @classmethod
    def _from_payload(cls, payload: Any) -> ChangePortRequest:
        return cls(_u16(payload))


@_request("Delete")
@dataclass
class DeleteRequest(_Message):
    handle: int

    def _payload(self) -> Any:
        return self.handle

    @classmethod
    def _from_payload(cls, payload: Any) -> DeleteRequest:
        return cls(_u64(payload))


@_request("Enumerate")
@dataclass
class EnumerateRequest(_Message):
    def _payload(self) -> Any:
        return []

    @classmethod
    def _from_payload(cls, payload: Any) -> EnumerateRequest:
        _tuple(payload, 0)
        return cls()


@_request("ResolveDns")
@dataclass
class ResolveDnsRequest(_Message):
    handle: int

    def _payload(self) -> Any:
        return self.handle

    @classmethod
    def _from_payload(cls, payload: Any) -> ResolveDnsRequest:
        return cls(_u64(payload))


@_request("UpdateHostname")
@dataclass
class UpdateHostnameRequest(_Message):
    handle: int
    hostname: Optional[str]

    def _payload(self) -> Any:
        return [self.handle, self.hostname]

    @classmethod
    def _from_payload(cls, payload: Any) -> UpdateHostnameRequest:
        handle, hostname = _tuple(payload, 2)
        return cls(_u64(handle), _opt_str(hostname))


@_request("UpdatePort")
@dataclass
class UpdatePortRequest(_Message):
    handle: int
    port: int

    def _payload(self) -> Any:
        return [self.handle, self.port]

    @classmethod
    def _from_payload(cls, payload: Any) -> UpdatePortRequest:
        handle, port = _tuple(payload, 2)
        return cls(_u64(handle), _u16(port))


@_request("UpdatePosition")
@dataclass
class UpdatePositionRequest(_Message):
    handle: int
    position: Position

    def _payload(self) -> Any:
        return [self.handle, self.position.value]

    @classmethod
    def _from_payload(cls, payload: Any) -> UpdatePositionRequest:
        handle, position = _tuple(payload, 2)
        return cls(_u64(handle), _position(position))


@_request("UpdateFixIps")
@dataclass
class UpdateFixIpsRequest(_Message):
    handle: int
    ips: list[IPAddress] = field(default_factory=list)

    def _payload(self) -> Any:
        return [self.handle, [str(ip) for ip in self.ips]]

    @classmethod
    def _from_payload(cls, payload: Any) -> UpdateFixIpsRequest:
        handle, ips = _tuple(payload, 2)
        return cls(_u64(handle), _ip_list(ips))


@_request("EnableCapture", unit=True)
@dataclass
class EnableCaptureRequest(_Message):
    pass


@_request("EnableEmulation", unit=True)
@dataclass
class EnableEmulationRequest(_Message):
    pass


@_request("Sync", unit=True)
@dataclass
class SyncRequest(_Message):
    pass


@_request("AuthorizeKey")
@dataclass
class AuthorizeKeyRequest(_Message):
    description: str
    fingerprint: str

    def _payload(self) -> Any:
        return [self.description, self.fingerprint]

    @classmethod
    def _from_payload(cls, payload: Any) -> AuthorizeKeyRequest:
        description, fingerprint = _tuple(payload, 2)
        return cls(_str(description), _str(fingerprint))


@_request("RemoveAuthorizedKey")
@dataclass
class RemoveAuthorizedKeyRequest(_Message):
    fingerprint: str

    def _payload(self) -> Any:
        return self.fingerprint

    @classmethod
    def _from_payload(cls, payload: Any) -> RemoveAuthorizedKeyRequest:
        return cls(_str(payload))


@_request("UpdateEnterHook")
@dataclass
class UpdateEnterHookRequest(_Message):
    handle: int
    cmd: Optional[str]

    def _payload(self) -> Any:
        return [self.handle, self.cmd]

    @classmethod
    def _from_payload(cls, payload: Any) -> UpdateEnterHookRequest:
        handle, cmd = _tuple(payload, 2)
        return cls(_u64(handle), _opt_str(cmd))


# ------------------------------------------------------------------ events


@_event("Created")
@dataclass
class CreatedEvent(_Message):
    handle: int
    config: ClientConfig
    state: ClientState

    def _payload(self) -> Any:
        return [self.handle, self.config.to_json(), self.state.to_json()]

    @classmethod
    def _from_payload(cls, payload: Any) -> CreatedEvent:
        return cls(*_client_entry(payload))


@_event("NoSuchClient")
@dataclass
class NoSuchClientEvent(_Message):
    handle: int

    def _payload(self) -> Any:
        return self.handle

    @classmethod
    def _from_payload(cls, payload: Any) -> NoSuchClientEvent:
        return cls(_u64(payload))


@_event("State")
@dataclass
class StateEvent(_Message):
    handle: int
    config: ClientConfig
    state: ClientState

    def _payload(self) -> Any:
        return [self.handle, self.config.to_json(), self.state.to_json()]

    @classmethod
    def _from_payload(cls, payload: Any) -> StateEvent:
        return cls(*_client_entry(payload))


@_event("Deleted")
@dataclass
class DeletedEvent(_Message):
    handle: int

    def _payload(self) -> Any:
        return self.handle

    @classmethod
    def _from_payload(cls, payload: Any) -> DeletedEvent:
        return cls(_u64(payload))


@_event("PortChanged")
@dataclass
class PortChangedEvent(_Message):
    port: int
    message: Optional[str] = None

    def _payload(self) -> Any:
        return [self.port, self.message]

    @classmethod
    def _from_payload(cls, payload: Any) -> PortChangedEvent:
        port, message = _tuple(payload, 2)
        return cls(_u16(port), _opt_str(message))


@_event("Enumerate")
@dataclass
class EnumerateEvent(_Message):
    clients: list[tuple[int, ClientConfig, ClientState]] = field(default_factory=list)

    def _payload(self) -> Any:
        return [
            [handle, config.to_json(), state.to_json()]
            for handle, config, state in self.clients
        ]

    @classmethod
    def _from_payload(cls, payload: Any) -> EnumerateEvent:
        return cls([_client_entry(entry) for entry in _list(payload)])


@_event("Error")
@dataclass
class ErrorEvent(_Message):
    message: str

    def _payload(self) -> Any:
        return self.message

    @classmethod
    def _from_payload(cls, payload: Any) -> ErrorEvent:
        return cls(_str(payload))


@_event("CaptureStatus")
@dataclass
class CaptureStatusEvent(_Message):
    status: Status

    def _payload(self) -> Any:
        return self.status.value

    @classmethod
    def _from_payload(cls, payload: Any) -> CaptureStatusEvent:
        return cls(_status(payload))


@_event("EmulationStatus")
@dataclass
class EmulationStatusEvent(_Message):
    status: Status

    def _payload(self) -> Any:
        return self.status.value

    @classmethod
    def _from_payload(cls, payload: Any) -> EmulationStatusEvent:
        return cls(_status(payload))


@_event("AuthorizedUpdated")
@dataclass
class AuthorizedUpdatedEvent(_Message):
    """Authorized keys, mapping fingerprint to description."""

    keys: dict[str, str] = field(default_factory=dict)

    def _payload(self) -> Any:
        return dict(self.keys)

    @classmethod
    def _from_payload(cls, payload: Any) -> AuthorizedUpdatedEvent:
        obj = _object(payload, "a map of fingerprints")
        return cls({_str(key): _str(value) for key, value in obj.items()})


@_event("PublicKeyFingerprint")
@dataclass
class PublicKeyFingerprintEvent(_Message):
    fingerprint: str

    def _payload(self) -> Any:
        return self.fingerprint

    @classmethod
    def _from_payload(cls, payload: Any) -> PublicKeyFingerprintEvent:
        return cls(_str(payload))


@_event("DeviceConnected")
@dataclass
class DeviceConnectedEvent(_Message):
    addr: SocketAddr
    fingerprint: str

    def _payload(self) -> Any:
        return {"addr": _format_socket_addr(self.addr), "fingerprint": self.fingerprint}

    @classmethod
    def _from_payload(cls, payload: Any) -> DeviceConnectedEvent:
        obj = _object(payload)
        return cls(
            _parse_socket_addr(_field(obj, "addr")), _str(_field(obj, "fingerprint"))
        )


@_event("DeviceEntered")
@dataclass
class DeviceEnteredEvent(_Message):
    fingerprint: str
    addr: SocketAddr
    pos: Position

    def _payload(self) -> Any:
        return {
            "fingerprint": self.fingerprint,
            "addr": _format_socket_addr(self.addr),
            "pos": self.pos.value,
        }

    @classmethod
    def _from_payload(cls, payload: Any) -> DeviceEnteredEvent:
        obj = _object(payload)
        return cls(
            _str(_field(obj, "fingerprint")),
            _parse_socket_addr(_field(obj, "addr")),
            _position(_field(obj, "pos")),
        )


@_event("IncomingDisconnected")
@dataclass
class IncomingDisconnectedEvent(_Message):
    addr: SocketAddr

    def _payload(self) -> Any:
        return _format_socket_addr(self.addr)

    @classmethod
    def _from_payload(cls, payload: Any) -> IncomingDisconnectedEvent:
        return cls(_parse_socket_addr(payload))


@_event("ConnectionAttempt")
@dataclass
class ConnectionAttemptEvent(_Message):
    fingerprint: str

    def _payload(self) -> Any:
        return {"fingerprint": self.fingerprint}

    @classmethod
    def _from_payload(cls, payload: Any) -> ConnectionAttemptEvent:
        return cls(_str(_field(_object(payload), "fingerprint")))


# ------------------------------------------------------------------ coding


def _encode(message: Any, registry: dict[str, type[_Message]], kind: str) -> str:
    if not isinstance(message, _Message) or registry.get(message.TAG) is not type(message):
        raise TypeError(f"not a frontend {kind}: {message!r}")
    obj: Any = message.TAG if message.UNIT else {message.TAG: message._payload()}
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def _decode(line: Any, registry: dict[str, type[_Message]], kind: str) -> Any:
    try:
        obj = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidMessageError(str(exc)) from exc
    if isinstance(obj, str):
        cls = registry.get(obj)
        if cls is None or not cls.UNIT:
            raise _fail(f"a {kind}", obj)
        return cls()
    if isinstance(obj, dict) and len(obj) == 1:
        ((tag, payload),) = obj.items()
        cls = registry.get(tag)
        if cls is None:
            raise _fail(f"a {kind}", tag)
        if cls.UNIT:
            if payload is not None:
                raise _fail("a unit variant", payload)
            return cls()
        return cls._from_payload(payload)
    raise _fail(f"a {kind}", obj)


def encode_request(request: Any) -> str:
    """Serialise a request to one JSON line, without the newline."""
    return _encode(request, _REQUESTS, "request")


def decode_request(line: Any) -> Any:
    """Parse one JSON line into a request."""
    return _decode(line, _REQUESTS, "request")


def encode_event(event: Any) -> str:
    """Serialise an event to one JSON line, without the newline."""
    return _encode(event, _EVENTS, "event")


def decode_event(line: Any) -> Any:
    """Parse one JSON line into an event."""
    return _decode(line, _EVENTS, "event")