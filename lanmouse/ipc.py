"""Types shared between the service and its frontends."""

from __future__ import annotations

import ipaddress
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

DEFAULT_PORT = 4242
SOCKET_NAME = "lan-mouse-socket.sock"

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
SocketAddr = tuple[IPAddress, int]
ClientHandle = int


class IpcError(Exception):
    """Base class for errors on the frontend channel."""


class InvalidMessageError(IpcError):
    """A message on the channel was not valid."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid json: `{detail}`")
        self.detail = detail


class SocketPathError(IpcError):
    """The location of the frontend socket could not be determined."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"could not determine ${variable}: environment variable not present")
        self.variable = variable


class IpcConnectionError(IpcError):
    """Connecting to the service failed."""


class ConnectionTimeoutError(IpcConnectionError):
    """The service did not come online in time."""

    def __init__(self, message: str = "connection timed out") -> None:
        super().__init__(message)


class IpcListenerCreationError(IpcError):
    """The service could not open its frontend socket."""


class AlreadyRunningError(IpcListenerCreationError):
    """Another instance of the service owns the socket."""

    def __init__(self, message: str = "service already running!") -> None:
        super().__init__(message)


class PositionParseError(ValueError):
    """A string did not name a position."""

    def __init__(self, pos: str) -> None:
        super().__init__(f"not a valid position: {pos}")
        self.pos = pos


class Position(Enum):
    """Side of the screen a client sits on."""

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"

    def opposite(self) -> Position:
        return _OPPOSITES[self]

    @classmethod
    def parse(cls, s: str) -> Position:
        try:
            return cls(s)
        except ValueError:
            raise PositionParseError(str(s)) from None

    def __str__(self) -> str:
        return self.value


_OPPOSITES = {
    Position.LEFT: Position.RIGHT,
    Position.RIGHT: Position.LEFT,
    Position.TOP: Position.BOTTOM,
    Position.BOTTOM: Position.TOP,
}


class Status(Enum):
    """Whether input capture or emulation is available."""

    DISABLED = "Disabled"
    ENABLED = "Enabled"

    def __bool__(self) -> bool:
        return self is Status.ENABLED


def _fail(what: str, value: Any) -> InvalidMessageError:
    return InvalidMessageError(f"expected {what}, got {value!r}")


def _int(value: Any, low: int, high: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise _fail(what, value)
    return value


def _u16(value: Any) -> int:
    return _int(value, 0, 0xFFFF, "u16")


def _u64(value: Any) -> int:
    return _int(value, 0, 0xFFFF_FFFF_FFFF_FFFF, "u64")


def _bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise _fail("a boolean", value)
    return value


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise _fail("a string", value)
    return value


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else _str(value)


def _list(value: Any, what: str = "a sequence") -> list:
    if not isinstance(value, list):
        raise _fail(what, value)
    return value


def _tuple(value: Any, size: int) -> list:
    if not isinstance(value, list) or len(value) != size:
        raise _fail(f"a tuple of {size} elements", value)
    return value


def _object(value: Any, what: str = "an object") -> dict:
    if not isinstance(value, dict):
        raise _fail(what, value)
    return value


def _field(obj: Mapping[str, Any], key: str) -> Any:
    try:
        return obj[key]
    except KeyError:
        raise InvalidMessageError(f"missing field `{key}`") from None


def _ip(value: Any) -> IPAddress:
    if not isinstance(value, str):
        raise _fail("an ip address", value)
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        raise _fail("an ip address", value) from None


def _ip_list(value: Any) -> list[IPAddress]:
    return [_ip(item) for item in _list(value, "a list of ip addresses")]


def _ip_key(ip: IPAddress) -> tuple[int, int]:
    return ip.version, int(ip)


def _position(value: Any) -> Position:
    try:
        return Position(value)
    except ValueError:
        raise _fail("a position", value) from None


def _status(value: Any) -> Status:
    try:
        return Status(value)
    except ValueError:
        raise _fail("a status", value) from None


def _format_socket_addr(addr: SocketAddr) -> str:
    ip, port = addr
    if ip.version == 6:
        return f"[{ip}]:{port}"
    return f"{ip}:{port}"


def _parse_socket_addr(value: Any) -> SocketAddr:
    if not isinstance(value, str):
        raise _fail("a socket address", value)
    try:
        if value.startswith("["):
            host, sep, port = value[1:].partition("]:")
            ip: IPAddress = ipaddress.IPv6Address(host)
        else:
            host, sep, port = value.rpartition(":")
            ip = ipaddress.IPv4Address(host)
    except ValueError:
        raise _fail("a socket address", value) from None
    if not sep or not port.isdigit() or int(port) > 0xFFFF:
        raise _fail("a socket address", value)
    return ip, int(port)


def _opt_socket_addr(value: Any) -> Optional[SocketAddr]:
    return None if value is None else _parse_socket_addr(value)


@dataclass
class ClientConfig:
    """User configuration of a client."""

    hostname: Optional[str] = None
    fix_ips: list[IPAddress] = field(default_factory=list)
    port: int = DEFAULT_PORT
    pos: Position = Position.LEFT
    cmd: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "fix_ips": [str(ip) for ip in self.fix_ips],
            "port": self.port,
            "pos": self.pos.value,
            "cmd": self.cmd,
        }

    @classmethod
    def from_json(cls, data: Any) -> ClientConfig:
        obj = _object(data, "a client config")
        return cls(
            hostname=_opt_str(obj.get("hostname")),
            fix_ips=_ip_list(_field(obj, "fix_ips")),
            port=_u16(_field(obj, "port")),
            pos=_position(_field(obj, "pos")),
            cmd=_opt_str(obj.get("cmd")),
        )


@dataclass
class ClientState:
    """Runtime state of a client as seen by the service."""

    active: bool = False
    active_addr: Optional[SocketAddr] = None
    alive: bool = False
    dns_ips: list[IPAddress] = field(default_factory=list)
    ips: set[IPAddress] = field(default_factory=set)
    has_pressed_keys: bool = False
    resolving: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "active_addr": None
            if self.active_addr is None
            else _format_socket_addr(self.active_addr),
            "alive": self.alive,
            "dns_ips": [str(ip) for ip in self.dns_ips],
            "ips": [str(ip) for ip in sorted(self.ips, key=_ip_key)],
            "has_pressed_keys": self.has_pressed_keys,
            "resolving": self.resolving,
        }

    @classmethod
    def from_json(cls, data: Any) -> ClientState:
        obj = _object(data, "a client state")
        return cls(
            active=_bool(_field(obj, "active")),
            active_addr=_opt_socket_addr(obj.get("active_addr")),
            alive=_bool(_field(obj, "alive")),
            dns_ips=_ip_list(_field(obj, "dns_ips")),
            ips=set(_ip_list(_field(obj, "ips"))),
            has_pressed_keys=_bool(_field(obj, "has_pressed_keys")),
            resolving=_bool(_field(obj, "resolving")),
        )


def default_socket_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return where the service's frontend socket lives."""
    env = os.environ if environ is None else environ
    if sys.platform == "darwin":
        home = env.get("HOME")
        if home is None:
            raise SocketPathError("HOME")
        return Path(home, "Library", "Caches", SOCKET_NAME)
    runtime_dir = env.get("XDG_RUNTIME_DIR")
    if runtime_dir is None:
        raise SocketPathError("XDG_RUNTIME_DIR")
    return Path(runtime_dir, SOCKET_NAME)