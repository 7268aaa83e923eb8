"""Observable objects that back the frontend's client and key lists."""

from __future__ import annotations

import itertools
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from lanmouse.ipc import ClientConfig, ClientHandle, ClientState, _ip_key

U16_MAX = 0xFFFF
U64_MAX = 0xFFFF_FFFF_FFFF_FFFF


class Signal:
    """A named list of handlers that can be connected, blocked and emitted."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._handlers: dict[int, Callable[..., Any]] = {}
        self._blocked: Counter[int] = Counter()
        self._ids = itertools.count(1)

    def _check(self, handler_id: int) -> None:
        if handler_id not in self._handlers:
            raise KeyError(f"signal {self.name!r} has no handler {handler_id}")

    def connect(self, handler: Callable[..., Any]) -> int:
        """Add a handler and return its id."""
        handler_id = next(self._ids)
        self._handlers[handler_id] = handler
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        self._check(handler_id)
        del self._handlers[handler_id]
        self._blocked.pop(handler_id, None)

    def block(self, handler_id: int) -> None:
        """Suspend a handler; blocks nest and need as many unblocks."""
        self._check(handler_id)
        self._blocked[handler_id] += 1

    def unblock(self, handler_id: int) -> None:
        self._check(handler_id)
        if self._blocked[handler_id] <= 0:
            raise ValueError(f"handler {handler_id} of {self.name!r} is not blocked")
        self._blocked[handler_id] -= 1

    def emit(self, *args: Any) -> list[Any]:
        """Call every unblocked handler in connection order; return their results."""
        results = []
        for handler_id, handler in list(self._handlers.items()):
            if handler_id not in self._handlers or self._blocked[handler_id] > 0:
                continue
            results.append(handler(*args))
        return results


@dataclass
class ClientData:
    """Snapshot of the values a client object holds."""

    handle: ClientHandle = 0
    hostname: Optional[str] = None
    port: int = 0
    active: bool = False
    position: str = ""
    resolving: bool = False
    ips: list[str] = field(default_factory=list)


def _handle(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise ValueError(f"invalid client handle: {value!r}")
    return value


def _port(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U16_MAX:
        raise ValueError(f"port out of range: {value!r}")
    return value


def _opt_str(value: Any) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValueError(f"expected a string or None, got {value!r}")
    return value


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {value!r}")
    return value


def _strings(value: Any) -> list[str]:
    return [_str(item) for item in value]


class _Property:
    """A validated attribute stored in ClientData that notifies on change."""

    def __init__(self, validate: Callable[[Any], Any]) -> None:
        self._validate = validate
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: Optional[type] = None) -> Any:
        if obj is None:
            return self
        value = getattr(obj._data, self.name)
        return list(value) if isinstance(value, list) else value

    def __set__(self, obj: Any, value: Any) -> None:
        value = self._validate(value)
        setattr(obj._data, self.name, value)
        obj.notify.emit(obj, self.name, self.__get__(obj))


class ClientObject:
    """A client as shown in the list; every property change is notified."""

    handle = _Property(_handle)
    hostname = _Property(_opt_str)
    port = _Property(_port)
    active = _Property(bool)
    position = _Property(_str)
    resolving = _Property(bool)
    ips = _Property(_strings)

    def __init__(
        self,
        handle: ClientHandle = 0,
        hostname: Optional[str] = None,
        port: int = 0,
        active: bool = False,
        position: str = "",
        resolving: bool = False,
        ips: Optional[list[str]] = None,
    ) -> None:
        self._data = ClientData()
        self.notify = Signal("notify")
        self.handle = handle
        self.hostname = hostname
        self.port = port
        self.active = active
        self.position = position
        self.resolving = resolving
        self.ips = [] if ips is None else ips

    @classmethod
    def from_ipc(
        cls, handle: ClientHandle, config: ClientConfig, state: ClientState
    ) -> ClientObject:
        return cls(
            handle=handle,
            hostname=config.hostname,
            port=config.port,
            position=str(config.pos),
            active=state.active,
            ips=[str(ip) for ip in sorted(state.ips, key=_ip_key)],
            resolving=state.resolving,
        )

    def get_data(self) -> ClientData:
        """Return an independent copy of the current values."""
        return replace(self._data, ips=list(self._data.ips))

    def connect_notify(self, handler: Callable[[ClientObject, str, Any], Any]) -> int:
        """Call ``handler(obj, name, value)`` after each property change."""
        return self.notify.connect(handler)

    def disconnect_notify(self, handler_id: int) -> None:
        self.notify.disconnect(handler_id)

    def __repr__(self) -> str:
        return f"ClientObject({self._data!r})"


@dataclass
class KeyObject:
    """An authorized public key: its description and fingerprint."""

    description: str
    fingerprint: str