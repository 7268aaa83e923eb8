"""List rows that present clients and authorized keys and report user edits."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from lanmouse.ipc import DEFAULT_PORT, Position
from lanmouse.models import ClientObject, KeyObject, Signal

NO_HOSTNAME_MARKUP = (
    '<span font_style="italic" font_weight="light" foreground="darkgrey">'
    "no hostname!</span>"
)
NO_IPS_TOOLTIP = "no ip addresses associated with this client"

_POSITION_INDEX = {"left": 0, "right": 1, "top": 2, "bottom": 3}
_U16_PATTERN = re.compile(r"\+?[0-9]+")


def position_to_index(position: Any) -> int:
    """Index of a position in the selector; anything unknown selects left."""
    return _POSITION_INDEX.get(str(position), 0)


def index_to_position(index: int) -> Position:
    """Position for a selector index; indices past top mean bottom."""
    if index == 0:
        return Position.LEFT
    if index == 1:
        return Position.RIGHT
    if index == 2:
        return Position.TOP
    return Position.BOTTOM


def _parse_u16(text: str) -> Optional[int]:
    if not _U16_PATTERN.fullmatch(text):
        return None
    value = int(text)
    return value if value <= 0xFFFF else None


class _Entry:
    """Editable text; ``changed`` fires whenever the text actually changes."""

    def __init__(self) -> None:
        self.text = ""
        self.position = 0
        self.changed = Signal("changed")

    def set_text(self, text: str) -> None:
        if text == self.text:
            return
        self.text = text
        self.position = min(self.position, len(text))
        self.changed.emit(self)


class _Switch:
    """On/off switch; changing ``active`` fires ``state_set``."""

    def __init__(self) -> None:
        self.active = False
        self.state = False
        self.state_set = Signal("state-set")

    def set_active(self, active: bool) -> None:
        if active == self.active:
            return
        self.active = active
        self.state_set.emit(self, active)
        self.state = active


class _Combo:
    """Selector; changing ``selected`` fires ``selected_notify``."""

    def __init__(self) -> None:
        self.selected = 0
        self.selected_notify = Signal("notify::selected")

    def set_selected(self, index: int) -> None:
        if index == self.selected:
            return
        self.selected = index
        self.selected_notify.emit(self)


@dataclass
class _Binding:
    source: ClientObject
    handler_id: int

    def unbind(self) -> None:
        self.source.disconnect_notify(self.handler_id)


class ClientRow:
    """Row showing one client; user edits are emitted as request signals.

    Every signal passes the row first. ``request_activate`` carries the wanted
    state, ``request_hostname_change`` the entry text, ``request_port_change``
    the port and ``request_position_change`` the selector index.
    """

    def __init__(self, client_object: ClientObject) -> None:
        self.client_object = client_object
        self.title = ""
        self.subtitle = ""
        self.enable_switch = _Switch()
        self.hostname_entry = _Entry()
        self.port_entry = _Entry()
        self.position_combo = _Combo()
        self.spinning = False
        self.dns_tooltip = ""
        self.dns_css_classes: list[str] = []
        self._bindings: list[_Binding] = []

        self.request_activate = Signal("request-activate")
        self.request_delete = Signal("request-delete")
        self._request_dns = Signal("request-dns")
        self.request_hostname_change = Signal("request-hostname-change")
        self.request_port_change = Signal("request-port-change")
        self.request_position_change = Signal("request-position-change")

        self._hostname_handler = self.hostname_entry.changed.connect(
            self._on_hostname_changed
        )
        self._port_handler = self.port_entry.changed.connect(self._on_port_changed)
        self._position_handler = self.position_combo.selected_notify.connect(
            self._on_position_changed
        )
        self._state_handler = self.enable_switch.state_set.connect(
            self._on_state_set
        )

    @property
    def request_dns(self) -> Signal:
        """Signal emitted with the row when a new name lookup is wanted."""
        return self._request_dns

    # ------------------------------------------------------------ handlers

    def _on_hostname_changed(self, entry: _Entry) -> None:
        self.request_hostname_change.emit(self, entry.text)

    def _on_port_changed(self, entry: _Entry) -> None:
        port = _parse_u16(entry.text)
        if port is not None:
            self.request_port_change.emit(self, port)

    def _on_position_changed(self, combo: _Combo) -> None:
        self.request_position_change.emit(self, combo.selected)

    def _on_state_set(self, switch: _Switch, state: bool) -> bool:
        self.request_activate.emit(self, state)
        return True

    # ------------------------------------------------------------ bindings

    def _bind(
        self, source: ClientObject, name: str, apply: Callable[[Any], None]
    ) -> None:
        def on_notify(obj: ClientObject, changed: str, value: Any) -> None:
            if changed == name:
                apply(value)

        handler_id = source.connect_notify(on_notify)
        apply(getattr(source, name))
        self._bindings.append(_Binding(source, handler_id))

    def _set_title(self, hostname: Optional[str]) -> None:
        self.title = NO_HOSTNAME_MARKUP if hostname is None else hostname

    def _set_port_text(self, port: int) -> None:
        self.port_entry.set_text("" if port == DEFAULT_PORT else str(port))

    def _set_subtitle(self, port: int) -> None:
        self.subtitle = str(port)

    def _set_spinning(self, resolving: bool) -> None:
        self.spinning = resolving

    def _set_tooltip(self, ips: list[str]) -> None:
        self.dns_tooltip = "\n".join(ips) if ips else NO_IPS_TOOLTIP

    def _set_state(self, active: bool) -> None:
        self.enable_switch.state = active

    def bind(self, client_object: ClientObject) -> None:
        """Mirror the client's properties in the row until unbound."""
        self._bind(client_object, "active", self._set_state)
        self._bind(client_object, "active", self.enable_switch.set_active)
        self._bind(
            client_object,
            "hostname",
            lambda v: self.hostname_entry.set_text("" if v is None else v),
        )
        self._bind(client_object, "hostname", self._set_title)
        self._bind(client_object, "port", self._set_port_text)
        self._bind(client_object, "port", self._set_subtitle)
        self._bind(
            client_object,
            "position",
            lambda v: self.position_combo.set_selected(position_to_index(v)),
        )
        self._bind(client_object, "resolving", self._set_spinning)
        self._bind(client_object, "ips", self._set_tooltip)

    def unbind(self) -> None:
        for binding in self._bindings:
            binding.unbind()
        self._bindings.clear()

    # ------------------------------------------------- updates from service

    def set_active(self, active: bool) -> None:
        switch = self.enable_switch.state_set
        switch.block(self._state_handler)
        try:
            self.client_object.active = active
        finally:
            switch.unblock(self._state_handler)

    def set_hostname(self, hostname: Optional[str]) -> None:
        cursor = self.hostname_entry.position
        changed = self.hostname_entry.changed
        changed.block(self._hostname_handler)
        try:
            self.client_object.hostname = hostname
        finally:
            changed.unblock(self._hostname_handler)
        self.hostname_entry.position = min(cursor, len(self.hostname_entry.text))

    def set_port(self, port: int) -> None:
        cursor = self.port_entry.position
        changed = self.port_entry.changed
        changed.block(self._port_handler)
        try:
            self.client_object.port = port
        finally:
            changed.unblock(self._port_handler)
        self.port_entry.position = min(cursor, len(self.port_entry.text))

    def set_position(self, pos: Position) -> None:
        notify = self.position_combo.selected_notify
        notify.block(self._position_handler)
        try:
            self.client_object.position = str(pos)
        finally:
            notify.unblock(self._position_handler)

    def set_dns_state(self, resolved: bool) -> None:
        self.dns_css_classes = ["success"] if resolved else ["warning"]

    # --------------------------------------------------------- user actions

    def edit_hostname(self, text: str) -> None:
        self.hostname_entry.set_text(text)
        self.hostname_entry.position = len(text)

    def edit_port(self, text: str) -> None:
        self.port_entry.set_text(text)
        self.port_entry.position = len(text)

    def select_position(self, index: int) -> None:
        self.position_combo.set_selected(index)

    def toggle(self, state: bool) -> None:
        self.enable_switch.set_active(state)

    def request_dns_resolve(self) -> None:
        self._request_dns.emit(self)

    def delete(self) -> None:
        self.request_delete.emit(self)


@dataclass
class KeyRow:
    """Row showing an authorized key; ``request_delete`` passes the row."""

    title: str = ""
    subtitle: str = ""
    request_delete: Signal = field(default_factory=lambda: Signal("request-delete"))
    _key: Optional[KeyObject] = field(default=None, repr=False)

    def bind(self, key_object: KeyObject) -> None:
        self._key = key_object
        self.title = key_object.description
        self.subtitle = key_object.fingerprint

    def unbind(self) -> None:
        self._key = None

    @property
    def key_object(self) -> Optional[KeyObject]:
        return self._key

    def delete(self) -> None:
        self.request_delete.emit(self)