"""Main frontend window: client list, authorized keys and service status."""

from __future__ import annotations

import logging
import socket
from typing import Any, Callable, Optional, TypeVar

from lanmouse.dialogs import AuthorizationDialog, FingerprintDialog
from lanmouse.ipc import DEFAULT_PORT, ClientConfig, ClientHandle, ClientState, _ip_key
from lanmouse.messages import (
    ActivateRequest,
    AuthorizeKeyRequest,
    ChangePortRequest,
    CreateRequest,
    DeleteRequest,
    EnableCaptureRequest,
    EnableEmulationRequest,
    RemoveAuthorizedKeyRequest,
    ResolveDnsRequest,
    UpdateHostnameRequest,
    UpdatePortRequest,
    UpdatePositionRequest,
)
from lanmouse.models import ClientObject, KeyObject
from lanmouse.rows import ClientRow, KeyRow, _parse_u16, index_to_position

log = logging.getLogger(__name__)

ICON_NAME = "de.feschber.LanMouse"

_T = TypeVar("_T")


def _index_of(items: list[_T], item: _T) -> Optional[int]:
    return next((i for i, candidate in enumerate(items) if candidate is item), None)


class Window:
    """State of the main window; user actions become requests to the service.

    ``writer`` is anything with a ``request(request)`` method, typically a
    FrontendRequestWriter.
    """

    def __init__(self, writer: Any, hostname: Optional[str] = None) -> None:
        self._writer = writer
        self._clients: list[ClientObject] = []
        self._client_rows: list[ClientRow] = []
        self._authorized: list[KeyObject] = []
        self._key_rows: list[KeyRow] = []

        self.icon_name = ICON_NAME
        self.hostname_label = socket.gethostname() if hostname is None else hostname
        self.fingerprint = ""
        self.toasts: list[str] = []
        self.dialogs: list[Any] = []

        self.port = DEFAULT_PORT
        self.port_entry_text = ""
        self.port_edit_visible = False

        self.capture_active = False
        self.emulation_active = False
        self.capture_status_visible = True
        self.emulation_status_visible = True
        self.capture_emulation_group_visible = True

        self.client_placeholder_visible = True
        self.authorized_placeholder_visible = True

        self._set_port(DEFAULT_PORT)
        self._update_capture_emulation_status()

    # ------------------------------------------------------------ views

    @property
    def clients(self) -> list[ClientObject]:
        return list(self._clients)

    @property
    def client_rows(self) -> list[ClientRow]:
        return list(self._client_rows)

    @property
    def authorized(self) -> list[KeyObject]:
        return list(self._authorized)

    @property
    def key_rows(self) -> list[KeyRow]:
        return list(self._key_rows)

    # ------------------------------------------------------------ rows

    def _client_for_row(self, row: ClientRow) -> Optional[ClientObject]:
        idx = _index_of(self._client_rows, row)
        return None if idx is None else self._clients[idx]

    def _on_row(
        self, build: Callable[[ClientObject, Any], Any]
    ) -> Callable[..., None]:
        def handler(row: ClientRow, *args: Any) -> None:
            client = self._client_for_row(row)
            if client is not None:
                self._request(build(client, *args))

        return handler

    def _create_client_row(self, client_object: ClientObject) -> ClientRow:
        row = ClientRow(client_object)
        row.bind(client_object)
        row.request_hostname_change.connect(
            self._on_row(
                lambda c, hostname: UpdateHostnameRequest(c.handle, hostname or None)
            )
        )
        row.request_port_change.connect(
            self._on_row(lambda c, port: UpdatePortRequest(c.handle, port))
        )
        row.request_activate.connect(self._on_row(self._activate_request))
        row.request_delete.connect(self._on_row(lambda c: DeleteRequest(c.handle)))
        row.request_dns.connect(
            self._on_row(lambda c: ResolveDnsRequest(c.get_data().handle))
        )
        row.request_position_change.connect(
            self._on_row(
                lambda c, idx: UpdatePositionRequest(c.handle, index_to_position(idx))
            )
        )
        return row

    @staticmethod
    def _activate_request(client: ClientObject, active: bool) -> ActivateRequest:
        log.debug("request: %s client", "activating" if active else "deactivating")
        return ActivateRequest(client.handle, active)

    def _create_key_row(self, key_object: KeyObject) -> KeyRow:
        row = KeyRow()
        row.bind(key_object)
        row.request_delete.connect(self._on_key_delete)
        return row

    def _on_key_delete(self, row: KeyRow) -> None:
        idx = _index_of(self._key_rows, row)
        if idx is not None:
            self._request(RemoveAuthorizedKeyRequest(self._authorized[idx].fingerprint))

    def _update_placeholder_visibility(self) -> None:
        self.client_placeholder_visible = not self._clients

    def _update_auth_placeholder_visibility(self) -> None:
        self.authorized_placeholder_visible = not self._authorized

    def _client_idx(self, handle: ClientHandle) -> Optional[int]:
        return next(
            (i for i, c in enumerate(self._clients) if c.handle == handle), None
        )

    def _row_for_handle(self, handle: ClientHandle) -> Optional[ClientRow]:
        idx = self._client_idx(handle)
        return None if idx is None else self._client_rows[idx]

    def _update_dns_state(self, handle: ClientHandle, resolved: bool) -> None:
        row = self._row_for_handle(handle)
        if row is not None:
            row.set_dns_state(resolved)

    # ------------------------------------------------- updates from service

    def new_client(
        self, handle: ClientHandle, config: ClientConfig, state: ClientState
    ) -> None:
        client = ClientObject.from_ipc(handle, config, state)
        self._clients.append(client)
        self._client_rows.append(self._create_client_row(client))
        self._update_placeholder_visibility()
        self._update_dns_state(handle, bool(state.ips))

    def update_client_list(
        self, clients: list[tuple[ClientHandle, ClientConfig, ClientState]]
    ) -> None:
        for handle, config, state in clients:
            if self._client_idx(handle) is not None:
                self.update_client_config(handle, config)
                self.update_client_state(handle, state)
            else:
                self.new_client(handle, config, state)

    def update_port(self, port: int, msg: Optional[str]) -> None:
        if msg is not None:
            self.show_toast(msg)
        self._set_port(port)

    def delete_client(self, handle: ClientHandle) -> None:
        idx = self._client_idx(handle)
        if idx is None:
            log.warning("could not find client with handle %s", handle)
            return
        del self._clients[idx]
        self._client_rows.pop(idx).unbind()
        if not self._clients:
            self._update_placeholder_visibility()

    def update_client_config(self, handle: ClientHandle, config: ClientConfig) -> None:
        row = self._row_for_handle(handle)
        if row is None:
            log.warning("could not find row for handle %s", handle)
            return
        row.set_hostname(config.hostname)
        row.set_port(config.port)
        row.set_position(config.pos)

    def update_client_state(self, handle: ClientHandle, state: ClientState) -> None:
        idx = self._client_idx(handle)
        if idx is None:
            log.warning("could not find row for handle %s", handle)
            return
        row = self._client_rows[idx]
        client = self._clients[idx]
        row.set_active(state.active)
        client.resolving = state.resolving
        self._update_dns_state(handle, bool(state.ips))
        client.ips = [str(ip) for ip in sorted(state.ips, key=_ip_key)]

    def show_toast(self, msg: str) -> None:
        self.toasts.append(msg)

    def set_capture(self, active: bool) -> None:
        self.capture_active = bool(active)
        self._update_capture_emulation_status()

    def set_emulation(self, active: bool) -> None:
        self.emulation_active = bool(active)
        self._update_capture_emulation_status()

    def _update_capture_emulation_status(self) -> None:
        capture, emulation = self.capture_active, self.emulation_active
        self.capture_status_visible = not capture
        self.emulation_status_visible = not emulation
        self.capture_emulation_group_visible = not capture or not emulation

    def set_authorized_keys(self, fingerprints: dict[str, str]) -> None:
        """Replace the key list; ``fingerprints`` maps fingerprint to description."""
        for row in self._key_rows:
            row.unbind()
        self._authorized.clear()
        self._key_rows.clear()
        for fingerprint, description in fingerprints.items():
            key = KeyObject(description, fingerprint)
            self._authorized.append(key)
            self._key_rows.append(self._create_key_row(key))
        self._update_auth_placeholder_visibility()

    def set_pk_fp(self, fingerprint: str) -> None:
        self.fingerprint = fingerprint

    def request_authorization(self, fingerprint: str) -> AuthorizationDialog:
        """Ask whether a device may connect; confirming opens the key dialog."""
        dialog = AuthorizationDialog(fingerprint, parent=self)

        def on_confirm(w: AuthorizationDialog, fp: str) -> None:
            w.close()
            self._open_fingerprint_dialog(fp)

        dialog.confirm_clicked.connect(on_confirm)
        dialog.cancel_clicked.connect(lambda w: w.close())
        self.dialogs.append(dialog)
        dialog.present()
        return dialog

    def _open_fingerprint_dialog(self, fp: Optional[str]) -> FingerprintDialog:
        dialog = FingerprintDialog(fp, parent=self)

        def on_confirm(w: FingerprintDialog, desc: str, fingerprint: str) -> None:
            self._request(AuthorizeKeyRequest(desc, fingerprint))
            w.close()

        dialog.confirm_clicked.connect(on_confirm)
        self.dialogs.append(dialog)
        dialog.present()
        return dialog

    # --------------------------------------------------------- user actions

    def _set_port(self, port: int) -> None:
        self.port = port
        self.port_entry_text = "" if port == DEFAULT_PORT else str(port)
        self.port_edit_visible = False

    def add_client(self) -> None:
        self._request(CreateRequest())

    def edit_port(self, text: str) -> None:
        self.port_entry_text = text
        self.port_edit_visible = True

    def apply_port_edit(self) -> None:
        port = _parse_u16(self.port_entry_text)
        self._request(ChangePortRequest(DEFAULT_PORT if port is None else port))

    def cancel_port_edit(self) -> None:
        log.debug("cancel port edit")
        self.port_entry_text = str(self.port)
        self.port_edit_visible = False

    def enable_capture(self) -> None:
        self._request(EnableCaptureRequest())

    def enable_emulation(self) -> None:
        self._request(EnableEmulationRequest())

    def add_cert_fingerprint(self) -> FingerprintDialog:
        return self._open_fingerprint_dialog(None)

    def _request(self, request: Any) -> None:
        try:
            self._writer.request(request)
        except OSError as exc:
            log.error("error sending message: %s", exc)