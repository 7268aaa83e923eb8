"""Frontend entry point: connects to the service and drives the window."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Iterable
from typing import Any, Optional

from lanmouse.connect import connect
from lanmouse.ipc import IpcError, _format_socket_addr
from lanmouse.messages import (
    AuthorizedUpdatedEvent,
    CaptureStatusEvent,
    ConnectionAttemptEvent,
    CreatedEvent,
    DeletedEvent,
    DeviceConnectedEvent,
    DeviceEnteredEvent,
    EmulationStatusEvent,
    EnumerateEvent,
    ErrorEvent,
    IncomingDisconnectedEvent,
    NoSuchClientEvent,
    PortChangedEvent,
    PublicKeyFingerprintEvent,
    StateEvent,
)
from lanmouse.window import Window

log = logging.getLogger(__name__)


class FrontendExitError(Exception):
    """The frontend stopped with a non-zero exit code."""

    def __init__(self, code: int) -> None:
        super().__init__(f"frontend exited with non zero exit code: {code}")
        self.code = code


def _addr(addr: Any) -> str:
    if isinstance(addr, tuple):
        return _format_socket_addr(addr)
    return str(addr)


def handle_event(window: Window, event: Any) -> None:
    """Apply one event from the service to the window."""
    match event:
        case CreatedEvent(handle, config, state):
            window.new_client(handle, config, state)
        case DeletedEvent(handle):
            window.delete_client(handle)
        case StateEvent(handle, config, state):
            window.update_client_config(handle, config)
            window.update_client_state(handle, state)
        case NoSuchClientEvent():
            pass
        case ErrorEvent(message):
            window.show_toast(message)
        case EnumerateEvent(clients):
            window.update_client_list(clients)
        case PortChangedEvent(port, msg):
            window.update_port(port, msg)
        case CaptureStatusEvent(status):
            window.set_capture(bool(status))
        case EmulationStatusEvent(status):
            window.set_emulation(bool(status))
        case AuthorizedUpdatedEvent(keys):
            window.set_authorized_keys(keys)
        case PublicKeyFingerprintEvent(fingerprint):
            window.set_pk_fp(fingerprint)
        case ConnectionAttemptEvent(fingerprint=fingerprint):
            window.request_authorization(fingerprint)
        case DeviceConnectedEvent(addr=addr):
            window.show_toast(f"device connected: {_addr(addr)}")
        case DeviceEnteredEvent(addr=addr, pos=pos):
            window.show_toast(f"device entered: {_addr(addr)} ({pos})")
        case IncomingDisconnectedEvent(addr):
            window.show_toast(f"{_addr(addr)} disconnected")
        case _:
            raise TypeError(f"not a frontend event: {event!r}")


def run(window: Window, reader: Iterable[Any]) -> None:
    """Feed every event from ``reader`` to the window.

    The frontend cannot work without the service, so losing the event stream,
    whether it ends or fails, raises FrontendExitError with code 1.
    """
    try:
        for event in reader:
            handle_event(window, event)
    except IpcError as exc:
        log.error("%s", exc)
    raise FrontendExitError(1)


def main(argv: Optional[list[str]] = None) -> int:
    """Connect to the service and run the frontend; return the exit code."""
    parser = argparse.ArgumentParser(
        prog="lan-mouse-frontend",
        description="Frontend for the mouse and keyboard sharing service.",
    )
    parser.add_argument("--socket-path", help="path of the service's frontend socket")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    log.debug("connecting to lan-mouse-socket")
    try:
        reader, writer = connect(args.socket_path)
    except IpcError as exc:
        log.error("%s", exc)
        return 1
    log.debug("connected to lan-mouse-socket")

    window = Window(writer)
    try:
        run(window, reader)
    except FrontendExitError as exc:
        return exc.code
    finally:
        reader.close()
        writer.close()
    return 0