"""Blocking connection from a frontend to the service."""

from __future__ import annotations

import logging
import os
import socket
import sys
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Optional, Union

from lanmouse.ipc import IpcConnectionError, IpcError, default_socket_path
from lanmouse.messages import decode_event, encode_request

log = logging.getLogger(__name__)

TCP_ADDRESS = ("127.0.0.1", 5252)
INITIAL_BACKOFF = 0.01
MAX_BACKOFF = 1.0

_USE_UNIX = sys.platform != "win32" and hasattr(socket, "AF_UNIX")

PathLike = Union[str, "os.PathLike[str]"]


def _strip_line(raw: bytes) -> str:
    """Drop the line terminator (LF or CRLF) and decode as UTF-8."""
    line = raw[:-1] if raw.endswith(b"\n") else raw
    if line.endswith(b"\r"):
        line = line[:-1]
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise IpcError(f"io error occured: `{exc}`") from exc


def _service_path(socket_path: Optional[PathLike]) -> Optional[Path]:
    """Resolve where the service listens; None means the local TCP port."""
    if not _USE_UNIX:
        return None
    if socket_path is None:
        return default_socket_path()
    return Path(socket_path)


def next_backoff(duration: float) -> float:
    """Return the next retry delay in seconds: doubled, capped at one second."""
    return min(duration * 2, MAX_BACKOFF)


class FrontendEventReader:
    """Reads events sent by the service, one JSON object per line."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._file = sock.makefile("rb")

    def next_event(self) -> Optional[Any]:
        """Return the next event, or None once the service closed the connection."""
        try:
            raw = self._file.readline()
        except OSError as exc:
            raise IpcError(f"io error occured: `{exc}`") from exc
        if not raw:
            return None
        return decode_event(_strip_line(raw))

    def __iter__(self) -> Iterator[Any]:
        while (event := self.next_event()) is not None:
            yield event

    def close(self) -> None:
        self._file.close()
        self._sock.close()


class FrontendRequestWriter:
    """Sends requests to the service, one JSON object per line."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def request(self, request: Any) -> None:
        """Send one request; raises OSError if the connection fails."""
        line = encode_request(request)
        log.debug("requesting: %s", line)
        self._sock.sendall((line + "\n").encode("utf-8"))

    def close(self) -> None:
        self._sock.close()


def _open_stream(path: Optional[Path]) -> socket.socket:
    if path is None:
        return socket.create_connection(TCP_ADDRESS)
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(str(path))
    except OSError:
        sock.close()
        raise
    return sock


def _wait_for_service(path: Optional[Path]) -> socket.socket:
    delay = INITIAL_BACKOFF
    while True:
        try:
            return _open_stream(path)
        except OSError:
            pass
        delay = next_backoff(delay)
        time.sleep(delay)


def connect(
    socket_path: Optional[PathLike] = None,
) -> tuple[FrontendEventReader, FrontendRequestWriter]:
    """Wait until the service is reachable and return a reader and a writer."""
    rx = _wait_for_service(_service_path(socket_path))
    try:
        tx = rx.dup()
    except OSError as exc:
        rx.close()
        raise IpcConnectionError(str(exc)) from exc
    return FrontendEventReader(rx), FrontendRequestWriter(tx)