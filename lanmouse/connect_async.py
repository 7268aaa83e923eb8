"""Asynchronous connection from a frontend to the service."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from pathlib import Path
from typing import Any, Optional

from lanmouse.connect import (
    INITIAL_BACKOFF,
    TCP_ADDRESS,
    PathLike,
    _service_path,
    _strip_line,
    next_backoff,
)
from lanmouse.ipc import ConnectionTimeoutError, IpcError
from lanmouse.messages import decode_event, encode_request

log = logging.getLogger(__name__)

LINE_LIMIT = 1 << 24

_Streams = tuple[asyncio.StreamReader, asyncio.StreamWriter]


class AsyncFrontendEventReader:
    """Asynchronous iterator over events sent by the service."""

    def __init__(self, reader: asyncio.StreamReader) -> None:
        self._reader = reader

    def __aiter__(self) -> AsyncFrontendEventReader:
        return self

    async def __anext__(self) -> Any:
        try:
            raw = await self._reader.readline()
        except (OSError, ValueError) as exc:
            raise IpcError(f"io error occured: `{exc}`") from exc
        if not raw:
            raise StopAsyncIteration
        return decode_event(_strip_line(raw))


class AsyncFrontendRequestWriter:
    """Sends requests to the service, one JSON object per line."""

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer

    async def request(self, request: Any) -> None:
        line = encode_request(request)
        log.debug("requesting: %s", line)
        try:
            self._writer.write((line + "\n").encode("utf-8"))
            await self._writer.drain()
        except OSError as exc:
            raise IpcError(f"io error occured: `{exc}`") from exc

    async def close(self) -> None:
        self._writer.close()
        with suppress(OSError):
            await self._writer.wait_closed()


async def _open_stream(path: Optional[Path]) -> _Streams:
    if path is None:
        return await asyncio.open_connection(*TCP_ADDRESS, limit=LINE_LIMIT)
    return await asyncio.open_unix_connection(str(path), limit=LINE_LIMIT)


async def _wait_for_service(path: Optional[Path]) -> _Streams:
    delay = INITIAL_BACKOFF
    while True:
        try:
            return await _open_stream(path)
        except OSError:
            pass
        delay = next_backoff(delay)
        await asyncio.sleep(delay)


async def connect_async(
    timeout: Optional[float] = None,
    socket_path: Optional[PathLike] = None,
) -> tuple[AsyncFrontendEventReader, AsyncFrontendRequestWriter]:
    """Wait for the service, giving up after ``timeout`` seconds if one is given."""
    path = _service_path(socket_path)
    if timeout is None:
        reader, writer = await _wait_for_service(path)
    else:
        try:
            reader, writer = await asyncio.wait_for(_wait_for_service(path), timeout)
        except asyncio.TimeoutError:
            raise ConnectionTimeoutError() from None
    return AsyncFrontendEventReader(reader), AsyncFrontendRequestWriter(writer)