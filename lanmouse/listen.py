"""Service side of the frontend channel."""

from __future__ import annotations

import asyncio
import errno
import logging
import os
from contextlib import suppress
from pathlib import Path
from typing import Any, Optional

from lanmouse.connect import TCP_ADDRESS, PathLike, _service_path, _strip_line
from lanmouse.connect_async import LINE_LIMIT
from lanmouse.ipc import AlreadyRunningError, IpcError, IpcListenerCreationError
from lanmouse.messages import SyncRequest, decode_request, encode_event

log = logging.getLogger(__name__)

_SYNC = object()
_CLOSED = object()


class AsyncFrontendListener:
    """Accepts frontends, yields their requests and broadcasts events to them.

    A newly connected frontend produces a SyncRequest; connections that arrive
    before it is consumed share it. An invalid request line is raised from
    ``__anext__``; iteration may be resumed afterwards.
    """

    def __init__(self, socket_path: Optional[Path] = None) -> None:
        self._socket_path = socket_path
        self._server: Optional[asyncio.AbstractServer] = None
        self._writers: list[asyncio.StreamWriter] = []
        self._tasks: set[asyncio.Task] = set()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._sync_pending = False
        self._closed = False

    @classmethod
    async def create(cls, socket_path: Optional[PathLike] = None) -> AsyncFrontendListener:
        """Open the frontend socket; fails if another service already owns it."""
        listener = cls(_service_path(socket_path))
        await listener._start()
        return listener

    async def _start(self) -> None:
        path = self._socket_path
        try:
            if path is None:
                self._server = await asyncio.start_server(
                    self._serve, *TCP_ADDRESS, limit=LINE_LIMIT
                )
                return
            log.debug("remove socket: %s", path)
            if path.exists():
                await self._check_stale(path)
            self._server = await asyncio.start_unix_server(
                self._serve, path=str(path), limit=LINE_LIMIT
            )
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                raise AlreadyRunningError() from exc
            raise IpcListenerCreationError(
                f"failed to bind lan-mouse socket: `{exc}`"
            ) from exc

    @staticmethod
    async def _check_stale(path: Path) -> None:
        try:
            _, writer = await asyncio.open_unix_connection(str(path))
        except OSError as exc:
            log.debug("%s: %s - removing left behind socket", path, exc)
            with suppress(OSError):
                path.unlink()
            return
        writer.close()
        with suppress(OSError):
            await writer.wait_closed()
        raise AlreadyRunningError()

    def _queue_sync(self) -> None:
        if not self._sync_pending:
            self._sync_pending = True
            self._queue.put_nowait(_SYNC)

    async def _serve(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._tasks.add(task)
        self._writers.append(writer)
        self._queue_sync()
        try:
            while True:
                try:
                    raw = await reader.readline()
                except (OSError, ValueError):
                    break
                if not raw:
                    break
                try:
                    item: Any = decode_request(_strip_line(raw))
                except IpcError as exc:
                    item = exc
                self._queue.put_nowait(item)
        finally:
            if task is not None:
                self._tasks.discard(task)
            if writer in self._writers:
                self._writers.remove(writer)
            writer.close()

    async def broadcast(self, event: Any) -> None:
        """Send an event to every frontend, dropping those that fail."""
        data = (encode_event(event) + "\n").encode("utf-8")
        keep = []
        for writer in list(self._writers):
            if writer.is_closing():
                continue
            try:
                writer.write(data)
                await writer.drain()
            except (OSError, RuntimeError):
                writer.close()
                continue
            keep.append(writer)
        self._writers = keep

    def __aiter__(self) -> AsyncFrontendListener:
        return self

    async def __anext__(self) -> Any:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        if item is _SYNC:
            self._sync_pending = False
            return SyncRequest()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        """Stop listening, disconnect all frontends and remove the socket."""
        if self._closed:
            return
        self._closed = True
        if self._server is not None:
            self._server.close()
        for writer in self._writers:
            writer.close()
        self._writers.clear()
        for task in list(self._tasks):
            task.cancel()
        if self._server is not None:
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._server.wait_closed(), 1)
        if self._socket_path is not None:
            log.debug("remove socket: %s", self._socket_path)
            with suppress(OSError):
                os.unlink(self._socket_path)
        self._queue.put_nowait(_CLOSED)