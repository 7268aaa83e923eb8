import asyncio
import shutil
import socket
import tempfile
from pathlib import Path

import pytest

from lanmouse.connect_async import connect_async
from lanmouse.ipc import AlreadyRunningError, IpcListenerCreationError, InvalidMessageError
from lanmouse.listen import AsyncFrontendListener
from lanmouse.messages import (
    DeleteRequest,
    ErrorEvent,
    PortChangedEvent,
    SyncRequest,
    encode_request,
)


@pytest.fixture
def socket_path():
    directory = tempfile.mkdtemp(prefix="lm")
    yield Path(directory) / "s.sock"
    shutil.rmtree(directory, ignore_errors=True)


async def _next(listener):
    return await asyncio.wait_for(listener.__anext__(), 5)


@pytest.mark.asyncio
async def test_new_frontend_triggers_sync(socket_path):
    listener = await AsyncFrontendListener.create(socket_path)
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    assert await _next(listener) == SyncRequest()
    await writer.close()
    await listener.close()


@pytest.mark.asyncio
async def test_requests_are_yielded(socket_path):
    listener = await AsyncFrontendListener.create(socket_path)
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    assert await _next(listener) == SyncRequest()
    await writer.request(DeleteRequest(5))
    assert await _next(listener) == DeleteRequest(5)
    await writer.close()
    await listener.close()


@pytest.mark.asyncio
async def test_broadcast_reaches_frontends(socket_path):
    listener = await AsyncFrontendListener.create(socket_path)
    reader_a, writer_a = await connect_async(timeout=5, socket_path=socket_path)
    reader_b, writer_b = await connect_async(timeout=5, socket_path=socket_path)
    await _next(listener)
    while len([w for w in listener._writers]) < 2:
        await asyncio.sleep(0.01)
    await listener.broadcast(PortChangedEvent(4242, None))
    assert await asyncio.wait_for(reader_a.__anext__(), 5) == PortChangedEvent(4242, None)
    assert await asyncio.wait_for(reader_b.__anext__(), 5) == PortChangedEvent(4242, None)
    await writer_a.close()
    await writer_b.close()
    await listener.close()


@pytest.mark.asyncio
async def test_broadcast_survives_closed_frontend(socket_path):
    listener = await AsyncFrontendListener.create(socket_path)
    gone_reader, gone_writer = await connect_async(timeout=5, socket_path=socket_path)
    await _next(listener)
    await gone_writer.close()
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    assert await _next(listener) == SyncRequest()
    await listener.broadcast(ErrorEvent("first"))
    await listener.broadcast(ErrorEvent("second"))
    assert await asyncio.wait_for(reader.__anext__(), 5) == ErrorEvent("first")
    assert await asyncio.wait_for(reader.__anext__(), 5) == ErrorEvent("second")
    await writer.close()
    await listener.close()


@pytest.mark.asyncio
async def test_invalid_request_raises_then_continues(socket_path):
    listener = await AsyncFrontendListener.create(socket_path)
    _, raw = await asyncio.open_unix_connection(str(socket_path))
    assert await _next(listener) == SyncRequest()
    raw.write(b"garbage\n" + (encode_request(DeleteRequest(1)) + "\n").encode())
    await raw.drain()
    with pytest.raises(InvalidMessageError):
        await _next(listener)
    assert await _next(listener) == DeleteRequest(1)
    raw.close()
    await listener.close()


@pytest.mark.asyncio
async def test_second_listener_is_rejected(socket_path):
    listener = await AsyncFrontendListener.create(socket_path)
    with pytest.raises(AlreadyRunningError) as info:
        await AsyncFrontendListener.create(socket_path)
    assert str(info.value) == "service already running!"
    await listener.close()


@pytest.mark.asyncio
async def test_stale_socket_is_replaced(socket_path):
    stale = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    stale.bind(str(socket_path))
    stale.close()
    assert socket_path.exists()
    listener = await AsyncFrontendListener.create(socket_path)
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    assert await _next(listener) == SyncRequest()
    await writer.close()
    await listener.close()


@pytest.mark.asyncio
async def test_close_removes_socket_and_ends_iteration(socket_path):
    listener = await AsyncFrontendListener.create(socket_path)
    assert socket_path.exists()
    await listener.close()
    assert not socket_path.exists()
    with pytest.raises(StopAsyncIteration):
        await _next(listener)


@pytest.mark.asyncio
async def test_bind_failure_is_reported(socket_path):
    missing = socket_path.parent / "missing" / "s.sock"
    with pytest.raises(IpcListenerCreationError) as info:
        await AsyncFrontendListener.create(missing)
    assert not isinstance(info.value, AlreadyRunningError)
    assert str(info.value).startswith("failed to bind lan-mouse socket")