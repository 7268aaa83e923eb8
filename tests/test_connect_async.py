import asyncio
import shutil
import tempfile
from pathlib import Path

import pytest

from lanmouse.connect_async import connect_async
from lanmouse.ipc import ConnectionTimeoutError, InvalidMessageError
from lanmouse.messages import (
    CreateRequest,
    DeletedEvent,
    ErrorEvent,
    UpdatePortRequest,
    decode_request,
    encode_event,
    encode_request,
)


@pytest.fixture
def socket_path():
    directory = tempfile.mkdtemp(prefix="lm")
    yield Path(directory) / "s.sock"
    shutil.rmtree(directory, ignore_errors=True)


async def _start_server(path):
    conns = asyncio.Queue()

    async def on_client(reader, writer):
        await conns.put((reader, writer))

    server = await asyncio.start_unix_server(on_client, path=str(path))
    return server, conns


def _line(event) -> bytes:
    return (encode_event(event) + "\n").encode()


@pytest.mark.asyncio
async def test_reader_yields_events(socket_path):
    server, conns = await _start_server(socket_path)
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    _, peer = await asyncio.wait_for(conns.get(), 5)
    peer.write(_line(ErrorEvent("boom")) + _line(DeletedEvent(4)))
    await peer.drain()
    peer.close()
    events = [event async for event in reader]
    assert events == [ErrorEvent("boom"), DeletedEvent(4)]
    await writer.close()
    server.close()


@pytest.mark.asyncio
async def test_request_written_as_line(socket_path):
    server, conns = await _start_server(socket_path)
    reader, writer = await connect_async(socket_path=socket_path)
    peer_reader, peer = await asyncio.wait_for(conns.get(), 5)
    await writer.request(UpdatePortRequest(2, 4243))
    await writer.request(CreateRequest())
    first = await asyncio.wait_for(peer_reader.readline(), 5)
    second = await asyncio.wait_for(peer_reader.readline(), 5)
    assert first == (encode_request(UpdatePortRequest(2, 4243)) + "\n").encode()
    assert decode_request(first.strip()) == UpdatePortRequest(2, 4243)
    assert decode_request(second.strip()) == CreateRequest()
    peer.close()
    await writer.close()
    server.close()


@pytest.mark.asyncio
async def test_invalid_json_raises(socket_path):
    server, conns = await _start_server(socket_path)
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    _, peer = await asyncio.wait_for(conns.get(), 5)
    peer.write(b"{broken\n")
    await peer.drain()
    with pytest.raises(InvalidMessageError):
        await asyncio.wait_for(reader.__anext__(), 5)
    peer.close()
    await writer.close()
    server.close()


@pytest.mark.asyncio
async def test_end_of_stream_stops_iteration(socket_path):
    server, conns = await _start_server(socket_path)
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    _, peer = await asyncio.wait_for(conns.get(), 5)
    peer.close()
    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(reader.__anext__(), 5)
    await writer.close()
    server.close()


@pytest.mark.asyncio
async def test_timeout_when_service_absent(socket_path):
    with pytest.raises(ConnectionTimeoutError) as info:
        await connect_async(timeout=0.05, socket_path=socket_path)
    assert str(info.value) == "connection timed out"


@pytest.mark.asyncio
async def test_waits_for_service(socket_path):
    async def start_later():
        await asyncio.sleep(0.1)
        return await _start_server(socket_path)

    task = asyncio.create_task(start_later())
    reader, writer = await connect_async(timeout=5, socket_path=socket_path)
    server, conns = await task
    _, peer = await asyncio.wait_for(conns.get(), 5)
    peer.write(_line(ErrorEvent("late")))
    await peer.drain()
    assert await asyncio.wait_for(reader.__anext__(), 5) == ErrorEvent("late")
    peer.close()
    await writer.close()
    server.close()