"""Smoke tests: the client against a host listening on a real Unix socket."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Any

import pytest

from discord_rpc.client import Client, SessionState
from discord_rpc.config import ClientConfig
from discord_rpc.constants import OpCode
from discord_rpc.errors import ConnectError, ConnectionClosed
from discord_rpc.ipc.codec import FrameDecoder, encode
from discord_rpc.ipc.transports import UnixSocketTransport
from tests.helpers.fake_host import DEFAULT_CONFIG, DEFAULT_USER, response_for
from tests.helpers.wait import wait_until

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = [
    pytest.mark.smoke,
    pytest.mark.skipif(sys.platform == "win32", reason="Unix sockets unavailable on Windows"),
]


class SocketHost:
    """Minimal host: READY after handshake, echo replies for every command."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.handshakes: list[dict[str, Any]] = []
        self.writers: list[asyncio.StreamWriter] = []
        self.path = ""

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.writers.append(writer)
        decoder = FrameDecoder()
        try:
            while chunk := await reader.read(4096):
                decoder.feed(chunk)
                for frame in decoder.frames():
                    if frame.opcode is OpCode.HANDSHAKE:
                        self.handshakes.append(frame.payload)
                        ready = {
                            "cmd": "DISPATCH",
                            "evt": "READY",
                            "data": {"v": 1, "config": DEFAULT_CONFIG, "user": DEFAULT_USER},
                        }
                        writer.write(encode(OpCode.FRAME, ready))
                    elif frame.opcode is OpCode.FRAME:
                        self.requests.append(frame.payload)
                        writer.write(encode(OpCode.FRAME, response_for(frame.payload, {"ok": 1})))
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()


@pytest.fixture
async def socket_host(short_tmp: Path):
    host = SocketHost()
    path = short_tmp / "discord-ipc-0"
    server = await asyncio.start_unix_server(host.handle, path=str(path))
    host.path = str(path)
    yield host
    for writer in host.writers:
        writer.close()
    server.close()
    await server.wait_closed()


async def test_missing_socket_raises_connect_error(short_tmp: Path) -> None:
    missing = [str(short_tmp / "discord-ipc-0"), str(short_tmp / "discord-ipc-1")]
    transport = UnixSocketTransport(candidates=missing)

    with pytest.raises(ConnectError) as exc_info:
        await transport.connect()
    assert exc_info.value.attempted == missing


async def test_transport_skips_dead_slots(socket_host: SocketHost, short_tmp: Path) -> None:
    transport = UnixSocketTransport(
        candidates=[str(short_tmp / "discord-ipc-9"), socket_host.path],
    )
    await transport.connect()
    try:
        assert transport.address == socket_host.path
    finally:
        await transport.close()
    assert not transport.is_connected


async def test_presence_session_over_socket(socket_host: SocketHost) -> None:
    config = ClientConfig(
        client_id="42",
        transport="socket",
        ipc_path=socket_host.path,
        leading_edge=True,
        activity_interval=0.1,
    )
    async with Client(config=config) as client:
        assert client.state is SessionState.READY
        assert client.user == DEFAULT_USER

        result = await client.set_activity({"name": "Snek", "details": "booping"}, pid=1234)

        assert result == {"ok": 1}
        assert socket_host.handshakes == [{"v": 1, "client_id": "42"}]
        request = socket_host.requests[0]
        assert request["cmd"] == "SET_ACTIVITY"
        assert request["args"] == {
            "pid": 1234,
            "activity": {"name": "Snek", "type": 0, "details": "booping"},
        }

    assert client.state is SessionState.CLOSED


async def test_host_shutdown_closes_session(socket_host: SocketHost) -> None:
    config = ClientConfig(client_id="42", ipc_path=socket_host.path)
    client = Client(config=config)
    await client.connect()
    try:
        for writer in socket_host.writers:
            writer.close()
        await wait_until(lambda: client.state is SessionState.CLOSED, description="teardown")
        with pytest.raises(ConnectionClosed):
            await client.request("GET_GUILDS")
    finally:
        await client.destroy()
