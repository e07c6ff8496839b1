"""IPC transport implementations for talking to the host application.

Provides a Unix domain socket transport on POSIX, a named pipe transport
on Windows and a local websocket transport for hosts that only expose RPC
over ``ws://127.0.0.1``.  ``DefaultTransport`` is automatically set to the
best IPC choice for the current platform.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any, Protocol

import aiohttp

from discord_rpc.constants import OpCode
from discord_rpc.errors import ConnectError, ProtocolError, ProtocolErrorKind
from discord_rpc.ipc.codec import FrameDecoder, encode
from discord_rpc.limits import READ_CHUNK_SIZE
from discord_rpc.paths import ipc_path_candidates, websocket_url_candidates

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Ordered, reliable, bidirectional byte stream with a connect/close lifecycle."""

    @property
    def is_connected(self) -> bool: ...

    @property
    def address(self) -> str | None: ...

    async def connect(self) -> None:
        """Open the stream; raises ``ConnectError`` when no endpoint answers."""
        ...

    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...

    async def read(self) -> bytes:
        """Return the next chunk of bytes, or ``b""`` at end of stream."""
        ...

    async def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Shared stream plumbing
# ---------------------------------------------------------------------------


class _StreamTransport:
    """Common read/write/close behaviour over an asyncio stream pair.

    Subclasses implement ``_open`` for a single address; ``connect`` walks
    the candidate list and keeps the first address that accepts.
    """

    kind = "stream"

    def __init__(self, path: str | None = None, *, candidates: Sequence[str] | None = None) -> None:
        if path is not None:
            self._candidates = [path]
        else:
            self._candidates = list(candidates) if candidates is not None else []
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._address: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    @property
    def address(self) -> str | None:
        return self._address

    async def _open(self, address: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        raise NotImplementedError

    async def connect(self) -> None:
        if self.is_connected:
            return
        for address in self._candidates:
            try:
                self._reader, self._writer = await self._open(address)
            except (OSError, ValueError) as exc:
                logger.debug("IPC endpoint %s unavailable: %s", address, exc)
                continue
            self._address = address
            logger.debug("Connected to %s endpoint at %s", self.kind, address)
            return
        msg = "Could not connect to any IPC endpoint; is the host application running?"
        raise ConnectError(msg, attempted=list(self._candidates))

    def write(self, data: bytes) -> None:
        if self._writer is None:
            msg = "Transport is not connected"
            raise ConnectionError(msg)
        self._writer.write(data)

    async def drain(self) -> None:
        if self._writer is not None:
            await self._writer.drain()

    async def read(self) -> bytes:
        if self._reader is None:
            return b""
        return await self._reader.read(READ_CHUNK_SIZE)

    async def close(self) -> None:
        writer = self._writer
        self._writer = None
        self._reader = None
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass
        logger.debug("Closed %s endpoint %s", self.kind, self._address)


# ---------------------------------------------------------------------------
# Unix socket transport
# ---------------------------------------------------------------------------


class UnixSocketTransport(_StreamTransport):
    """IPC transport over the host's Unix domain socket.

    Only available on macOS and Linux.  On Windows this class raises
    ``NotImplementedError`` at construction time.
    """

    kind = "socket"

    def __init__(self, path: str | None = None, *, candidates: Sequence[str] | None = None) -> None:
        if sys.platform == "win32":
            msg = "Unix sockets are not supported on Windows"
            raise NotImplementedError(msg)
        if path is None and candidates is None:
            candidates = ipc_path_candidates()
        super().__init__(path, candidates=candidates)

    async def _open(self, address: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.open_unix_connection(address)


# ---------------------------------------------------------------------------
# Windows named pipe transport
# ---------------------------------------------------------------------------


class NamedPipeTransport(_StreamTransport):
    """IPC transport over ``\\\\?\\pipe\\discord-ipc-N`` named pipes.

    Requires the proactor event loop, which is the default on Windows.
    """

    kind = "pipe"

    def __init__(self, path: str | None = None, *, candidates: Sequence[str] | None = None) -> None:
        if path is None and candidates is None:
            candidates = ipc_path_candidates(platform="win32")
        super().__init__(path, candidates=candidates)

    async def _open(self, address: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        loop = asyncio.get_running_loop()
        create_pipe_connection = getattr(loop, "create_pipe_connection", None)
        if create_pipe_connection is None:
            msg = "Named pipes require the proactor event loop"
            raise ValueError(msg)
        reader = asyncio.StreamReader(limit=READ_CHUNK_SIZE, loop=loop)
        protocol = asyncio.StreamReaderProtocol(reader, loop=loop)
        transport, _ = await create_pipe_connection(lambda: protocol, address)
        writer = asyncio.StreamWriter(transport, protocol, reader, loop)
        return reader, writer


# ---------------------------------------------------------------------------
# Local websocket transport
# ---------------------------------------------------------------------------


class WebSocketTransport:
    """RPC over the host's local websocket server on ``127.0.0.1:6463-6472``.

    The websocket carries one JSON message per text frame, with no opcode
    header and no handshake frame: the client id travels in the URL and the
    host greets with READY straight away.  This class translates between
    that and the framed byte stream the rest of the client speaks, so the
    handshake and read loop run unchanged:

    * outbound FRAME payloads go out as text messages; HANDSHAKE, PING and
      PONG frames are dropped (keepalive is the websocket's own business)
    * inbound messages come back as FRAME frames, and a close message as a
      CLOSE frame carrying the websocket close code and reason

    *origin* is sent as the ``Origin`` header; the host only accepts origins
    registered as RPC origins for the application.
    """

    kind = "websocket"

    def __init__(
        self,
        client_id: str,
        url: str | None = None,
        *,
        origin: str | None = None,
        candidates: Sequence[str] | None = None,
    ) -> None:
        if url is not None:
            self._candidates = [url]
        elif candidates is not None:
            self._candidates = list(candidates)
        else:
            self._candidates = websocket_url_candidates(client_id)
        self._origin = origin
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._address: str | None = None
        self._outbound = FrameDecoder()
        self._outbox: list[str] = []
        self._eof = False

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def address(self) -> str | None:
        return self._address

    async def connect(self) -> None:
        if self.is_connected:
            return
        session = aiohttp.ClientSession()
        try:
            ws, url = await self._open_first(session)
        except BaseException:
            await session.close()
            raise
        self._session, self._ws, self._address = session, ws, url
        self._outbound = FrameDecoder()
        self._outbox = []
        self._eof = False
        logger.debug("Connected to websocket endpoint at %s", url)

    async def _open_first(
        self, session: aiohttp.ClientSession
    ) -> tuple[aiohttp.ClientWebSocketResponse, str]:
        for url in self._candidates:
            try:
                ws = await session.ws_connect(url, origin=self._origin, autoping=True)
            except (aiohttp.ClientError, OSError) as exc:
                logger.debug("RPC websocket %s unavailable: %s", url, exc)
                continue
            return ws, url
        msg = "Could not connect to any RPC websocket; is the host application running?"
        raise ConnectError(msg, attempted=list(self._candidates))

    def write(self, data: bytes) -> None:
        if self._ws is None:
            msg = "Transport is not connected"
            raise ConnectionError(msg)
        self._outbound.feed(data)
        for frame in self._outbound.frames():
            if frame.opcode is OpCode.FRAME:
                self._outbox.append(json.dumps(frame.payload, separators=(",", ":")))
            else:
                logger.debug("Not forwarding %s frame over websocket", frame.opcode.name)

    async def drain(self) -> None:
        ws = self._ws
        if ws is None:
            return
        outbox, self._outbox = self._outbox, []
        for message in outbox:
            await ws.send_str(message)

    async def read(self) -> bytes:
        ws = self._ws
        if ws is None or self._eof:
            return b""
        message = await ws.receive()
        match message.type:
            case aiohttp.WSMsgType.TEXT | aiohttp.WSMsgType.BINARY:
                return encode(OpCode.FRAME, _load_message(message.data))
            case aiohttp.WSMsgType.CLOSE | aiohttp.WSMsgType.CLOSING:
                self._eof = True
                reason = message.extra or "Connection closed by host"
                return encode(OpCode.CLOSE, {"code": ws.close_code, "message": reason})
            case aiohttp.WSMsgType.ERROR:
                msg = f"Websocket error: {message.data}"
                raise ConnectionError(msg)
            case _:
                self._eof = True
                return b""

    async def close(self) -> None:
        ws, session = self._ws, self._session
        self._ws = None
        self._session = None
        if ws is not None:
            try:
                await ws.close()
            except (aiohttp.ClientError, ConnectionError, OSError):
                pass
        if session is not None:
            await session.close()
        if ws is not None:
            logger.debug("Closed websocket endpoint %s", self._address)


def _load_message(data: str | bytes) -> Any:
    try:
        return json.loads(data)
    except ValueError as exc:
        msg = f"websocket message is not JSON: {exc}"
        raise ProtocolError(ProtocolErrorKind.MALFORMED_FRAME, msg) from exc


# ---------------------------------------------------------------------------
# Default transport selection
# ---------------------------------------------------------------------------

if sys.platform == "win32":
    DefaultTransport: type[_StreamTransport] = NamedPipeTransport
else:
    DefaultTransport = UnixSocketTransport

_TRANSPORT_MAP: dict[str, type[_StreamTransport]] = {
    "socket": UnixSocketTransport,
    "pipe": NamedPipeTransport,
}


def transport_for_preference(
    preference: str,
    *,
    path: str | None = None,
    client_id: str | None = None,
    origin: str | None = None,
) -> Transport:
    """Instantiate a transport from a preference string (``auto|socket|pipe|websocket``).

    For ``websocket``, *path* is a full ``ws://`` URL overriding the port scan
    and *client_id* is required.
    """
    if preference == "websocket":
        if not client_id:
            msg = "client_id is required for the websocket transport"
            raise ValueError(msg)
        return WebSocketTransport(client_id, path, origin=origin)
    cls = _TRANSPORT_MAP.get(preference, DefaultTransport)
    return cls(path)


__all__ = [
    "DefaultTransport",
    "NamedPipeTransport",
    "Transport",
    "UnixSocketTransport",
    "WebSocketTransport",
    "transport_for_preference",
]
