"""In-memory stand-in for the host application's end of the IPC stream."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from discord_rpc.constants import OpCode
from discord_rpc.ipc.codec import Frame, FrameDecoder, encode

CLIENT_ID = "123456789012345678"
DEFAULT_USER = {"id": "u1", "username": "tester", "discriminator": "0"}
DEFAULT_CONFIG = {
    "cdn_host": "cdn.discordapp.com",
    "api_endpoint": "//discord.com/api",
    "environment": "production",
}

type Responder = Callable[[dict[str, Any]], dict[str, Any] | None]


class FakeHostTransport:
    """Transport whose peer is scripted by the test.

    Frames written by the client are decoded and recorded in ``frames``;
    command frames go through per-command responders.  Commands without a
    responder are acknowledged with ``data: None`` unless listed in ``held``,
    in which case they stay unanswered until the test replies.
    """

    def __init__(
        self,
        *,
        user: dict[str, Any] | None = None,
        config: dict[str, Any] | None = None,
        auto_ready: bool = True,
        address: str = "memory://discord-ipc-0",
    ) -> None:
        self.user = dict(user or DEFAULT_USER)
        self.config = dict(config or DEFAULT_CONFIG)
        self.auto_ready = auto_ready
        self.connect_error: BaseException | None = None
        self.read_error: BaseException | None = None
        self.frames: list[Frame] = []
        self.requests: list[dict[str, Any]] = []
        self.responders: dict[str, Responder] = {}
        self.held: set[str] = set()
        self.connect_count = 0
        self._address = address
        self._connected = False
        self._decoder = FrameDecoder()
        self._inbound: asyncio.Queue[bytes] = asyncio.Queue()
        self._request_arrived = asyncio.Event()

    # -- Transport ---------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def address(self) -> str | None:
        return self._address

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connect_count += 1
        self._connected = True
        self._decoder = FrameDecoder()
        self._inbound = asyncio.Queue()

    def write(self, data: bytes) -> None:
        if not self._connected:
            msg = "write on closed fake transport"
            raise ConnectionResetError(msg)
        self._decoder.feed(data)
        for frame in self._decoder.frames():
            self.frames.append(frame)
            self._on_frame(frame)

    async def drain(self) -> None:
        await asyncio.sleep(0)

    async def read(self) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        if not self._connected and self._inbound.empty():
            return b""
        chunk = await self._inbound.get()
        if self.read_error is not None:
            raise self.read_error
        return chunk

    def fail_reads(self, exc: BaseException) -> None:
        """Make the next (or the pending) read raise *exc*."""
        self.read_error = exc
        self._inbound.put_nowait(b"")

    async def close(self) -> None:
        if self._connected:
            self._connected = False
            self._inbound.put_nowait(b"")

    # -- Scripting ---------------------------------------------------------

    def reply(self, cmd: str, data: Any = None) -> None:
        """Answer every ``cmd`` request with *data*."""
        self.responders[cmd] = lambda request: response_for(request, data)

    def reply_error(self, cmd: str, code: int, message: str) -> None:
        self.responders[cmd] = lambda request: error_for(request, code, message)

    def push(self, opcode: OpCode, payload: Any) -> None:
        self._inbound.put_nowait(encode(opcode, payload))

    def push_raw(self, data: bytes) -> None:
        self._inbound.put_nowait(data)

    def push_ready(self) -> None:
        self.push(
            OpCode.FRAME,
            {
                "cmd": "DISPATCH",
                "evt": "READY",
                "data": {"v": 1, "config": self.config, "user": self.user},
            },
        )

    def respond(self, request: dict[str, Any], data: Any = None) -> None:
        self.push(OpCode.FRAME, response_for(request, data))

    def respond_error(self, request: dict[str, Any], code: int, message: str) -> None:
        self.push(OpCode.FRAME, error_for(request, code, message))

    def dispatch(self, evt: str, data: Any) -> None:
        self.push(OpCode.FRAME, {"cmd": "DISPATCH", "evt": evt, "data": data})

    def hang_up(self) -> None:
        """Simulate the host process going away (EOF on the stream)."""
        self._inbound.put_nowait(b"")

    def send_close(self, code: int, message: str) -> None:
        self.push(OpCode.CLOSE, {"code": code, "message": message})

    # -- Inspection --------------------------------------------------------

    def requests_for(self, cmd: str) -> list[dict[str, Any]]:
        return [request for request in self.requests if request.get("cmd") == cmd]

    def frames_of(self, opcode: OpCode) -> list[Frame]:
        return [frame for frame in self.frames if frame.opcode is opcode]

    async def next_request(self, cmd: str, *, timeout: float = 2.0) -> dict[str, Any]:
        """Wait for the first unanswered-by-test request of *cmd* to arrive."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            matches = self.requests_for(cmd)
            if matches:
                return matches[-1]
            remaining = deadline - loop.time()
            if remaining <= 0:
                msg = f"No {cmd} request within {timeout}s"
                raise TimeoutError(msg)
            self._request_arrived.clear()
            try:
                await asyncio.wait_for(self._request_arrived.wait(), remaining)
            except TimeoutError:
                continue

    def _on_frame(self, frame: Frame) -> None:
        match frame.opcode:
            case OpCode.HANDSHAKE:
                if self.auto_ready:
                    self.push_ready()
            case OpCode.FRAME:
                request = dict(frame.payload)
                self.requests.append(request)
                self._request_arrived.set()
                cmd = request.get("cmd", "")
                if cmd in self.held:
                    return
                responder = self.responders.get(cmd)
                reply = responder(request) if responder is not None else response_for(request)
                if reply is not None:
                    self.push(OpCode.FRAME, reply)
            case _:
                pass


def response_for(request: dict[str, Any], data: Any = None) -> dict[str, Any]:
    reply = {"cmd": request["cmd"], "nonce": request["nonce"], "data": data}
    if request.get("evt"):
        reply["evt"] = request["evt"]
    return reply


def error_for(request: dict[str, Any], code: int, message: str) -> dict[str, Any]:
    return {
        "cmd": request["cmd"],
        "nonce": request["nonce"],
        "evt": "ERROR",
        "data": {"code": code, "message": message},
    }


def counter_nonces(prefix: str = "n") -> Callable[[], str]:
    """Deterministic nonce factory: n1, n2, ..."""
    count = 0

    def factory() -> str:
        nonlocal count
        count += 1
        return f"{prefix}{count}"

    return factory


__all__ = [
    "CLIENT_ID",
    "DEFAULT_CONFIG",
    "DEFAULT_USER",
    "FakeHostTransport",
    "counter_nonces",
    "error_for",
    "response_for",
]
