"""Opcode-0 handshake establishing protocol version and client identity."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from discord_rpc.constants import RPC_VERSION, OpCode
from discord_rpc.errors import HandshakeFailed, ProtocolError
from discord_rpc.ipc.codec import encode
from discord_rpc.ipc.contracts import ClosePayload, HandshakePayload, RpcResponse
from discord_rpc.limits import HANDSHAKE_TIMEOUT

if TYPE_CHECKING:
    from discord_rpc.ipc.codec import Frame, FrameDecoder
    from discord_rpc.ipc.transports import Transport

logger = logging.getLogger(__name__)


class HandshakeNegotiator:
    """Send the HANDSHAKE frame and wait for the host's READY dispatch.

    Bytes that arrive after the READY frame stay buffered in the decoder so
    the read loop picks them up.
    """

    def __init__(
        self,
        client_id: str,
        *,
        timeout: float = HANDSHAKE_TIMEOUT,
        version: int = RPC_VERSION,
    ) -> None:
        self._payload = HandshakePayload(v=version, client_id=client_id)
        self._timeout = timeout

    async def negotiate(self, transport: Transport, decoder: FrameDecoder) -> dict[str, Any]:
        """Run the handshake and return the READY ``data`` (``config``, ``user``)."""
        try:
            transport.write(encode(OpCode.HANDSHAKE, self._payload.model_dump()))
            await transport.drain()
            logger.debug(
                "Sent handshake v=%d client_id=%s", self._payload.v, self._payload.client_id
            )
            return await asyncio.wait_for(self._await_ready(transport, decoder), self._timeout)
        except TimeoutError as exc:
            msg = f"No READY from host within {self._timeout}s"
            raise HandshakeFailed(msg) from exc
        except (ConnectionError, OSError) as exc:
            msg = f"Transport error during handshake: {exc}"
            raise HandshakeFailed(msg) from exc
        except ProtocolError as exc:
            msg = f"Malformed handshake reply: {exc}"
            raise HandshakeFailed(msg) from exc

    async def _await_ready(self, transport: Transport, decoder: FrameDecoder) -> dict[str, Any]:
        while True:
            for frame in decoder.frames():
                ready = await self._inspect(frame, transport)
                if ready is not None:
                    return ready
            chunk = await transport.read()
            if not chunk:
                msg = "Host closed the connection during handshake"
                raise HandshakeFailed(msg)
            decoder.feed(chunk)

    async def _inspect(self, frame: Frame, transport: Transport) -> dict[str, Any] | None:
        match frame.opcode:
            case OpCode.PING:
                transport.write(encode(OpCode.PONG, frame.payload))
                await transport.drain()
                return None
            case OpCode.CLOSE:
                close = ClosePayload.from_payload(frame.payload)
                raise HandshakeFailed(
                    f"Host rejected handshake: {close.message}",
                    close_code=close.code,
                    payload=frame.payload,
                )
            case OpCode.FRAME:
                try:
                    message = RpcResponse.model_validate(frame.payload)
                except ValidationError as exc:
                    msg = "Handshake reply is not a command frame"
                    raise HandshakeFailed(msg, payload=frame.payload) from exc
                if message.is_ready:
                    logger.info("Handshake complete")
                    return message.data if isinstance(message.data, dict) else {}
                msg = f"Expected READY dispatch, got cmd={message.cmd} evt={message.evt}"
                raise HandshakeFailed(msg, payload=frame.payload)
            case _:
                msg = f"Unexpected {frame.opcode.name} frame during handshake"
                raise HandshakeFailed(msg, payload=frame.payload)


__all__ = ["HandshakeNegotiator"]
