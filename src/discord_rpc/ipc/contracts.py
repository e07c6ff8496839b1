"""Wire payload contracts for handshake, command and dispatch frames."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from discord_rpc.constants import RPC_VERSION, RPCCommand, RPCEvent


def new_nonce() -> str:
    return str(uuid4())


class HandshakePayload(BaseModel):
    """Body of the opcode-0 frame opening every connection."""

    v: int = Field(default=RPC_VERSION, description="Protocol version")
    client_id: str = Field(description="Application (client) id the host should bind to")


class RpcRequest(BaseModel):
    """Envelope for a single command sent to the host.

    ``nonce`` correlates the eventual response; ``evt`` is only set for
    ``SUBSCRIBE``/``UNSUBSCRIBE`` where it names the event.
    """

    cmd: str = Field(description="Command name (e.g. 'SET_ACTIVITY')")
    args: dict[str, Any] = Field(
        default_factory=dict,
        description="Command-specific arguments",
    )
    nonce: str = Field(
        default_factory=new_nonce,
        description="Unique correlator echoed back in the response",
    )
    evt: str | None = Field(
        default=None,
        description="Event name for subscription commands",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RpcErrorDetail(BaseModel):
    """Structured error carried in ``data`` when ``evt`` is ``ERROR``."""

    code: int = Field(default=-1, description="Host error code")
    message: str = Field(default="Unknown error", description="Human-readable description")


class RpcResponse(BaseModel):
    """Envelope for any FRAME-opcode message coming from the host.

    Responses echo the request ``nonce``; dispatch frames carry
    ``cmd == "DISPATCH"`` and no nonce.
    """

    model_config = ConfigDict(extra="allow")

    cmd: str | None = Field(default=None, description="Command this frame answers")
    data: Any = Field(default=None, description="Result payload or error detail")
    nonce: str | None = Field(default=None, description="Echoed request nonce")
    evt: str | None = Field(default=None, description="Event name or 'ERROR'")

    @property
    def is_dispatch(self) -> bool:
        return self.cmd == RPCCommand.DISPATCH

    @property
    def is_error(self) -> bool:
        return self.evt == RPCEvent.ERROR

    @property
    def is_ready(self) -> bool:
        return self.is_dispatch and self.evt == RPCEvent.READY

    def error_detail(self) -> RpcErrorDetail:
        """Parse ``data`` as an error body; malformed bodies still yield a detail."""
        if isinstance(self.data, dict):
            try:
                return RpcErrorDetail.model_validate(self.data)
            except ValidationError:
                message = self.data.get("message")
                if isinstance(message, str):
                    return RpcErrorDetail(message=message)
        return RpcErrorDetail(message=str(self.data))


class ClosePayload(BaseModel):
    """Body of a CLOSE frame sent by the host before it drops the pipe."""

    model_config = ConfigDict(extra="allow")

    code: int | None = None
    message: str = "Connection closed by host"

    @staticmethod
    def from_payload(payload: Any) -> ClosePayload:
        """Parse a CLOSE body, falling back to defaults for unexpected shapes."""
        if isinstance(payload, dict):
            try:
                return ClosePayload.model_validate(payload)
            except ValidationError:
                pass
        return ClosePayload()


__all__ = [
    "ClosePayload",
    "HandshakePayload",
    "RpcErrorDetail",
    "RpcRequest",
    "RpcResponse",
    "new_nonce",
]
