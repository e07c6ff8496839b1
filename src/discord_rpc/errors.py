"""Error taxonomy for the RPC client.

Transport and protocol failures are fatal to a connection; ``RpcError`` and
``RequestTimeout`` stay local to the one request that produced them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class DiscordRPCError(Exception):
    """Base for every error raised by this package, with a machine-readable code."""

    code: str = "RPC_CLIENT_ERROR"


class ConnectError(DiscordRPCError):
    """Raised when no IPC endpoint accepts a connection."""

    code = "CONNECT_FAILED"

    def __init__(self, message: str, *, attempted: list[str] | None = None) -> None:
        super().__init__(message)
        self.attempted = attempted or []


class HandshakeFailed(DiscordRPCError):
    """Raised when the peer does not answer the handshake with a READY dispatch."""

    code = "HANDSHAKE_FAILED"

    def __init__(
        self,
        message: str,
        *,
        close_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.close_code = close_code
        self.payload = payload


class ProtocolErrorKind(StrEnum):
    MALFORMED_FRAME = "MALFORMED_FRAME"
    UNEXPECTED_OPCODE = "UNEXPECTED_OPCODE"


class ProtocolError(DiscordRPCError):
    """Raised for bytes on the wire that cannot be a valid frame."""

    code = "PROTOCOL_ERROR"

    def __init__(self, kind: ProtocolErrorKind, message: str) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind


class RpcError(DiscordRPCError):
    """Application-level error returned by the host for one request."""

    code = "RPC_ERROR"

    def __init__(
        self,
        error_code: int,
        message: str,
        *,
        command: str | None = None,
        nonce: str | None = None,
    ) -> None:
        super().__init__(f"[{error_code}] {message} (cmd={command}, nonce={nonce})")
        self.error_code = error_code
        self.message = message
        self.command = command
        self.nonce = nonce


class RequestTimeout(DiscordRPCError, TimeoutError):
    """Raised when no response arrives for a request within its timeout."""

    code = "REQUEST_TIMEOUT"

    def __init__(self, command: str, nonce: str, timeout: float) -> None:
        super().__init__(f"{command} timed out after {timeout}s (nonce={nonce})")
        self.command = command
        self.nonce = nonce
        self.timeout = timeout


class ConnectionClosed(DiscordRPCError, ConnectionError):
    """Raised on every pending request when the connection is torn down."""

    code = "CONNECTION_CLOSED"

    def __init__(
        self,
        reason: str = "Connection closed",
        *,
        close_code: int | None = None,
        command: str | None = None,
        nonce: str | None = None,
    ) -> None:
        detail = reason if close_code is None else f"{reason} (code={close_code})"
        super().__init__(detail)
        self.reason = reason
        self.close_code = close_code
        self.command = command
        self.nonce = nonce


class NotConnected(ConnectionClosed):
    """Raised when a request is made on a client that holds no connection."""

    code = "NOT_CONNECTED"

    def __init__(self, command: str | None = None) -> None:
        super().__init__("Client is not connected; call connect() first", command=command)


class LoginFailed(DiscordRPCError):
    """Raised when any step of ``login`` fails; the cause is chained."""

    code = "LOGIN_FAILED"

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"Login failed during {step}: {cause}")
        self.step = step
        self.__cause__ = cause


class RateLimited(DiscordRPCError):
    """Raised when an activity update arrives inside the minimum interval."""

    code = "RATE_LIMITED"

    def __init__(self, retry_after: float) -> None:
        super().__init__(f"Activity updates are rate limited; retry in {retry_after:.2f}s")
        self.retry_after = retry_after


class ActivityValidationError(DiscordRPCError, ValueError):
    """Raised when an activity payload fails validation before reaching the wire."""

    code = "INVALID_ACTIVITY"

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class TokenExchangeError(DiscordRPCError):
    """Raised when the OAuth2 token endpoint rejects an exchange."""

    code = "TOKEN_EXCHANGE_FAILED"

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


__all__ = [
    "ActivityValidationError",
    "ConnectError",
    "ConnectionClosed",
    "DiscordRPCError",
    "HandshakeFailed",
    "LoginFailed",
    "NotConnected",
    "ProtocolError",
    "ProtocolErrorKind",
    "RateLimited",
    "RequestTimeout",
    "RpcError",
    "TokenExchangeError",
]
