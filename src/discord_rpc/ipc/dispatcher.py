"""Request/response correlation over a single multiplexed connection."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from discord_rpc.constants import OpCode, RPCCommand
from discord_rpc.errors import ConnectionClosed, NotConnected, RequestTimeout, RpcError
from discord_rpc.ipc.codec import encode
from discord_rpc.ipc.contracts import RpcRequest, new_nonce
from discord_rpc.limits import REQUEST_TIMEOUT

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from discord_rpc.ipc.contracts import RpcResponse

    FrameSender = Callable[[bytes], Awaitable[None]]

logger = logging.getLogger(__name__)


class _Unset(Enum):
    UNSET = auto()


UNSET = _Unset.UNSET

# Commands that wait on a human (browser consent) get no timeout by default.
_COMMAND_TIMEOUTS: dict[str, float | None] = {
    RPCCommand.AUTHORIZE: None,
}


@dataclass(slots=True)
class PendingRequest:
    """One in-flight command waiting for its response."""

    nonce: str
    command: str
    event: str | None
    created_at: float
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class RequestDispatcher:
    """Assigns nonces, tracks pending requests and resolves them exactly once.

    The pending table is only touched from the event loop thread, and each
    entry is registered before its frame is handed to the sender, so a
    response can never race ahead of its registration.

    Usage::

        dispatcher = RequestDispatcher(sender=session.write_frame)
        guild = await dispatcher.send("GET_GUILD", {"guild_id": "1"})
        ...
        dispatcher.resolve(response)  # from the read loop
    """

    def __init__(
        self,
        sender: FrameSender,
        *,
        default_timeout: float | None = REQUEST_TIMEOUT,
        nonce_factory: Callable[[], str] = new_nonce,
    ) -> None:
        self._sender = sender
        self._default_timeout = default_timeout
        self._nonce_factory = nonce_factory
        self._pending: dict[str, PendingRequest] = {}
        self._closed: ConnectionClosed | None = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_closed(self) -> bool:
        return self._closed is not None

    def is_pending(self, nonce: str | None) -> bool:
        return nonce is not None and nonce in self._pending

    def timeout_for(self, command: str) -> float | None:
        return _COMMAND_TIMEOUTS.get(command, self._default_timeout)

    async def send(
        self,
        command: str,
        args: dict[str, Any] | None = None,
        event: str | None = None,
        *,
        timeout: float | None | _Unset = UNSET,
    ) -> Any:
        """Send *command* and wait for its response data.

        Raises:
            RpcError: The host answered with an ERROR event.
            RequestTimeout: No response within *timeout* seconds.
            ConnectionClosed: The connection dropped before a response arrived.
        """
        if self._closed is not None:
            raise NotConnected(command)

        effective_timeout = self.timeout_for(command) if timeout is UNSET else timeout
        request = RpcRequest(cmd=command, args=args or {}, nonce=self._next_nonce(), evt=event)
        pending = self._register(request, effective_timeout)

        try:
            await self._sender(encode(OpCode.FRAME, request.to_wire()))
        except Exception as exc:
            self._discard(pending)
            if isinstance(exc, ConnectionClosed):
                raise
            msg = f"Failed to send {command}"
            raise ConnectionClosed(msg, command=command, nonce=request.nonce) from exc
        logger.debug("-> %s nonce=%s evt=%s", command, request.nonce, event)

        try:
            return await pending.future
        except asyncio.CancelledError:
            self._discard(pending)
            raise

    def resolve(self, message: RpcResponse) -> bool:
        """Complete the pending request matching ``message.nonce``.

        Returns ``False`` (and drops the message) when no request is waiting
        for that nonce, e.g. a late reply after a timeout.
        """
        pending = self._pending.pop(message.nonce, None) if message.nonce else None
        if pending is None:
            logger.debug(
                "Dropping response with unknown nonce=%s cmd=%s", message.nonce, message.cmd
            )
            return False

        pending.cancel_timer()
        if pending.future.done():
            return True
        try:
            if message.is_error:
                detail = message.error_detail()
                logger.debug(
                    "<- %s nonce=%s error=%s", pending.command, pending.nonce, detail.code
                )
                pending.future.set_exception(
                    RpcError(
                        detail.code, detail.message, command=pending.command, nonce=pending.nonce
                    )
                )
            else:
                logger.debug("<- %s nonce=%s", pending.command, pending.nonce)
                pending.future.set_result(message.data)
        finally:
            # The entry is already popped; nobody else will complete this future.
            if not pending.future.done():
                pending.future.set_exception(
                    RpcError(
                        -1, "Unreadable reply", command=pending.command, nonce=pending.nonce
                    )
                )
        return True

    def cancel(self, nonce: str) -> bool:
        """Stop waiting for *nonce* locally; the host may still act on it."""
        pending = self._pending.get(nonce)
        if pending is None:
            return False
        self._discard(pending)
        if not pending.future.done():
            pending.future.cancel()
        return True

    def fail_all(
        self,
        reason: str = "Connection closed",
        *,
        close_code: int | None = None,
        cause: BaseException | None = None,
    ) -> int:
        """Fail every pending request with ``ConnectionClosed`` and refuse new ones."""
        self._closed = ConnectionClosed(reason, close_code=close_code)
        pending, self._pending = list(self._pending.values()), {}
        for entry in pending:
            entry.cancel_timer()
            if entry.future.done():
                continue
            exc = ConnectionClosed(
                reason,
                close_code=close_code,
                command=entry.command,
                nonce=entry.nonce,
            )
            if cause is not None:
                exc.__cause__ = cause
            entry.future.set_exception(exc)
        if pending:
            logger.info("Failed %d pending request(s): %s", len(pending), reason)
        return len(pending)

    def _next_nonce(self) -> str:
        nonce = self._nonce_factory()
        while nonce in self._pending:
            nonce = self._nonce_factory()
        return nonce

    def _register(self, request: RpcRequest, timeout: float | None) -> PendingRequest:
        loop = asyncio.get_running_loop()
        pending = PendingRequest(
            nonce=request.nonce,
            command=request.cmd,
            event=request.evt,
            created_at=loop.time(),
            future=loop.create_future(),
        )
        if timeout is not None:
            pending.timer = loop.call_later(timeout, self._expire, pending, timeout)
        self._pending[pending.nonce] = pending
        return pending

    def _expire(self, pending: PendingRequest, timeout: float) -> None:
        if self._pending.get(pending.nonce) is not pending:
            return
        del self._pending[pending.nonce]
        pending.timer = None
        if not pending.future.done():
            logger.warning(
                "%s timed out after %ss (nonce=%s)", pending.command, timeout, pending.nonce
            )
            pending.future.set_exception(RequestTimeout(pending.command, pending.nonce, timeout))

    def _discard(self, pending: PendingRequest) -> None:
        pending.cancel_timer()
        if self._pending.get(pending.nonce) is pending:
            del self._pending[pending.nonce]


__all__ = ["UNSET", "PendingRequest", "RequestDispatcher"]
