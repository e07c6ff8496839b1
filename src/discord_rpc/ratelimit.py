"""Minimum-interval enforcement for activity updates."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from discord_rpc.errors import ConnectionClosed, RateLimited
from discord_rpc.limits import ACTIVITY_INTERVAL

logger = logging.getLogger(__name__)

type ActivitySender = Callable[[dict[str, Any]], Awaitable[Any]]


class RateLimitPolicy(StrEnum):
    COALESCE = "coalesce"
    REJECT = "reject"


class ActivityRateLimiter:
    """Keeps SET_ACTIVITY traffic to at most one request per ``interval`` seconds.

    With ``COALESCE`` every submission joins the current window; only the
    latest payload of a window is sent, at the window boundary, and every
    caller of that window receives the result of that single send.  The first
    submission of an idle limiter opens a window ``interval`` seconds long
    (``settle``), or sends immediately when ``leading_edge`` is set.  A new
    window never closes earlier than ``interval`` after the previous send.

    With ``REJECT`` a submission inside the interval, or while another send is
    still in flight, raises ``RateLimited``.  A failed send does not start a
    new interval.
    """

    def __init__(
        self,
        sender: ActivitySender,
        *,
        interval: float = ACTIVITY_INTERVAL,
        policy: RateLimitPolicy = RateLimitPolicy.COALESCE,
        leading_edge: bool = False,
    ) -> None:
        self._sender = sender
        self._interval = interval
        self._policy = RateLimitPolicy(policy)
        self._leading_edge = leading_edge
        self._last_sent: float | None = None
        self._in_flight = False
        self._pending: dict[str, Any] | None = None
        self._waiters: list[asyncio.Future[Any]] = []
        self._flush_task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def policy(self) -> RateLimitPolicy:
        return self._policy

    @property
    def pending(self) -> dict[str, Any] | None:
        """Payload waiting for the current window to close, if any."""
        return self._pending

    @property
    def last_sent(self) -> float | None:
        """Event loop time of the last send.

        Under ``REJECT`` only sends that returned successfully count; under
        ``COALESCE`` the window closes at hand-off whatever the outcome.
        """
        return self._last_sent

    async def submit(self, args: dict[str, Any]) -> Any:
        """Send *args* subject to the policy and return the host's response."""
        loop = asyncio.get_running_loop()
        now = loop.time()

        if self._policy is RateLimitPolicy.REJECT:
            if self._in_flight:
                raise RateLimited(self._interval)
            if self._last_sent is not None and now - self._last_sent < self._interval:
                raise RateLimited(self._interval - (now - self._last_sent))
            # Only a send the host accepted starts the next interval.
            self._in_flight = True
            try:
                result = await self._sender(args)
            finally:
                self._in_flight = False
            self._last_sent = now
            return result

        if self._pending is not None:
            logger.debug("Superseding queued activity update")
        self._pending = args
        waiter: asyncio.Future[Any] = loop.create_future()
        self._waiters.append(waiter)
        if self._flush_task is None:
            delay = self._delay(now)
            logger.debug("Activity window open; flushing in %.2fs", delay)
            self._flush_task = loop.create_task(self._flush_after(delay))

        try:
            return await waiter
        except asyncio.CancelledError:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def cancel(self, reason: str = "Connection closed") -> None:
        """Drop the queued payload and fail its waiters."""
        task, self._flush_task = self._flush_task, None
        if task is not None:
            task.cancel()
        self._pending = None
        waiters, self._waiters = self._waiters, []
        _fail(waiters, ConnectionClosed(reason, command="SET_ACTIVITY"))

    def _delay(self, now: float) -> float:
        settle = 0.0 if self._leading_edge else self._interval
        deadline = now + settle
        if self._last_sent is not None:
            deadline = max(deadline, self._last_sent + self._interval)
        return max(0.0, deadline - now)

    async def _flush_after(self, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)

        args, waiters = self._pending, self._waiters
        self._pending, self._waiters, self._flush_task = None, [], None
        if args is None:
            return

        self._last_sent = asyncio.get_running_loop().time()
        try:
            result = await self._sender(args)
        except asyncio.CancelledError:
            _fail(waiters, ConnectionClosed("Activity update cancelled", command="SET_ACTIVITY"))
            raise
        except Exception as exc:
            _fail(waiters, exc)
            return
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(result)


def _fail(waiters: list[asyncio.Future[Any]], exc: BaseException) -> None:
    for waiter in waiters:
        if not waiter.done():
            waiter.set_exception(exc)


__all__ = ["ActivityRateLimiter", "RateLimitPolicy"]
