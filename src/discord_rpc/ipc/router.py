"""Event subscriptions and in-order fan-out of DISPATCH frames."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from discord_rpc.constants import RPCCommand
from discord_rpc.limits import SHUTDOWN_TIMEOUT

if TYPE_CHECKING:
    from discord_rpc.ipc.dispatcher import RequestDispatcher

logger = logging.getLogger(__name__)

type SubscriptionHandler = Callable[[Any], Awaitable[None] | None]
type ErrorReporter = Callable[[BaseException, str], None]
type DispatchObserver = Callable[[str, Any], Awaitable[None]]

_STOP = object()


def args_fingerprint(args: dict[str, Any] | None) -> str:
    """Canonical JSON form of subscription filter args."""
    return json.dumps(args or {}, sort_keys=True, separators=(",", ":"), default=str)


def _args_match(args: dict[str, Any], data: Any) -> bool:
    # A filter key the payload does not carry cannot discriminate; deliver.
    if not args or not isinstance(data, dict):
        return True
    return all(key not in data or data[key] == value for key, value in args.items())


@dataclass(eq=False)
class Subscription:
    """Caller-owned handle for one registered handler."""

    event: str
    args: dict[str, Any]
    handler: SubscriptionHandler
    _router: EventRouter = field(repr=False)
    active: bool = True

    @property
    def key(self) -> tuple[str, str]:
        return (self.event, args_fingerprint(self.args))

    async def unsubscribe(self) -> Any:
        """Stop local delivery now and tell the host once no handler needs the key."""
        if not self.active:
            return None
        self.active = False
        return await self._router.release(self)


class EventRouter:
    """Tracks subscriptions and delivers DISPATCH payloads to their handlers.

    Frames are queued by the read loop and delivered by a single delivery
    task, so handlers run one at a time in arrival order and may themselves
    await requests without stalling the read loop.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        *,
        on_error: ErrorReporter | None = None,
        on_dispatch: DispatchObserver | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._on_error = on_error
        self._on_dispatch = on_dispatch
        self._registry: dict[tuple[str, str], list[Subscription]] = {}
        self._queue: asyncio.Queue[tuple[str, Any] | object] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    @property
    def subscription_count(self) -> int:
        return sum(len(subs) for subs in self._registry.values())

    def handlers_for(self, event: str) -> list[Subscription]:
        return [sub for (evt, _), subs in self._registry.items() if evt == event for sub in subs]

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._deliver_loop(), name="discord-rpc-events")

    async def subscribe(
        self,
        event: str,
        args: dict[str, Any] | None,
        handler: SubscriptionHandler,
    ) -> Subscription:
        """Send SUBSCRIBE for *event* and register *handler* once the host accepts."""
        filter_args = dict(args or {})
        await self._dispatcher.send(RPCCommand.SUBSCRIBE, filter_args, event)
        subscription = Subscription(event=event, args=filter_args, handler=handler, _router=self)
        self._registry.setdefault(subscription.key, []).append(subscription)
        logger.debug("Subscribed to %s args=%s", event, subscription.key[1])
        return subscription

    async def release(self, subscription: Subscription) -> Any:
        subs = self._registry.get(subscription.key)
        if subs is None or subscription not in subs:
            return None
        subs.remove(subscription)
        if subs:
            return None
        del self._registry[subscription.key]
        if self._dispatcher.is_closed:
            return None
        logger.debug("Unsubscribing from %s", subscription.event)
        return await self._dispatcher.send(
            RPCCommand.UNSUBSCRIBE,
            subscription.args,
            subscription.event,
        )

    def dispatch(self, event: str, data: Any) -> None:
        """Queue one DISPATCH payload for delivery; never blocks the caller."""
        self._queue.put_nowait((event, data))

    async def drain(self) -> None:
        """Wait until every queued payload has been delivered."""
        await self._queue.join()

    async def close(self) -> None:
        """Stop delivery and drop every registration."""
        for subs in self._registry.values():
            for sub in subs:
                sub.active = False
        self._registry.clear()
        task, self._task = self._task, None
        if task is None:
            return
        self._queue.put_nowait(_STOP)
        if task is asyncio.current_task():
            return
        # wait_for cancels a handler that is still running at the deadline
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(task, timeout=SHUTDOWN_TIMEOUT)

    async def _deliver_loop(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                if item is _STOP:
                    return
                event, data = item  # type: ignore[misc]
                await self._deliver(event, data)
            finally:
                self._queue.task_done()

    async def _deliver(self, event: str, data: Any) -> None:
        for sub in self.handlers_for(event):
            if not sub.active or not _args_match(sub.args, data):
                continue
            try:
                result = sub.handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.exception("Subscription handler for %s failed", event)
                self._report(exc, f"handler for {event}")

        if self._on_dispatch is not None:
            try:
                await self._on_dispatch(event, data)
            except Exception as exc:
                logger.exception("Dispatch observer failed for %s", event)
                self._report(exc, f"observer for {event}")

    def _report(self, exc: BaseException, context: str) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc, context)
        except Exception:
            logger.exception("Error reporter failed")


__all__ = ["EventRouter", "Subscription", "SubscriptionHandler", "args_fingerprint"]
