"""Lifecycle events and the in-process bus observers register on."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)


def _new_event_id() -> str:
    return uuid4().hex


def _now() -> datetime:
    return datetime.now()


@dataclass(frozen=True)
class ConnectedEvent:
    """Handshake finished; commands may be sent."""

    client_id: str
    address: str | None
    user: dict[str, Any] | None = None
    config: dict[str, Any] | None = None
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=_now)

    name = "connected"


@dataclass(frozen=True)
class ReadyEvent:
    """Session is READY (after authenticate, or straight after connect for presence-only use)."""

    user: dict[str, Any] | None
    application: dict[str, Any] | None = None
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=_now)

    name = "ready"


@dataclass(frozen=True)
class DisconnectedEvent:
    reason: str
    close_code: int | None = None
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=_now)

    name = "disconnected"


@dataclass(frozen=True)
class ErrorEvent:
    """A failure that did not surface through any caller's await."""

    error: BaseException
    context: str
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=_now)

    name = "error"


@dataclass(frozen=True)
class DispatchEvent:
    """Raw DISPATCH frame from the host, keyed by its ``evt`` name."""

    evt: str
    data: Any
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=_now)

    @property
    def name(self) -> str:
        return self.evt


type ClientEvent = ConnectedEvent | ReadyEvent | DisconnectedEvent | ErrorEvent | DispatchEvent
type EventHandler = Callable[[ClientEvent], Awaitable[None] | None]


class EventBus:
    """Async fan-out bus with named handlers and async subscribers.

    Handlers registered with ``name=None`` see every event.  A failing
    handler is logged and never prevents delivery to the others.  Events are
    not persisted; new subscribers only receive future events.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[str | None, EventHandler]] = []
        self._queues: list[tuple[str | None, asyncio.Queue[ClientEvent]]] = []

    async def publish(self, event: ClientEvent) -> None:
        """Publish event to all matching handlers and subscribers."""
        for name, handler in list(self._handlers):
            if name is not None and name != event.name:
                continue
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, event.name)

        for name, queue in self._queues:
            if name is None or name == event.name:
                with contextlib.suppress(asyncio.QueueFull):
                    queue.put_nowait(event)

    def add_handler(self, handler: EventHandler, name: str | None = None) -> None:
        self._handlers.append((name, handler))

    def remove_handler(self, handler: EventHandler, name: str | None = None) -> None:
        """Remove a handler; with *name* only that registration is dropped."""
        self._handlers = [
            (n, h) for n, h in self._handlers if h != handler or (name is not None and n != name)
        ]

    def clear(self) -> None:
        self._handlers.clear()

    def listener_count(self, name: str | None = None) -> int:
        return sum(1 for n, _ in self._handlers if name is None or n == name)

    async def subscribe(self, name: str | None = None) -> AsyncIterator[ClientEvent]:
        """Subscribe to events, yielding them as they arrive."""
        queue: asyncio.Queue[ClientEvent] = asyncio.Queue(maxsize=100)
        self._queues.append((name, queue))
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues = [(n, q) for n, q in self._queues if q is not queue]


__all__ = [
    "ClientEvent",
    "ConnectedEvent",
    "DisconnectedEvent",
    "DispatchEvent",
    "ErrorEvent",
    "EventBus",
    "EventHandler",
    "ReadyEvent",
]
