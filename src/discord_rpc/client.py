"""RPC client session: connection lifecycle, read loop and command helpers."""

from __future__ import annotations

import asyncio
import logging
import os
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from discord_rpc.activity import build_activity
from discord_rpc.config import ClientConfig
from discord_rpc.constants import OpCode, RelationshipType, RPCCommand, RPCEvent
from discord_rpc.errors import (
    DiscordRPCError,
    HandshakeFailed,
    LoginFailed,
    NotConnected,
    ProtocolError,
    ProtocolErrorKind,
    RpcError,
)
from discord_rpc.events import (
    ConnectedEvent,
    DisconnectedEvent,
    DispatchEvent,
    ErrorEvent,
    EventBus,
    ReadyEvent,
)
from discord_rpc.ipc.codec import FrameDecoder, encode
from discord_rpc.ipc.contracts import ClosePayload, RpcResponse, new_nonce
from discord_rpc.ipc.dispatcher import UNSET, RequestDispatcher
from discord_rpc.ipc.handshake import HandshakeNegotiator
from discord_rpc.ipc.router import EventRouter
from discord_rpc.ipc.transports import transport_for_preference
from discord_rpc.oauth import AccessToken, HTTPTokenExchanger
from discord_rpc.ratelimit import ActivityRateLimiter

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping

    from discord_rpc.activity import Activity
    from discord_rpc.events import ClientEvent, EventHandler
    from discord_rpc.ipc.codec import Frame
    from discord_rpc.ipc.dispatcher import _Unset
    from discord_rpc.ipc.router import Subscription, SubscriptionHandler
    from discord_rpc.ipc.transports import Transport
    from discord_rpc.oauth import TokenExchanger

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    HANDSHAKING = "HANDSHAKING"
    AUTHENTICATING = "AUTHENTICATING"
    READY = "READY"
    CLOSED = "CLOSED"


def _entity_id(entity: Any) -> Any:
    """Accept either an id or an object/mapping carrying one."""
    if isinstance(entity, dict):
        return entity.get("id")
    return getattr(entity, "id", entity)


class Client:
    """Async client for the host application's local RPC interface.

    One ``Client`` owns at most one live connection.  Each ``connect`` builds
    a fresh dispatcher, router and activity limiter; nothing is reused from a
    previous connection.

    Usage::

        async with Client("123456789012345678") as client:
            await client.set_activity({"name": "Snek", "details": "booping"})

    Or with OAuth2 for the privileged commands::

        client = Client(client_id, config=ClientConfig(client_secret=secret))
        await client.login(scopes=["rpc", "identify"])
        guilds = await client.get_guilds()
        await client.destroy()
    """

    def __init__(
        self,
        client_id: str | None = None,
        *,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        token_exchanger: TokenExchanger | None = None,
        nonce_factory: Callable[[], str] = new_nonce,
    ) -> None:
        self._config = config or ClientConfig()
        self.client_id: str | None = client_id or self._config.client_id
        self._transport = transport
        self._token_exchanger = token_exchanger
        self._nonce_factory = nonce_factory

        self._events = EventBus()
        self._state = SessionState.DISCONNECTED
        self._decoder = FrameDecoder()
        self._dispatcher: RequestDispatcher | None = None
        self._router: EventRouter | None = None
        self._limiter: ActivityRateLimiter | None = None
        self._read_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._write_lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()
        self._teardown_lock = asyncio.Lock()

        self.user: dict[str, Any] | None = None
        self.application: dict[str, Any] | None = None
        self.host_config: dict[str, Any] | None = None
        self.access_token: AccessToken | None = None

    async def __aenter__(self) -> Client:
        await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.destroy()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether a handshake-complete connection is currently open."""
        return self._state in (SessionState.AUTHENTICATING, SessionState.READY)

    @property
    def address(self) -> str | None:
        """Endpoint of the current (or last) connection."""
        return self._transport.address if self._transport is not None else None

    @property
    def pending_requests(self) -> int:
        return self._dispatcher.pending_count if self._dispatcher is not None else 0

    @property
    def subscriptions(self) -> int:
        return self._router.subscription_count if self._router is not None else 0

    @property
    def activity_limiter(self) -> ActivityRateLimiter | None:
        return self._limiter

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        """Observe ``connected``, ``ready``, ``disconnected``, ``error`` or a raw event name."""
        self._events.add_handler(handler, event)

    def off(self, event: str, handler: EventHandler) -> None:
        self._events.remove_handler(handler, event)

    def events(self, name: str | None = None) -> AsyncIterator[ClientEvent]:
        """Async iterator over lifecycle and dispatch events."""
        return self._events.subscribe(name)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self, client_id: str | None = None) -> Client:
        """Open the transport and complete the handshake.

        Raises:
            ConnectError: No IPC endpoint accepted the connection.
            HandshakeFailed: The host did not answer with a READY dispatch.
        """
        async with self._connect_lock:
            if self.is_connected:
                return self
            self.client_id = client_id or self.client_id
            if not self.client_id:
                msg = "client_id is required to connect"
                raise ValueError(msg)

            self._reset_connection()
            self._state = SessionState.CONNECTING
            transport = self._transport or transport_for_preference(
                self._config.transport,
                path=self._config.ipc_path,
                client_id=self.client_id,
                origin=self._config.origin,
            )
            self._transport = transport
            try:
                await transport.connect()
            except Exception as exc:
                self._state = SessionState.CLOSED
                await self._events.publish(ErrorEvent(error=exc, context="connect"))
                raise

            self._state = SessionState.HANDSHAKING
            negotiator = HandshakeNegotiator(
                self.client_id,
                timeout=self._config.handshake_timeout,
            )
            try:
                ready = await negotiator.negotiate(transport, self._decoder)
            except asyncio.CancelledError:
                await transport.close()
                self._state = SessionState.CLOSED
                raise
            except Exception as exc:
                await transport.close()
                self._state = SessionState.CLOSED
                if isinstance(exc, DiscordRPCError):
                    await self._events.publish(ErrorEvent(error=exc, context="handshake"))
                    raise
                msg = f"Handshake aborted: {exc}"
                failed = HandshakeFailed(msg)
                await self._events.publish(ErrorEvent(error=failed, context="handshake"))
                raise failed from exc

            self.host_config = ready.get("config")
            self.user = ready.get("user") or self.user
            self._router.start()  # type: ignore[union-attr]
            self._read_task = asyncio.create_task(
                self._read_loop(transport, self._decoder),
                name="discord-rpc-reader",
            )
            self._state = SessionState.READY
            logger.info("Connected to host via %s", transport.address)

        await self._events.publish(
            ConnectedEvent(
                client_id=self.client_id,
                address=transport.address,
                user=self.user,
                config=self.host_config,
            )
        )
        return self

    async def destroy(self) -> None:
        """Close the connection, fail pending work and forget the session's token."""
        await self._teardown("Client destroyed")
        self.access_token = None
        self.user = None
        self.application = None

    def _reset_connection(self) -> None:
        self._decoder = FrameDecoder()
        self._dispatcher = RequestDispatcher(
            self._write_frame,
            default_timeout=self._config.request_timeout,
            nonce_factory=self._nonce_factory,
        )
        self._router = EventRouter(
            self._dispatcher,
            on_error=self._report_error,
            on_dispatch=self._publish_dispatch,
        )
        self._limiter = ActivityRateLimiter(
            self._send_activity,
            interval=self._config.activity_interval,
            policy=self._config.rate_limit_policy,
            leading_edge=self._config.leading_edge,
        )

    async def _teardown(
        self,
        reason: str,
        *,
        close_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        async with self._teardown_lock:
            if self._state is SessionState.CLOSED:
                return
            was_connected = self._state is not SessionState.DISCONNECTED

            if self._dispatcher is not None:
                self._dispatcher.fail_all(reason, close_code=close_code, cause=cause)
            if self._limiter is not None:
                self._limiter.cancel(reason)
            if self._router is not None:
                await self._router.close()

            read_task, self._read_task = self._read_task, None
            if read_task is not None and read_task is not asyncio.current_task():
                read_task.cancel()
            if self._transport is not None:
                await self._transport.close()

            self._state = SessionState.CLOSED
            logger.info("Session closed: %s", reason)

        if was_connected:
            await self._events.publish(DisconnectedEvent(reason=reason, close_code=close_code))

    # ------------------------------------------------------------------
    # Read loop
    # ------------------------------------------------------------------

    async def _read_loop(self, transport: Transport, decoder: FrameDecoder) -> None:
        reason = "Connection closed by host"
        close_code: int | None = None
        cause: BaseException | None = None
        try:
            while True:
                for frame in decoder.frames():
                    close = await self._handle_frame(frame)
                    if close is not None:
                        reason, close_code = close.message, close.code
                        return
                chunk = await transport.read()
                if not chunk:
                    return
                decoder.feed(chunk)
        except ProtocolError as exc:
            logger.warning("Protocol error, dropping connection: %s", exc)
            reason, cause = str(exc), exc
            self._report_error(exc, "read loop")
        except (ConnectionError, OSError) as exc:
            logger.warning("Transport error, dropping connection: %s", exc)
            reason, cause = f"Transport error: {exc}", exc
        except Exception as exc:
            logger.exception("Unexpected error in read loop, dropping connection")
            reason, cause = f"Unexpected error: {exc}", exc
            self._report_error(exc, "read loop")
        finally:
            if not _cancelling():
                await self._teardown(reason, close_code=close_code, cause=cause)

    async def _handle_frame(self, frame: Frame) -> ClosePayload | None:
        match frame.opcode:
            case OpCode.FRAME:
                self._route_message(frame.payload)
            case OpCode.PING:
                await self._write_frame(encode(OpCode.PONG, frame.payload))
            case OpCode.PONG:
                logger.debug("PONG received")
            case OpCode.CLOSE:
                close = ClosePayload.from_payload(frame.payload)
                logger.info("Host closed the connection: %s (code=%s)", close.message, close.code)
                return close
            case _:
                msg = f"{frame.opcode.name} frame after handshake"
                raise ProtocolError(ProtocolErrorKind.UNEXPECTED_OPCODE, msg)
        return None

    def _route_message(self, payload: Any) -> None:
        if not isinstance(payload, dict):
            msg = f"FRAME payload must be an object, got {type(payload).__name__}"
            raise ProtocolError(ProtocolErrorKind.MALFORMED_FRAME, msg)
        try:
            message = RpcResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolError(ProtocolErrorKind.MALFORMED_FRAME, str(exc)) from exc

        dispatcher, router = self._dispatcher, self._router
        if dispatcher is None or router is None:
            return
        if dispatcher.is_pending(message.nonce):
            dispatcher.resolve(message)
        elif message.is_dispatch and message.evt:
            if message.is_ready:
                logger.debug("Ignoring repeated READY dispatch")
                return
            router.dispatch(message.evt, message.data)
        elif message.is_error and message.nonce is None:
            detail = message.error_detail()
            self._report_error(RpcError(detail.code, detail.message, command=message.cmd), "host")
        else:
            dispatcher.resolve(message)

    async def _write_frame(self, data: bytes) -> None:
        transport = self._transport
        if transport is None or not transport.is_connected:
            raise NotConnected()
        async with self._write_lock:
            transport.write(data)
            await transport.drain()

    def _report_error(self, exc: BaseException, context: str) -> None:
        task = asyncio.get_running_loop().create_task(
            self._events.publish(ErrorEvent(error=exc, context=context))
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _publish_dispatch(self, event: str, data: Any) -> None:
        await self._events.publish(DispatchEvent(evt=event, data=data))

    # ------------------------------------------------------------------
    # Requests and subscriptions
    # ------------------------------------------------------------------

    async def request(
        self,
        cmd: str,
        args: dict[str, Any] | None = None,
        evt: str | None = None,
        *,
        timeout: float | None | _Unset = UNSET,
    ) -> Any:
        """Send a raw command and return the response ``data``."""
        dispatcher = self._dispatcher
        if dispatcher is None or self._state in (SessionState.DISCONNECTED, SessionState.CLOSED):
            raise NotConnected(cmd)
        return await dispatcher.send(cmd, args, evt, timeout=timeout)

    async def subscribe(
        self,
        event: str,
        args: dict[str, Any] | None = None,
        handler: SubscriptionHandler | None = None,
    ) -> Subscription:
        """Subscribe to *event*; payloads go to *handler* and to ``on(event)`` observers."""
        router = self._router
        if router is None or not self.is_connected:
            raise NotConnected(RPCCommand.SUBSCRIBE)
        return await router.subscribe(event, args, handler or _ignore)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self, access_token: str | AccessToken) -> Client:
        """Authenticate the connection with an OAuth2 access token."""
        token = (
            access_token
            if isinstance(access_token, AccessToken)
            else AccessToken(access_token=access_token)
        )
        if not self.is_connected:
            raise NotConnected(RPCCommand.AUTHENTICATE)

        self._state = SessionState.AUTHENTICATING
        try:
            data = await self.request(RPCCommand.AUTHENTICATE, {"access_token": token.access_token})
        except BaseException:
            if self._state is SessionState.AUTHENTICATING:
                self._state = SessionState.READY
            raise

        data = data if isinstance(data, dict) else {}
        self.application = data.get("application")
        self.user = data.get("user") or self.user
        self.access_token = token
        self._state = SessionState.READY
        logger.info("Authenticated as user %s", (self.user or {}).get("id"))
        await self._events.publish(ReadyEvent(user=self.user, application=self.application))
        return self

    async def login(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        access_token: str | AccessToken | None = None,
        rpc_token: str | bool | None = None,
        token_endpoint: str | None = None,
        scopes: Iterable[str] | None = None,
        redirect_uri: str | None = None,
        prompt: str | None = None,
    ) -> Client:
        """Connect (if needed), obtain a token when scopes are requested, and authenticate.

        Without scopes and without a token the client is presence-only and
        becomes ready straight after the handshake.

        Raises:
            LoginFailed: Any step failed; the original error is the ``__cause__``.
        """
        step = "connect"
        try:
            if not self.is_connected:
                await self.connect(client_id)
            requested = list(scopes) if scopes is not None else list(self._config.scopes)

            if access_token is None and not requested:
                await self._events.publish(ReadyEvent(user=self.user))
                return self

            if access_token is None:
                step = "authorize"
                code = await self._authorize_code(
                    requested,
                    client_secret=client_secret or self._config.client_secret,
                    rpc_token=rpc_token,
                    prompt=prompt,
                    token_endpoint=token_endpoint,
                )
                step = "token exchange"
                access_token = await self._exchanger(token_endpoint).exchange(
                    code,
                    self.client_id or "",
                    client_secret or self._config.client_secret,
                    redirect_uri or self._config.redirect_uri,
                )

            step = "authenticate"
            return await self.authenticate(access_token)
        except (DiscordRPCError, ValueError) as exc:
            raise LoginFailed(step, exc) from exc

    async def _authorize_code(
        self,
        scopes: list[str],
        *,
        client_secret: str | None,
        rpc_token: str | bool | None,
        prompt: str | None,
        token_endpoint: str | None,
    ) -> str:
        if rpc_token is True:
            exchanger = self._exchanger(token_endpoint)
            fetch = getattr(exchanger, "fetch_rpc_token", None)
            if fetch is None or not client_secret:
                msg = "rpc_token=True needs a client_secret and an HTTP token exchanger"
                raise ValueError(msg)
            rpc_token = await fetch(self.client_id, client_secret)

        args: dict[str, Any] = {"scopes": scopes, "client_id": self.client_id}
        if prompt is not None:
            args["prompt"] = prompt
        if isinstance(rpc_token, str):
            args["rpc_token"] = rpc_token
        data = await self.request(RPCCommand.AUTHORIZE, args)
        code = data.get("code") if isinstance(data, dict) else None
        if not isinstance(code, str) or not code:
            msg = "AUTHORIZE response did not contain a code"
            raise ValueError(msg)
        return code

    def _exchanger(self, token_endpoint: str | None) -> TokenExchanger:
        if self._token_exchanger is None:
            self._token_exchanger = HTTPTokenExchanger(
                api_base=self._config.api_base,
                token_endpoint=token_endpoint or self._config.token_endpoint,
            )
        return self._token_exchanger

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    async def set_activity(
        self,
        activity: Activity | Mapping[str, Any],
        pid: int | None = None,
    ) -> Any:
        """Publish presence; validated here and paced by the activity limiter.

        Raises:
            ActivityValidationError: *activity* is malformed; nothing was sent.
            RateLimited: The ``reject`` policy refused an update inside the interval.
        """
        built = build_activity(activity)
        args = {"pid": pid if pid is not None else os.getpid(), "activity": built.to_payload()}
        return await self._require_limiter().submit(args)

    async def clear_activity(self, pid: int | None = None) -> Any:
        return await self._require_limiter().submit(
            {"pid": pid if pid is not None else os.getpid()}
        )

    def _require_limiter(self) -> ActivityRateLimiter:
        if self._limiter is None or not self.is_connected:
            raise NotConnected(RPCCommand.SET_ACTIVITY)
        return self._limiter

    async def _send_activity(self, args: dict[str, Any]) -> Any:
        return await self.request(RPCCommand.SET_ACTIVITY, args)

    async def send_join_invite(self, user: Any) -> Any:
        return await self.request(
            RPCCommand.SEND_ACTIVITY_JOIN_INVITE,
            {"user_id": _entity_id(user)},
        )

    async def send_join_request(self, user: Any) -> Any:
        return await self.request(
            RPCCommand.SEND_ACTIVITY_JOIN_REQUEST,
            {"user_id": _entity_id(user)},
        )

    async def close_join_request(self, user: Any) -> Any:
        return await self.request(
            RPCCommand.CLOSE_ACTIVITY_JOIN_REQUEST,
            {"user_id": _entity_id(user)},
        )

    # ------------------------------------------------------------------
    # Guilds, channels, relationships
    # ------------------------------------------------------------------

    def _local_timeout(self, host_timeout: float | None) -> float | _Unset:
        # The host waits up to host_timeout itself; leave room for its reply.
        if host_timeout is None:
            return UNSET
        return host_timeout + self._config.request_timeout

    async def get_guild(self, guild_id: str, timeout: float | None = None) -> Any:
        return await self.request(
            RPCCommand.GET_GUILD,
            _compact({"guild_id": guild_id, "timeout": timeout}),
            timeout=self._local_timeout(timeout),
        )

    async def get_guilds(self, timeout: float | None = None) -> list[Any]:
        data = await self.request(
            RPCCommand.GET_GUILDS,
            _compact({"timeout": timeout}),
            timeout=self._local_timeout(timeout),
        )
        return list((data or {}).get("guilds", []))

    async def get_channel(self, channel_id: str, timeout: float | None = None) -> Any:
        return await self.request(
            RPCCommand.GET_CHANNEL,
            _compact({"channel_id": channel_id, "timeout": timeout}),
            timeout=self._local_timeout(timeout),
        )

    async def get_channels(
        self,
        guild_id: str | None = None,
        timeout: float | None = None,
    ) -> list[Any]:
        data = await self.request(
            RPCCommand.GET_CHANNELS,
            _compact({"guild_id": guild_id, "timeout": timeout}),
            timeout=self._local_timeout(timeout),
        )
        return list((data or {}).get("channels", []))

    async def get_relationships(self) -> list[dict[str, Any]]:
        data = await self.request(RPCCommand.GET_RELATIONSHIPS)
        relationships = []
        for entry in (data or {}).get("relationships", []):
            item = dict(entry)
            if item.get("type") in RelationshipType._value2member_map_:
                item["type"] = RelationshipType(item["type"])
            relationships.append(item)
        return relationships

    # ------------------------------------------------------------------
    # Voice
    # ------------------------------------------------------------------

    async def set_certified_devices(self, devices: Iterable[Mapping[str, Any]]) -> Any:
        return await self.request(
            RPCCommand.SET_CERTIFIED_DEVICES,
            {"devices": [dict(device) for device in devices]},
        )

    async def set_user_voice_settings(self, user_id: str, settings: Mapping[str, Any]) -> Any:
        return await self.request(
            RPCCommand.SET_USER_VOICE_SETTINGS,
            {"user_id": user_id, **settings},
        )

    async def select_voice_channel(
        self,
        channel_id: str | None,
        *,
        timeout: float | None = None,
        force: bool = False,
    ) -> Any:
        return await self.request(
            RPCCommand.SELECT_VOICE_CHANNEL,
            _compact(
                {"channel_id": channel_id, "timeout": timeout, "force": force},
                keep=("channel_id",),
            ),
            timeout=self._local_timeout(timeout),
        )

    async def select_text_channel(
        self,
        channel_id: str | None,
        *,
        timeout: float | None = None,
    ) -> Any:
        return await self.request(
            RPCCommand.SELECT_TEXT_CHANNEL,
            _compact({"channel_id": channel_id, "timeout": timeout}, keep=("channel_id",)),
            timeout=self._local_timeout(timeout),
        )

    async def get_voice_settings(self) -> Any:
        return await self.request(RPCCommand.GET_VOICE_SETTINGS)

    async def set_voice_settings(self, settings: Mapping[str, Any]) -> Any:
        return await self.request(RPCCommand.SET_VOICE_SETTINGS, dict(settings))

    async def capture_shortcut(
        self,
        callback: Callable[[Any, Callable[[], Awaitable[Any]]], Any],
    ) -> Callable[[], Awaitable[Any]]:
        """Start capturing a key combination; returns a coroutine function that stops it."""
        subscription: Subscription | None = None

        async def stop() -> Any:
            if subscription is not None:
                await subscription.unsubscribe()
            return await self.request(RPCCommand.CAPTURE_SHORTCUT, {"action": "STOP"})

        async def on_change(data: Any) -> None:
            shortcut = data.get("shortcut") if isinstance(data, dict) else data
            result = callback(shortcut, stop)
            if asyncio.iscoroutine(result):
                await result

        subscription = await self.subscribe(RPCEvent.CAPTURE_SHORTCUT_CHANGE, handler=on_change)
        await self.request(RPCCommand.CAPTURE_SHORTCUT, {"action": "START"})
        return stop

    # ------------------------------------------------------------------
    # Lobbies
    # ------------------------------------------------------------------

    async def create_lobby(
        self,
        lobby_type: int,
        capacity: int,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.request(
            RPCCommand.CREATE_LOBBY,
            {"type": int(lobby_type), "capacity": capacity, "metadata": dict(metadata or {})},
        )

    async def update_lobby(
        self,
        lobby: Any,
        *,
        lobby_type: int | None = None,
        owner: Any = None,
        capacity: int | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.request(
            RPCCommand.UPDATE_LOBBY,
            _compact(
                {
                    "id": _entity_id(lobby),
                    "type": lobby_type,
                    "owner_id": _entity_id(owner) if owner is not None else None,
                    "capacity": capacity,
                    "metadata": dict(metadata) if metadata is not None else None,
                }
            ),
        )

    async def delete_lobby(self, lobby: Any) -> Any:
        return await self.request(RPCCommand.DELETE_LOBBY, {"id": _entity_id(lobby)})

    async def connect_to_lobby(self, lobby_id: str, secret: str) -> Any:
        return await self.request(RPCCommand.CONNECT_TO_LOBBY, {"id": lobby_id, "secret": secret})

    async def send_to_lobby(self, lobby: Any, data: Any) -> Any:
        return await self.request(RPCCommand.SEND_TO_LOBBY, {"id": _entity_id(lobby), "data": data})

    async def disconnect_from_lobby(self, lobby: Any) -> Any:
        return await self.request(RPCCommand.DISCONNECT_FROM_LOBBY, {"id": _entity_id(lobby)})

    async def update_lobby_member(
        self,
        lobby: Any,
        user: Any,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.request(
            RPCCommand.UPDATE_LOBBY_MEMBER,
            {
                "lobby_id": _entity_id(lobby),
                "user_id": _entity_id(user),
                "metadata": dict(metadata or {}),
            },
        )


def _compact(args: dict[str, Any], *, keep: tuple[str, ...] = ()) -> dict[str, Any]:
    """Drop ``None`` values except for keys the host needs to see as null."""
    return {key: value for key, value in args.items() if value is not None or key in keep}


def _cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


def _ignore(data: Any) -> None:
    del data


async def connect(client_id: str, **kwargs: Any) -> Client:
    """Create a ``Client`` and connect it in one step."""
    client = Client(client_id, **kwargs)
    await client.connect()
    return client


__all__ = ["Client", "SessionState", "connect"]
