"""Async client for the Discord desktop application's local RPC interface."""

from discord_rpc.activity import Activity, build_activity
from discord_rpc.client import Client, SessionState, connect
from discord_rpc.config import ClientConfig
from discord_rpc.constants import ActivityType, RPCCommand, RPCEvent
from discord_rpc.errors import (
    ActivityValidationError,
    ConnectError,
    ConnectionClosed,
    DiscordRPCError,
    HandshakeFailed,
    LoginFailed,
    NotConnected,
    ProtocolError,
    RateLimited,
    RequestTimeout,
    RpcError,
)
from discord_rpc.ratelimit import RateLimitPolicy
from discord_rpc.register import register

__version__ = "0.1.0"

__all__ = [
    "Activity",
    "ActivityType",
    "ActivityValidationError",
    "Client",
    "ClientConfig",
    "ConnectError",
    "ConnectionClosed",
    "DiscordRPCError",
    "HandshakeFailed",
    "LoginFailed",
    "NotConnected",
    "ProtocolError",
    "RPCCommand",
    "RPCEvent",
    "RateLimitPolicy",
    "RateLimited",
    "RequestTimeout",
    "RpcError",
    "SessionState",
    "build_activity",
    "connect",
    "register",
]
