"""Protocol constants: opcodes, commands, events and activity enums."""

from __future__ import annotations

from enum import IntEnum, IntFlag, StrEnum

RPC_VERSION = 1
API_BASE_URL = "https://discord.com/api"
DEFAULT_REDIRECT_URI = "http://127.0.0.1"
IPC_BASENAME = "discord-ipc"
WINDOWS_PIPE_PREFIX = r"\\?\pipe"
RPC_WS_HOST = "127.0.0.1"


class OpCode(IntEnum):
    """Frame opcodes carried in the first four bytes of every frame."""

    HANDSHAKE = 0
    FRAME = 1
    CLOSE = 2
    PING = 3
    PONG = 4


class RPCCommand(StrEnum):
    """Commands understood by the host application."""

    DISPATCH = "DISPATCH"
    AUTHORIZE = "AUTHORIZE"
    AUTHENTICATE = "AUTHENTICATE"
    GET_GUILD = "GET_GUILD"
    GET_GUILDS = "GET_GUILDS"
    GET_CHANNEL = "GET_CHANNEL"
    GET_CHANNELS = "GET_CHANNELS"
    CREATE_CHANNEL_INVITE = "CREATE_CHANNEL_INVITE"
    GET_RELATIONSHIPS = "GET_RELATIONSHIPS"
    GET_USER = "GET_USER"
    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"
    SET_USER_VOICE_SETTINGS = "SET_USER_VOICE_SETTINGS"
    SELECT_VOICE_CHANNEL = "SELECT_VOICE_CHANNEL"
    GET_SELECTED_VOICE_CHANNEL = "GET_SELECTED_VOICE_CHANNEL"
    SELECT_TEXT_CHANNEL = "SELECT_TEXT_CHANNEL"
    GET_VOICE_SETTINGS = "GET_VOICE_SETTINGS"
    SET_VOICE_SETTINGS = "SET_VOICE_SETTINGS"
    CAPTURE_SHORTCUT = "CAPTURE_SHORTCUT"
    SET_CERTIFIED_DEVICES = "SET_CERTIFIED_DEVICES"
    SET_ACTIVITY = "SET_ACTIVITY"
    SEND_ACTIVITY_JOIN_INVITE = "SEND_ACTIVITY_JOIN_INVITE"
    SEND_ACTIVITY_JOIN_REQUEST = "SEND_ACTIVITY_JOIN_REQUEST"
    CLOSE_ACTIVITY_JOIN_REQUEST = "CLOSE_ACTIVITY_JOIN_REQUEST"
    CREATE_LOBBY = "CREATE_LOBBY"
    UPDATE_LOBBY = "UPDATE_LOBBY"
    DELETE_LOBBY = "DELETE_LOBBY"
    UPDATE_LOBBY_MEMBER = "UPDATE_LOBBY_MEMBER"
    CONNECT_TO_LOBBY = "CONNECT_TO_LOBBY"
    DISCONNECT_FROM_LOBBY = "DISCONNECT_FROM_LOBBY"
    SEND_TO_LOBBY = "SEND_TO_LOBBY"


class RPCEvent(StrEnum):
    """Event names carried in the ``evt`` field of dispatch frames."""

    READY = "READY"
    ERROR = "ERROR"
    GUILD_STATUS = "GUILD_STATUS"
    GUILD_CREATE = "GUILD_CREATE"
    CHANNEL_CREATE = "CHANNEL_CREATE"
    RELATIONSHIP_UPDATE = "RELATIONSHIP_UPDATE"
    VOICE_CHANNEL_SELECT = "VOICE_CHANNEL_SELECT"
    VOICE_STATE_CREATE = "VOICE_STATE_CREATE"
    VOICE_STATE_DELETE = "VOICE_STATE_DELETE"
    VOICE_STATE_UPDATE = "VOICE_STATE_UPDATE"
    VOICE_SETTINGS_UPDATE = "VOICE_SETTINGS_UPDATE"
    VOICE_CONNECTION_STATUS = "VOICE_CONNECTION_STATUS"
    SPEAKING_START = "SPEAKING_START"
    SPEAKING_STOP = "SPEAKING_STOP"
    GAME_JOIN = "GAME_JOIN"
    GAME_SPECTATE = "GAME_SPECTATE"
    ACTIVITY_JOIN = "ACTIVITY_JOIN"
    ACTIVITY_JOIN_REQUEST = "ACTIVITY_JOIN_REQUEST"
    ACTIVITY_SPECTATE = "ACTIVITY_SPECTATE"
    ACTIVITY_INVITE = "ACTIVITY_INVITE"
    NOTIFICATION_CREATE = "NOTIFICATION_CREATE"
    MESSAGE_CREATE = "MESSAGE_CREATE"
    MESSAGE_UPDATE = "MESSAGE_UPDATE"
    MESSAGE_DELETE = "MESSAGE_DELETE"
    LOBBY_DELETE = "LOBBY_DELETE"
    LOBBY_UPDATE = "LOBBY_UPDATE"
    LOBBY_MEMBER_CONNECT = "LOBBY_MEMBER_CONNECT"
    LOBBY_MEMBER_DISCONNECT = "LOBBY_MEMBER_DISCONNECT"
    LOBBY_MEMBER_UPDATE = "LOBBY_MEMBER_UPDATE"
    LOBBY_MESSAGE = "LOBBY_MESSAGE"
    CAPTURE_SHORTCUT_CHANGE = "CAPTURE_SHORTCUT_CHANGE"
    ENTITLEMENT_CREATE = "ENTITLEMENT_CREATE"
    ENTITLEMENT_DELETE = "ENTITLEMENT_DELETE"
    USER_ACHIEVEMENT_UPDATE = "USER_ACHIEVEMENT_UPDATE"


class RPCCloseCode(IntEnum):
    """Close codes the host sends in CLOSE frames."""

    CLOSE_NORMAL = 1000
    CLOSE_UNSUPPORTED = 1003
    CLOSE_ABNORMAL = 1006
    INVALID_CLIENTID = 4000
    INVALID_ORIGIN = 4001
    RATELIMITED = 4002
    TOKEN_REVOKED = 4003
    INVALID_VERSION = 4004
    INVALID_ENCODING = 4005


class ActivityType(IntEnum):
    """Activity kinds shown as the presence verb."""

    PLAYING = 0
    STREAMING = 1
    LISTENING = 2
    WATCHING = 3
    CUSTOM = 4
    COMPETING = 5


class StatusDisplayType(IntEnum):
    """Which activity field is shown in the compact status line."""

    NAME = 0
    STATE = 1
    DETAILS = 2


class ActivityFlags(IntFlag):
    """Bit flags describing activity capabilities."""

    INSTANCE = 1 << 0
    JOIN = 1 << 1
    SPECTATE = 1 << 2
    JOIN_REQUEST = 1 << 3
    SYNC = 1 << 4
    PLAY = 1 << 5
    PARTY_PRIVACY_FRIENDS = 1 << 6
    PARTY_PRIVACY_VOICE_CHANNEL = 1 << 7
    EMBEDDED = 1 << 8


class RelationshipType(IntEnum):
    NONE = 0
    FRIEND = 1
    BLOCKED = 2
    PENDING_INCOMING = 3
    PENDING_OUTGOING = 4
    IMPLICIT = 5


class LobbyType(IntEnum):
    PRIVATE = 1
    PUBLIC = 2


__all__ = [
    "API_BASE_URL",
    "DEFAULT_REDIRECT_URI",
    "IPC_BASENAME",
    "RPC_VERSION",
    "RPC_WS_HOST",
    "WINDOWS_PIPE_PREFIX",
    "ActivityFlags",
    "ActivityType",
    "LobbyType",
    "OpCode",
    "RPCCloseCode",
    "RPCCommand",
    "RPCEvent",
    "RelationshipType",
    "StatusDisplayType",
]
