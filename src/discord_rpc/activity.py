"""Validated presence (activity) value model.

Everything a caller passes to ``set_activity`` goes through ``build_activity``
so malformed input fails here, with structured details, before anything is
encoded onto the wire.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from discord_rpc.constants import ActivityType, StatusDisplayType
from discord_rpc.errors import ActivityValidationError
from discord_rpc.limits import (
    MAX_ACTIVITY_BUTTONS,
    MAX_ACTIVITY_TEXT_LENGTH,
    MAX_ASSET_KEY_LENGTH,
    MAX_BUTTON_LABEL_LENGTH,
    MAX_BUTTON_URL_LENGTH,
)

ShortText = Annotated[str, Field(min_length=1, max_length=MAX_ACTIVITY_TEXT_LENGTH)]
AssetKey = Annotated[str, Field(min_length=1, max_length=MAX_ASSET_KEY_LENGTH)]
Url = Annotated[str, Field(min_length=1, max_length=MAX_BUTTON_URL_LENGTH)]

# Flat keyword spellings accepted for convenience, folded into nested objects.
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "start_timestamp": ("timestamps", "start"),
    "end_timestamp": ("timestamps", "end"),
    "large_image_key": ("assets", "large_image"),
    "large_image_text": ("assets", "large_text"),
    "small_image_key": ("assets", "small_image"),
    "small_image_text": ("assets", "small_text"),
    "party_id": ("party", "id"),
    "match_secret": ("secrets", "match"),
    "join_secret": ("secrets", "join"),
    "spectate_secret": ("secrets", "spectate"),
}


def to_unix_ms(value: Any) -> Any:
    """Convert a ``datetime`` to unix milliseconds; leave other values alone."""
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return value


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ActivityTimestamps(_Frozen):
    start: int | None = Field(default=None, ge=0, description="Unix ms the activity started")
    end: int | None = Field(default=None, ge=0, description="Unix ms the activity ends")

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_datetime(cls, value: Any) -> Any:
        return to_unix_ms(value)

    @model_validator(mode="after")
    def check_order(self) -> Self:
        if self.start is not None and self.end is not None and self.end < self.start:
            msg = "timestamps.end must not be before timestamps.start"
            raise ValueError(msg)
        return self


class ActivityEmoji(_Frozen):
    name: str = Field(min_length=1)
    id: str | None = None
    animated: bool | None = None


class ActivityParty(_Frozen):
    id: str | None = Field(default=None, min_length=1, max_length=MAX_ACTIVITY_TEXT_LENGTH)
    size: tuple[int, int] | None = Field(default=None, description="[current, max]")

    @model_validator(mode="after")
    def check_size(self) -> Self:
        if self.size is not None:
            current, maximum = self.size
            if current < 1 or maximum < 1:
                msg = "party.size values must be positive"
                raise ValueError(msg)
            if current > maximum:
                msg = f"party.size current ({current}) exceeds max ({maximum})"
                raise ValueError(msg)
        return self


class ActivityAssets(_Frozen):
    large_image: AssetKey | None = None
    large_text: ShortText | None = None
    large_url: Url | None = None
    small_image: AssetKey | None = None
    small_text: ShortText | None = None
    small_url: Url | None = None
    invite_cover_image: AssetKey | None = None


class ActivitySecrets(_Frozen):
    join: ShortText | None = None
    spectate: ShortText | None = None
    match: ShortText | None = None


class ActivityButton(_Frozen):
    label: str = Field(min_length=1, max_length=MAX_BUTTON_LABEL_LENGTH)
    url: str = Field(min_length=1, max_length=MAX_BUTTON_URL_LENGTH)


class Activity(_Frozen):
    """Immutable presence snapshot sent with ``SET_ACTIVITY``."""

    name: str = Field(min_length=1, max_length=MAX_ACTIVITY_TEXT_LENGTH)
    type: ActivityType = ActivityType.PLAYING
    url: Url | None = None
    created_at: int | None = Field(default=None, ge=0)
    timestamps: ActivityTimestamps | None = None
    application_id: str | None = None
    status_display_type: StatusDisplayType | None = None
    details: ShortText | None = None
    details_url: Url | None = None
    state: ShortText | None = None
    state_url: Url | None = None
    emoji: ActivityEmoji | None = None
    party: ActivityParty | None = None
    assets: ActivityAssets | None = None
    secrets: ActivitySecrets | None = None
    instance: bool | None = None
    flags: int | None = Field(default=None, ge=0, description="ActivityFlags bits")
    buttons: tuple[ActivityButton, ...] | None = Field(
        default=None,
        max_length=MAX_ACTIVITY_BUTTONS,
    )

    @model_validator(mode="before")
    @classmethod
    def fold_flat_keys(cls, data: Any) -> Any:
        match data:
            case Mapping() as mapping:
                folded: dict[str, Any] = dict(mapping)
            case _:
                return data

        for flat_key, (group, key) in _FLAT_KEYS.items():
            if flat_key in folded:
                value = folded.pop(flat_key)
                nested = dict(folded.get(group) or {})
                nested.setdefault(key, value)
                folded[group] = nested

        party_size = folded.pop("party_size", None)
        party_max = folded.pop("party_max", None)
        if party_size is not None or party_max is not None:
            party = dict(folded.get("party") or {})
            maximum = party_max if party_max is not None else party_size
            party.setdefault("size", (party_size, maximum))
            folded["party"] = party

        if isinstance(folded.get("emoji"), str):
            folded["emoji"] = {"name": folded["emoji"]}
        folded["created_at"] = to_unix_ms(folded.get("created_at"))
        return folded

    @field_validator("name")
    @classmethod
    def reject_blank_name(cls, value: str) -> str:
        if not value.strip():
            msg = "name must not be blank"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def check_protocol_rules(self) -> Self:
        if self.url is not None and self.type != ActivityType.STREAMING:
            msg = "url is only allowed for STREAMING activities"
            raise ValueError(msg)
        if self.buttons and self.secrets is not None:
            msg = "buttons cannot be combined with secrets"
            raise ValueError(msg)
        return self

    def to_payload(self) -> dict[str, Any]:
        """Wire form: nested JSON without unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


def build_activity(value: Activity | Mapping[str, Any]) -> Activity:
    """Validate *value* into an ``Activity``.

    Raises:
        ActivityValidationError: The input violates a field or protocol rule.
    """
    if isinstance(value, Activity):
        return value
    if not isinstance(value, Mapping):
        msg = f"activity must be an Activity or a mapping, not {type(value).__name__}"
        raise ActivityValidationError(msg)
    try:
        return Activity.model_validate(value)
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ())) or "activity"
        msg = f"Invalid activity ({exc.error_count()} error(s)); {location}: {first.get('msg')}"
        raise ActivityValidationError(msg, errors=list(errors)) from exc


__all__ = [
    "Activity",
    "ActivityAssets",
    "ActivityButton",
    "ActivityEmoji",
    "ActivityParty",
    "ActivitySecrets",
    "ActivityTimestamps",
    "build_activity",
    "to_unix_ms",
]
