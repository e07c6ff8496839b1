"""Unit tests for activity validation and wire shape."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from hypothesis import given

from discord_rpc.activity import Activity, ActivityButton, build_activity, to_unix_ms
from discord_rpc.constants import ActivityType
from discord_rpc.errors import ActivityValidationError
from tests.strategies import activities

pytestmark = pytest.mark.unit


class TestBuildActivity:
    def test_minimal_activity_payload(self) -> None:
        assert build_activity({"name": "Snek"}).to_payload() == {"name": "Snek", "type": 0}

    def test_flat_keys_fold_into_nested_objects(self) -> None:
        activity = build_activity(
            {
                "name": "Snek",
                "details": "booping",
                "start_timestamp": 1_700_000_000_000,
                "large_image_key": "snek_large",
                "large_image_text": "Snek",
                "small_image_key": "snek_small",
                "party_id": "p1",
                "party_size": 2,
                "party_max": 4,
                "join_secret": "j",
            }
        )
        assert activity.to_payload() == {
            "name": "Snek",
            "type": 0,
            "details": "booping",
            "timestamps": {"start": 1_700_000_000_000},
            "assets": {
                "large_image": "snek_large",
                "large_text": "Snek",
                "small_image": "snek_small",
            },
            "party": {"id": "p1", "size": [2, 4]},
            "secrets": {"join": "j"},
        }

    def test_datetime_timestamps_become_unix_ms(self) -> None:
        started = datetime(2024, 1, 1, tzinfo=UTC)
        activity = build_activity({"name": "Snek", "timestamps": {"start": started}})
        assert activity.timestamps is not None
        assert activity.timestamps.start == 1_704_067_200_000
        assert to_unix_ms(5) == 5

    def test_emoji_string_is_its_name(self) -> None:
        activity = build_activity({"name": "Custom", "type": 4, "emoji": "🐍"})
        assert activity.to_payload()["emoji"] == {"name": "🐍"}

    def test_buttons_serialise_in_order(self) -> None:
        activity = build_activity(
            {
                "name": "Snek",
                "buttons": [
                    {"label": "Site", "url": "https://example.com"},
                    {"label": "Docs", "url": "https://example.com/docs"},
                ],
            }
        )
        assert [button["label"] for button in activity.to_payload()["buttons"]] == ["Site", "Docs"]

    def test_existing_activity_passes_through(self) -> None:
        activity = Activity(name="Snek", buttons=(ActivityButton(label="a", url="https://x"),))
        assert build_activity(activity) is activity

    def test_streaming_url_allowed(self) -> None:
        activity = build_activity(
            {"name": "Live", "type": ActivityType.STREAMING, "url": "https://twitch.tv/x"}
        )
        assert activity.to_payload()["url"] == "https://twitch.tv/x"


class TestActivityValidation:
    @pytest.mark.parametrize(
        ("value", "location"),
        [
            ({}, "name"),
            ({"name": "   "}, "name"),
            ({"name": "x" * 129}, "name"),
            ({"name": "Snek", "details": ""}, "details"),
            ({"name": "Snek", "party": {"size": [5, 4]}}, "party"),
            ({"name": "Snek", "party": {"size": [0, 4]}}, "party"),
            ({"name": "Snek", "timestamps": {"start": 10, "end": 5}}, "timestamps"),
            ({"name": "Snek", "flags": -1}, "flags"),
            ({"name": "Snek", "unknown_field": 1}, "unknown_field"),
        ],
    )
    def test_invalid_fields_rejected(self, value: dict, location: str) -> None:
        with pytest.raises(ActivityValidationError) as exc_info:
            build_activity(value)
        assert location in str(exc_info.value)
        assert exc_info.value.errors

    def test_more_than_two_buttons_rejected(self) -> None:
        buttons = [{"label": f"b{i}", "url": "https://example.com"} for i in range(3)]
        with pytest.raises(ActivityValidationError):
            build_activity({"name": "Snek", "buttons": buttons})

    def test_button_label_length_limit(self) -> None:
        with pytest.raises(ActivityValidationError):
            build_activity({"name": "Snek", "buttons": [{"label": "x" * 33, "url": "https://e"}]})

    def test_buttons_and_secrets_are_exclusive(self) -> None:
        with pytest.raises(ActivityValidationError, match="secrets"):
            build_activity(
                {
                    "name": "Snek",
                    "buttons": [{"label": "Site", "url": "https://example.com"}],
                    "secrets": {"join": "j"},
                }
            )

    def test_url_only_for_streaming(self) -> None:
        with pytest.raises(ActivityValidationError, match="STREAMING"):
            build_activity({"name": "Snek", "url": "https://twitch.tv/x"})

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(ActivityValidationError):
            build_activity(["Snek"])  # type: ignore[arg-type]

    def test_validation_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            build_activity({"name": ""})


class TestActivityProperties:
    @given(activities())
    def test_valid_activities_build_and_drop_unset_fields(self, value: dict) -> None:
        payload = build_activity(value).to_payload()
        assert payload["name"] == value["name"]
        assert all(field_value is not None for field_value in payload.values())

    @given(activities())
    def test_payload_revalidates_to_same_activity(self, value: dict) -> None:
        activity = build_activity(value)
        assert build_activity(activity.to_payload()) == activity
