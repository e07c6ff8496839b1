"""Test helpers package."""

from tests.helpers.fake_host import (
    CLIENT_ID,
    DEFAULT_CONFIG,
    DEFAULT_USER,
    FakeHostTransport,
    counter_nonces,
    error_for,
    response_for,
)
from tests.helpers.wait import wait_until, wait_until_async

__all__ = [
    "CLIENT_ID",
    "DEFAULT_CONFIG",
    "DEFAULT_USER",
    "FakeHostTransport",
    "counter_nonces",
    "error_for",
    "response_for",
    "wait_until",
    "wait_until_async",
]
