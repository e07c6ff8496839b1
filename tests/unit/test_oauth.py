"""Unit tests for OAuth2 code exchange."""

from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from discord_rpc.errors import TokenExchangeError
from discord_rpc.oauth import AccessToken, HTTPTokenExchanger

pytestmark = pytest.mark.unit


class _Response:
    def __init__(self, status: int, body: Any) -> None:
        self.status = status
        self._body = body

    async def __aenter__(self) -> _Response:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def text(self) -> str:
        return self._body if isinstance(self._body, str) else json.dumps(self._body)

    async def json(self, content_type: str | None = "application/json") -> Any:
        del content_type
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body


class MockSession:
    """Records POSTs and answers with canned responses (no network)."""

    def __init__(self, *responses: _Response, error: Exception | None = None) -> None:
        self.posts: list[tuple[str, dict[str, Any]]] = []
        self._responses = list(responses)
        self._error = error

    def post(self, url: str, **kwargs: Any) -> _Response:
        self.posts.append((url, kwargs))
        if self._error is not None:
            raise self._error
        return self._responses.pop(0)


def _exchanger(session: MockSession, **kwargs: Any) -> HTTPTokenExchanger:
    return HTTPTokenExchanger(session=session, **kwargs)  # type: ignore[arg-type]


async def test_exchange_posts_form_to_discord_api() -> None:
    session = MockSession(_Response(200, {"access_token": "tok", "scope": "rpc identify"}))
    exchanger = _exchanger(session, api_base="https://discord.test/api/")

    token = await exchanger.exchange("code-1", "cid", "secret", "http://localhost/cb")

    assert token == AccessToken(access_token="tok", scope="rpc identify")
    url, kwargs = session.posts[0]
    assert url == "https://discord.test/api/oauth2/token"
    assert kwargs["data"] == {
        "client_id": "cid",
        "client_secret": "secret",
        "code": "code-1",
        "grant_type": "authorization_code",
        "redirect_uri": "http://localhost/cb",
    }


async def test_exchange_via_custom_endpoint_posts_json_without_secret() -> None:
    session = MockSession(_Response(200, {"access_token": "tok"}))
    exchanger = _exchanger(session, token_endpoint="https://backend.test/token")

    await exchanger.exchange("code-1", "cid", None, None)

    url, kwargs = session.posts[0]
    assert url == "https://backend.test/token"
    assert kwargs["json"] == {"code": "code-1", "client_id": "cid", "redirect_uri": None}


async def test_exchange_without_secret_or_endpoint_fails_before_posting() -> None:
    session = MockSession()
    exchanger = _exchanger(session)

    with pytest.raises(TokenExchangeError, match="client_secret"):
        await exchanger.exchange("code-1", "cid", None, None)
    assert session.posts == []


async def test_http_error_status_is_reported() -> None:
    session = MockSession(_Response(400, {"error": "invalid_grant"}))
    exchanger = _exchanger(session)

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchanger.exchange("bad", "cid", "secret", None)
    assert exc_info.value.status == 400
    assert "invalid_grant" in str(exc_info.value)


async def test_response_without_access_token_is_rejected() -> None:
    session = MockSession(_Response(200, {"error": "nope"}))
    exchanger = _exchanger(session)

    with pytest.raises(TokenExchangeError, match="access_token"):
        await exchanger.exchange("code", "cid", "secret", None)


async def test_client_error_is_wrapped() -> None:
    session = MockSession(error=aiohttp.ClientConnectionError("refused"))
    exchanger = _exchanger(session)

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchanger.exchange("code", "cid", "secret", None)
    assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)


async def test_invalid_json_body_is_wrapped() -> None:
    session = MockSession(_Response(200, "<html>"))
    exchanger = _exchanger(session)

    with pytest.raises(TokenExchangeError):
        await exchanger.exchange("code", "cid", "secret", None)


async def test_fetch_rpc_token() -> None:
    session = MockSession(_Response(200, {"rpc_token": "rpc-1"}))
    exchanger = _exchanger(session, api_base="https://discord.test/api")

    assert await exchanger.fetch_rpc_token("cid", "secret") == "rpc-1"
    assert session.posts[0][0] == "https://discord.test/api/oauth2/token/rpc"
