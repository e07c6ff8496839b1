"""OAuth2 token exchange used by ``Client.login``."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from discord_rpc.constants import API_BASE_URL
from discord_rpc.errors import TokenExchangeError

logger = logging.getLogger(__name__)

_HTTP_TIMEOUT = aiohttp.ClientTimeout(total=30)


class AccessToken(BaseModel):
    """Token material returned by the OAuth2 token endpoint."""

    access_token: str = Field(min_length=1)
    token_type: str | None = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None


class TokenExchanger(Protocol):
    """Turns an AUTHORIZE code into an access token."""

    async def exchange(
        self,
        code: str,
        client_id: str,
        client_secret: str | None,
        redirect_uri: str | None,
    ) -> AccessToken: ...


class HTTPTokenExchanger:
    """Exchange codes against the Discord API (or a custom backend).

    When *token_endpoint* is set the code is posted as JSON to that URL
    instead, so the client secret can stay on a server.
    """

    def __init__(
        self,
        *,
        api_base: str = API_BASE_URL,
        token_endpoint: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._token_endpoint = token_endpoint
        self._session = session

    async def exchange(
        self,
        code: str,
        client_id: str,
        client_secret: str | None,
        redirect_uri: str | None,
    ) -> AccessToken:
        if self._token_endpoint:
            body = await self._post(
                self._token_endpoint,
                json={"code": code, "client_id": client_id, "redirect_uri": redirect_uri},
            )
        else:
            if not client_secret:
                msg = "client_secret is required to exchange an authorization code"
                raise TokenExchangeError(msg)
            form = {
                "client_id": client_id,
                "client_secret": client_secret,
                "code": code,
                "grant_type": "authorization_code",
            }
            if redirect_uri:
                form["redirect_uri"] = redirect_uri
            body = await self._post(f"{self._api_base}/oauth2/token", data=form)

        try:
            token = AccessToken.model_validate(body)
        except ValidationError as exc:
            msg = "Token endpoint response did not contain an access_token"
            raise TokenExchangeError(msg) from exc
        logger.info("Exchanged authorization code for access token (scope=%s)", token.scope)
        return token

    async def fetch_rpc_token(self, client_id: str, client_secret: str) -> str:
        """Fetch the short-lived ``rpc_token`` some applications pass to AUTHORIZE."""
        body = await self._post(
            f"{self._api_base}/oauth2/token/rpc",
            data={"client_id": client_id, "client_secret": client_secret},
        )
        rpc_token = body.get("rpc_token") if isinstance(body, dict) else None
        if not isinstance(rpc_token, str) or not rpc_token:
            msg = "RPC token endpoint response did not contain an rpc_token"
            raise TokenExchangeError(msg)
        return rpc_token

    async def _post(self, url: str, **kwargs: Any) -> Any:
        if self._session is not None:
            return await self._do_post(self._session, url, **kwargs)
        async with aiohttp.ClientSession(timeout=_HTTP_TIMEOUT) as session:
            return await self._do_post(session, url, **kwargs)

    @staticmethod
    async def _do_post(session: aiohttp.ClientSession, url: str, **kwargs: Any) -> Any:
        try:
            async with session.post(url, **kwargs) as response:
                if response.status >= 400:
                    text = await response.text()
                    msg = f"POST {url} failed with HTTP {response.status}: {text[:200]}"
                    raise TokenExchangeError(msg, status=response.status)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, ValueError) as exc:
            msg = f"POST {url} failed: {exc}"
            raise TokenExchangeError(msg) from exc


__all__ = ["AccessToken", "HTTPTokenExchanger", "TokenExchanger"]
