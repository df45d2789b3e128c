"""Two-phase adapter: client-credential token exchange, then a token-in-query chat call.

The access token lives only in the ``TokenCache`` instance captured by the
adapter. It is shared by concurrent calls, refreshed when it is within
``TOKEN_EXPIRY_MARGIN_SECONDS`` of expiry, and dropped and re-fetched once when
the generation endpoint rejects it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from firm_docs.errors import GenerationUnavailableError
from firm_docs.providers.base import excerpt, post_json

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_MARGIN_SECONDS = 60
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
_AUTH_FAILURE_STATUSES = frozenset({401, 403})
# 110: invalid access token, 111: access token expired
_AUTH_FAILURE_CODES = frozenset({110, 111})


class TokenCache:
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        provider_id: str,
        token_url: str,
        api_key: str,
        secret_key: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._provider_id = provider_id
        self._token_url = token_url
        self._api_key = api_key
        self._secret_key = secret_key
        self._clock = clock
        self._lock = asyncio.Lock()
        self._token: str | None = None
        self._expires_at = 0.0
        self.fetch_count = 0

    @property
    def secrets(self) -> tuple[str, ...]:
        return tuple(s for s in (self._api_key, self._secret_key, self._token) if s)

    async def get(self) -> str:
        """Return a valid token, fetching one if none is cached or it is expiring."""
        async with self._lock:
            if self._token is not None and self._clock() < self._expires_at:
                return self._token
            return await self._fetch()

    async def invalidate(self, stale_token: str) -> None:
        """Drop ``stale_token`` unless another caller already replaced it."""
        async with self._lock:
            if self._token == stale_token:
                self._token = None
                self._expires_at = 0.0

    async def _fetch(self) -> str:
        params = {
            "grant_type": "client_credentials",
            "client_id": self._api_key,
            "client_secret": self._secret_key,
        }
        response, data = await post_json(
            self._client,
            self._provider_id,
            self._token_url,
            params=params,
            secrets=self.secrets,
        )
        token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise GenerationUnavailableError(
                self._provider_id,
                "token endpoint returned no access_token",
                upstream_status=response.status_code,
                body_excerpt=excerpt(response.text, self.secrets),
            )
        try:
            lifetime = float(data.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS
        self._token = token
        self._expires_at = self._clock() + max(lifetime - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        self.fetch_count += 1
        logger.info(
            "Access token refreshed — provider=%s expires_in=%ds",
            self._provider_id,
            int(lifetime),
        )
        return token


class _TokenRejected(Exception):
    pass


async def _call_once(
    payload: dict[str, Any],
    token: str,
    *,
    client: httpx.AsyncClient,
    provider_id: str,
    endpoint: str,
    tokens: TokenCache,
    refresh_allowed: bool,
) -> str:
    secrets = (*tokens.secrets, token)
    try:
        response, data = await post_json(
            client,
            provider_id,
            endpoint,
            json=payload,
            params={"access_token": token},
            secrets=secrets,
        )
    except GenerationUnavailableError as exc:
        if refresh_allowed and exc.upstream_status in _AUTH_FAILURE_STATUSES:
            raise _TokenRejected from exc
        raise

    error_code = data.get("error_code") if isinstance(data, dict) else None
    if error_code is not None:
        if refresh_allowed and error_code in _AUTH_FAILURE_CODES:
            raise _TokenRejected
        raise GenerationUnavailableError(
            provider_id,
            f"upstream error_code {error_code}",
            upstream_status=response.status_code,
            body_excerpt=excerpt(response.text, secrets),
        )

    text = data.get("result") if isinstance(data, dict) else None
    if not isinstance(text, str):
        raise GenerationUnavailableError(
            provider_id,
            "response has no result field",
            upstream_status=response.status_code,
            body_excerpt=excerpt(response.text, secrets),
        )
    return text


async def oauth_chat_completion(
    system_prompt: str,
    user_prompt: str,
    *,
    client: httpx.AsyncClient,
    provider_id: str,
    url: str,
    model: str,
    tokens: TokenCache,
    temperature: float = 0.7,
) -> str:
    """Generate with a cached access token; messages are sent as flat strings."""
    endpoint = f"{url.rstrip('/')}/{model}"
    payload = {"messages": [system_prompt, user_prompt], "temperature": temperature}
    call = {
        "client": client,
        "provider_id": provider_id,
        "endpoint": endpoint,
        "tokens": tokens,
    }

    token = await tokens.get()
    try:
        text = await _call_once(payload, token, refresh_allowed=True, **call)
    except _TokenRejected:
        logger.info("Access token rejected, refreshing — provider=%s", provider_id)
        await tokens.invalidate(token)
        token = await tokens.get()
        text = await _call_once(payload, token, refresh_allowed=False, **call)

    logger.info(
        "Generation completed — provider=%s model=%s chars=%d",
        provider_id,
        model,
        len(text),
    )
    return text
