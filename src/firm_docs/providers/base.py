"""Shared pieces of the provider adapters: the adapter signature, redaction, HTTP posting."""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import httpx

from firm_docs.errors import GenerationUnavailableError

logger = logging.getLogger(__name__)

Adapter = Callable[[str, str], Awaitable[str]]
"""``(system_prompt, user_prompt) -> raw_text``."""

BODY_EXCERPT_LIMIT = 500
REDACTED = "***"

_SECRET_PARAMS = re.compile(
    r"(?P<name>access_token|client_secret|client_id|api_key|apikey)=[^&\s\"']+",
    re.IGNORECASE,
)
_BEARER = re.compile(r"Bearer\s+[^\s\"']+", re.IGNORECASE)


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """Mask credential values and credential-looking query parameters."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    text = _SECRET_PARAMS.sub(lambda m: f"{m.group('name')}={REDACTED}", text)
    return _BEARER.sub(f"Bearer {REDACTED}", text)


def excerpt(text: str, secrets: Iterable[str] = ()) -> str:
    """Redacted body prefix, safe to attach to errors."""
    return redact(text, secrets)[:BODY_EXCERPT_LIMIT]


async def post_json(
    client: httpx.AsyncClient,
    provider_id: str,
    url: str,
    *,
    json: dict[str, Any] | None = None,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    secrets: Iterable[str] = (),
) -> tuple[httpx.Response, Any]:
    """POST and decode a JSON response, mapping every failure to ``GenerationUnavailableError``.

    Exception messages from httpx can embed the request URL, so only the
    exception type is reported.
    """
    secrets = tuple(secrets)
    try:
        response = await client.post(url, json=json, params=params, headers=headers)
    except httpx.TimeoutException:
        logger.warning("Provider request timed out — provider=%s", provider_id)
        raise GenerationUnavailableError(provider_id, "request timed out") from None
    except httpx.HTTPError as exc:
        logger.warning(
            "Provider transport error — provider=%s error=%s",
            provider_id,
            type(exc).__name__,
        )
        raise GenerationUnavailableError(
            provider_id, f"transport error ({type(exc).__name__})"
        ) from None

    if response.is_error:
        body = excerpt(response.text, secrets)
        logger.warning(
            "Provider returned an error — provider=%s status=%d",
            provider_id,
            response.status_code,
        )
        raise GenerationUnavailableError(
            provider_id,
            f"upstream returned HTTP {response.status_code}",
            upstream_status=response.status_code,
            body_excerpt=body,
        )

    try:
        data = response.json()
    except ValueError:
        raise GenerationUnavailableError(
            provider_id,
            "upstream response is not JSON",
            upstream_status=response.status_code,
            body_excerpt=excerpt(response.text, secrets),
        ) from None
    return response, data
