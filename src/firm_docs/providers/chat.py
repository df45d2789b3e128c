"""Bearer-token chat-completion adapter (DeepSeek and OpenAI style endpoints)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from firm_docs.errors import GenerationUnavailableError
from firm_docs.providers.base import excerpt, post_json

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


async def chat_completion(
    system_prompt: str,
    user_prompt: str,
    *,
    client: httpx.AsyncClient,
    provider_id: str,
    url: str,
    api_key: str,
    model: str,
    temperature: float = 0.7,
) -> str:
    """Single round trip; the text is read from ``choices[0].message.content``.

    Bind everything after ``user_prompt`` with ``functools.partial`` to get an
    ``Adapter``.
    """
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": temperature,
    }
    response, data = await post_json(
        client,
        provider_id,
        url,
        json=payload,
        headers={"Authorization": f"Bearer {api_key}"},
        secrets=(api_key,),
    )
    try:
        text = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        text = None
    if not isinstance(text, str):
        raise GenerationUnavailableError(
            provider_id,
            "response has no choices[0].message.content",
            upstream_status=response.status_code,
            body_excerpt=excerpt(response.text, (api_key,)),
        )
    logger.info(
        "Generation completed — provider=%s model=%s chars=%d",
        provider_id,
        model,
        len(text),
    )
    return text
