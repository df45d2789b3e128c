"""Provider lookup table and the uniform ``generate`` entry point."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING

from firm_docs.errors import GenerationUnavailableError
from firm_docs.providers.chat import chat_completion
from firm_docs.providers.oauth_chat import TokenCache, oauth_chat_completion

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    import httpx

    from firm_docs.config import Settings
    from firm_docs.providers.base import Adapter

logger = logging.getLogger(__name__)

DEEPSEEK = "deepseek"
DEEPSEEK_V3 = "deepseek-v3"
OPENAI = "openai"
ERNIE = "ernie"


class ProviderRegistry:
    """Selects an adapter by provider id; there is no fallback between providers."""

    def __init__(
        self,
        adapters: Mapping[str, Adapter],
        *,
        timeout_seconds: float,
        unconfigured: Iterable[str] = (),
    ) -> None:
        self._adapters = dict(adapters)
        self._timeout_seconds = timeout_seconds
        self._unconfigured = frozenset(unconfigured) - self._adapters.keys()

    @property
    def configured(self) -> list[str]:
        return sorted(self._adapters)

    @property
    def unconfigured(self) -> list[str]:
        return sorted(self._unconfigured)

    async def generate(self, provider_id: str, system_prompt: str, user_prompt: str) -> str:
        adapter = self._adapters.get(provider_id)
        if adapter is None:
            reason = (
                "provider not configured"
                if provider_id in self._unconfigured
                else "unknown provider"
            )
            raise GenerationUnavailableError(provider_id, reason)
        try:
            async with asyncio.timeout(self._timeout_seconds):
                return await adapter(system_prompt, user_prompt)
        except TimeoutError:
            logger.warning(
                "Generation timed out — provider=%s timeout=%ss",
                provider_id,
                self._timeout_seconds,
            )
            raise GenerationUnavailableError(
                provider_id, f"no response within {self._timeout_seconds:g}s"
            ) from None


def build_registry(settings: Settings, client: httpx.AsyncClient) -> ProviderRegistry:
    """Wire every provider that has credentials; the rest report "not configured"."""
    temperature = settings.generation.temperature
    adapters: dict[str, Adapter] = {}

    deepseek = settings.deepseek
    if deepseek.api_key:
        models = ((DEEPSEEK, deepseek.model), (DEEPSEEK_V3, deepseek.secondary_model))
        for provider_id, model in models:
            adapters[provider_id] = partial(
                chat_completion,
                client=client,
                provider_id=provider_id,
                url=deepseek.url,
                api_key=deepseek.api_key,
                model=model,
                temperature=temperature,
            )

    openai = settings.openai
    if openai.api_key:
        adapters[OPENAI] = partial(
            chat_completion,
            client=client,
            provider_id=OPENAI,
            url=openai.url,
            api_key=openai.api_key,
            model=openai.model,
            temperature=temperature,
        )

    ernie = settings.ernie
    if ernie.api_key and ernie.secret_key:
        adapters[ERNIE] = partial(
            oauth_chat_completion,
            client=client,
            provider_id=ERNIE,
            url=ernie.url,
            model=ernie.model,
            tokens=TokenCache(
                client=client,
                provider_id=ERNIE,
                token_url=ernie.token_url,
                api_key=ernie.api_key,
                secret_key=ernie.secret_key,
            ),
            temperature=temperature,
        )

    registry = ProviderRegistry(
        adapters,
        timeout_seconds=settings.generation.timeout_seconds,
        unconfigured=(DEEPSEEK, DEEPSEEK_V3, OPENAI, ERNIE),
    )
    logger.info(
        "Providers ready — configured=%s unconfigured=%s",
        ",".join(registry.configured) or "none",
        ",".join(registry.unconfigured) or "none",
    )
    return registry
