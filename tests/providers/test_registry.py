"""Tests for provider selection and the generation timeout."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from firm_docs.config import (
    DeepSeekConfig,
    ErnieConfig,
    GenerationConfig,
    OpenAIConfig,
    Settings,
)
from firm_docs.errors import GenerationUnavailableError
from firm_docs.providers.registry import ProviderRegistry, build_registry


async def test_dispatches_to_selected_adapter() -> None:
    first = AsyncMock(return_value="one")
    second = AsyncMock(return_value="two")
    registry = ProviderRegistry({"a": first, "b": second}, timeout_seconds=5)

    assert await registry.generate("b", "sys", "user") == "two"
    second.assert_awaited_once_with("sys", "user")
    first.assert_not_awaited()


async def test_unknown_provider() -> None:
    registry = ProviderRegistry({}, timeout_seconds=5)
    with pytest.raises(GenerationUnavailableError, match="unknown provider"):
        await registry.generate("nope", "s", "u")


async def test_unconfigured_provider_is_not_substituted() -> None:
    fallback = AsyncMock(return_value="text")
    registry = ProviderRegistry({"a": fallback}, timeout_seconds=5, unconfigured=["b", "a"])

    with pytest.raises(GenerationUnavailableError, match="not configured"):
        await registry.generate("b", "s", "u")

    fallback.assert_not_awaited()
    assert registry.configured == ["a"]
    assert registry.unconfigured == ["b"]


async def test_slow_adapter_times_out() -> None:
    async def slow(system_prompt: str, user_prompt: str) -> str:
        await asyncio.sleep(5)
        return "late"

    registry = ProviderRegistry({"slow": slow}, timeout_seconds=0.01)

    with pytest.raises(GenerationUnavailableError, match="no response within") as excinfo:
        await registry.generate("slow", "s", "u")
    assert excinfo.value.details["phase"] == "preview"


async def test_build_registry_wires_providers_with_credentials() -> None:
    settings = Settings(
        deepseek=DeepSeekConfig(api_key="ds-key"),
        openai=OpenAIConfig(api_key=""),
        ernie=ErnieConfig(api_key="ak", secret_key=""),
        generation=GenerationConfig(timeout_seconds=10, temperature=0.5),
    )
    async with httpx.AsyncClient() as client:
        registry = build_registry(settings, client)

    assert registry.configured == ["deepseek", "deepseek-v3"]
    assert registry.unconfigured == ["ernie", "openai"]


async def test_build_registry_calls_bound_adapter() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    settings = Settings(
        deepseek=DeepSeekConfig(api_key=""),
        openai=OpenAIConfig(api_key="oa-key", url="https://openai.test/v1/chat", model="gpt-x"),
        ernie=ErnieConfig(api_key="", secret_key=""),
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        registry = build_registry(settings, client)
        assert await registry.generate("openai", "s", "u") == "ok"

    assert seen[0].url.host == "openai.test"
    assert seen[0].headers["Authorization"] == "Bearer oa-key"
