from __future__ import annotations

import pytest
from conftest import FakeLLM

from config import ProviderSettings
from llm import Message, ProviderChain, build_provider_chain, is_quota_error, wrap_provider_error
from llm.gemini_llm import GeminiLLM
from llm.openai_llm import OpenAICompatibleLLM
from utils.exceptions import (
    MissingCredentialsError,
    ProviderCallError,
    ProviderQuotaExceededError,
)


class _SdkRateLimit(Exception):
    status_code = 429


def test_default_order_skips_missing_credentials() -> None:
    chain = build_provider_chain(ProviderSettings(gemini_api_key="g", openrouter_api_key="o", groq_api_key="  "))

    assert chain.names == ["gemini", "openrouter"]
    assert isinstance(chain.primary, GeminiLLM)
    assert repr(chain) == "ProviderChain(gemini -> openrouter)"


def test_open_models_order() -> None:
    chain = build_provider_chain(
        ProviderSettings(gemini_api_key="g", groq_api_key="q", openrouter_api_key="o", prefer_open_models=True)
    )

    assert chain.names == ["groq", "openrouter", "gemini"]
    assert isinstance(chain.primary, OpenAICompatibleLLM)


def test_env_credentials_are_read(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "from-env")
    monkeypatch.setenv("OPENROUTER_API_KEY", "router")

    assert build_provider_chain().names == ["gemini", "openrouter"]


def test_no_credentials_is_fatal() -> None:
    with pytest.raises(MissingCredentialsError):
        build_provider_chain(ProviderSettings())


@pytest.mark.asyncio
async def test_quota_error_falls_back_for_that_call_only() -> None:
    primary = FakeLLM("gemini", replies=[ProviderQuotaExceededError("429", provider="gemini"), "second"])
    backup = FakeLLM("groq", replies=["first"])
    chain = ProviderChain([primary, backup])

    first = await chain.acomplete([Message.user("hi")])
    second = await chain.acomplete([Message.user("hi")])

    assert (first.content, first.provider) == ("first", "groq")
    assert (second.content, second.provider) == ("second", "gemini")
    assert len(primary.calls) == 2
    assert len(backup.calls) == 1


@pytest.mark.asyncio
async def test_non_quota_error_does_not_fall_back() -> None:
    primary = FakeLLM("gemini", replies=[ProviderCallError("bad request", provider="gemini")])
    backup = FakeLLM("groq", replies=["unused"])

    with pytest.raises(ProviderCallError):
        await ProviderChain([primary, backup]).acomplete([Message.user("hi")])
    assert backup.calls == []


@pytest.mark.asyncio
async def test_all_providers_quota_exhausted_raises_last_error() -> None:
    chain = ProviderChain(
        [
            FakeLLM("gemini", replies=[ProviderQuotaExceededError("gemini quota", provider="gemini")]),
            FakeLLM("groq", replies=[ProviderQuotaExceededError("groq quota", provider="groq")]),
        ]
    )

    with pytest.raises(ProviderQuotaExceededError) as excinfo:
        await chain.acomplete([Message.user("hi")])
    assert excinfo.value.provider == "groq"


@pytest.mark.asyncio
async def test_aclose_closes_every_provider() -> None:
    providers = [FakeLLM("gemini"), FakeLLM("groq")]
    await ProviderChain(providers).aclose()
    assert all(p.closed for p in providers)


def test_is_quota_error() -> None:
    assert is_quota_error(_SdkRateLimit("slow down"))
    assert is_quota_error(RuntimeError("429 Resource has been exhausted (e.g. check quota)."))
    assert is_quota_error(RuntimeError("RESOURCE_EXHAUSTED"))
    assert not is_quota_error(RuntimeError("400 invalid argument"))


def test_is_quota_error_needs_a_whole_status_code() -> None:
    assert is_quota_error(RuntimeError("Error code: 429 - too many requests"))
    assert not is_quota_error(RuntimeError("context length 1429 tokens exceeds model limit"))
    assert not is_quota_error(RuntimeError("request 4290 failed: bad gateway"))


def test_wrap_provider_error() -> None:
    quota = wrap_provider_error(_SdkRateLimit("limit"), "groq")
    other = wrap_provider_error(ValueError("boom"), "groq")
    same = ProviderCallError("already wrapped", provider="gemini")

    assert isinstance(quota, ProviderQuotaExceededError)
    assert quota.provider == "groq"
    assert type(other) is ProviderCallError
    assert wrap_provider_error(same, "groq") is same
