import asyncio
from unittest.mock import patch

import pytest

from app.llm.entity.result import ProviderName, ResultStatus
from app.llm.service.dispatcher import ProviderDispatcher, build_provider
from app.llm.service.provider import base_provider
from app.llm.service.provider.anthropic import AnthropicProvider
from app.llm.service.provider.base_provider import DEFAULT_MAX_TOKENS, FILE_MAX_TOKENS, max_tokens_for
from app.llm.service.provider.gemini import GeminiProvider
from app.llm.service.provider.openai_provider import OpenAIProvider
from app.llm.service.provider.placeholder import CohereProvider, HuggingFaceProvider
from tests.fakes import FakeProvider


def test_build_provider_covers_every_provider(test_settings, usage):
    expected = {
        ProviderName.GOOGLE: GeminiProvider,
        ProviderName.OPENAI: OpenAIProvider,
        ProviderName.ANTHROPIC: AnthropicProvider,
        ProviderName.COHERE: CohereProvider,
        ProviderName.HUGGINGFACE: HuggingFaceProvider,
    }
    for name in ProviderName:
        assert isinstance(build_provider(name, test_settings, usage), expected[name])


def test_max_tokens_depends_on_file_marker():
    assert max_tokens_for("hello") == DEFAULT_MAX_TOKENS
    assert max_tokens_for("Summarize\nFile Content:\nabc") == FILE_MAX_TOKENS


@pytest.mark.anyio
async def test_missing_key_returns_error_without_calling_out(registry, usage, test_settings):
    dispatcher = ProviderDispatcher(registry, usage, test_settings)

    result = await dispatcher.dispatch(ProviderName.GOOGLE, "hello", "gemini-1.5-flash")

    assert result.status == ResultStatus.ERROR
    assert result.provider == ProviderName.GOOGLE
    assert result.model == "gemini-1.5-flash"
    assert "API key not configured" in result.response
    assert "GEMINI_API_KEY" in result.response
    assert usage.snapshot()["errors"] == {"gemini-1.5-flash": 1}


@pytest.mark.anyio
async def test_anthropic_missing_key_names_its_env_var(registry, usage, test_settings):
    dispatcher = ProviderDispatcher(registry, usage, test_settings)

    result = await dispatcher.dispatch(ProviderName.ANTHROPIC, "hello", "claude-3-haiku-20240307")

    assert result.status == ResultStatus.ERROR
    assert "ANTHROPIC_API_KEY" in result.response


@pytest.mark.anyio
async def test_placeholder_providers_never_call_out(registry, usage, test_settings):
    dispatcher = ProviderDispatcher(registry, usage, test_settings)

    cohere = await dispatcher.dispatch(ProviderName.COHERE, "hello", "command")
    hf = await dispatcher.dispatch(ProviderName.HUGGINGFACE, "hello", "microsoft/DialoGPT-large")

    assert cohere.status == ResultStatus.PLACEHOLDER
    assert "cohere" in cohere.response
    assert hf.status == ResultStatus.PLACEHOLDER
    assert "huggingface_hub" in hf.response
    snapshot = usage.snapshot()
    assert snapshot["totalRequests"] == 2
    assert snapshot["errors"] == {}


@pytest.mark.anyio
async def test_success_uses_vendor_reported_model(registry, usage, test_settings):
    fake = FakeProvider(ProviderName.OPENAI, test_settings, usage, reply="ok", resolved_model="gpt-4-0613")
    dispatcher = ProviderDispatcher(registry, usage, test_settings, providers={ProviderName.OPENAI: fake})

    result = await dispatcher.dispatch(ProviderName.OPENAI, "hi", "gpt-4")

    assert result.status == ResultStatus.SUCCESS
    assert result.response == "ok"
    assert result.model == "gpt-4-0613"
    assert fake.calls[0]["max_tokens"] == DEFAULT_MAX_TOKENS
    assert usage.snapshot()["modelUsage"] == {"gpt-4-0613": 1}


@pytest.mark.anyio
async def test_vendor_failure_is_normalized(registry, usage, test_settings):
    fake = FakeProvider(ProviderName.OPENAI, test_settings, usage, error=RuntimeError("model not found"))
    dispatcher = ProviderDispatcher(registry, usage, test_settings, providers={ProviderName.OPENAI: fake})

    result = await dispatcher.dispatch(ProviderName.OPENAI, "hi", "gpt-9")

    assert result.status == ResultStatus.ERROR
    assert result.response == (
        "gpt-9: Error - model not found. Please check your OpenAI API key and model availability."
    )
    assert result.error == "model not found"


@pytest.mark.anyio
async def test_slow_vendor_times_out(registry, usage, test_settings):
    fake = FakeProvider(ProviderName.ANTHROPIC, test_settings, usage, delay=5)
    dispatcher = ProviderDispatcher(registry, usage, test_settings, providers={ProviderName.ANTHROPIC: fake})

    with patch.object(base_provider.logger, "error") as log_error:
        result = await asyncio.wait_for(
            dispatcher.dispatch(ProviderName.ANTHROPIC, "hi", "claude-3-haiku-20240307"), timeout=3
        )

    assert result.status == ResultStatus.ERROR
    assert "timed out" in result.response
    log_error.assert_called_once()
    assert "timed out" in log_error.call_args.args[0]


@pytest.mark.anyio
async def test_unknown_model_is_still_attempted(registry, usage, test_settings):
    fake = FakeProvider(ProviderName.OPENAI, test_settings, usage)
    dispatcher = ProviderDispatcher(registry, usage, test_settings, providers={ProviderName.OPENAI: fake})

    result = await dispatcher.dispatch(ProviderName.OPENAI, "hi", "gpt-4o")

    assert result.status == ResultStatus.SUCCESS
    assert fake.calls[0]["model"] == "gpt-4o"
