# app/llm/service/dispatcher.py
from typing import Dict, Optional

from app.core.config import Settings, settings as default_settings
from app.core.logger import get_logger
from app.llm.entity.result import ProviderName, ProviderResult
from app.llm.service.provider.anthropic import AnthropicProvider
from app.llm.service.provider.base_provider import BaseProvider
from app.llm.service.provider.gemini import GeminiProvider
from app.llm.service.provider.openai_provider import OpenAIProvider
from app.llm.service.provider.placeholder import CohereProvider, HuggingFaceProvider
from app.llm.service.registry import ProviderRegistry
from app.llm.service.usage_tracker import UsageTracker

logger = get_logger("ProviderDispatcher")


def build_provider(name: ProviderName, settings: Settings, usage: UsageTracker) -> BaseProvider:
    if name is ProviderName.GOOGLE:
        return GeminiProvider(settings, usage)
    elif name is ProviderName.OPENAI:
        return OpenAIProvider(settings, usage)
    elif name is ProviderName.ANTHROPIC:
        return AnthropicProvider(settings, usage)
    elif name is ProviderName.COHERE:
        return CohereProvider(settings, usage)
    elif name is ProviderName.HUGGINGFACE:
        return HuggingFaceProvider(settings, usage)
    raise ValueError(f"No provider implementation for {name!r}")


class ProviderDispatcher:
    """
    Routes a prompt to the provider the caller asked for.
    Callers validate the provider name beforehand; this layer only
    warns about models missing from the catalog and still attempts them.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        usage: UsageTracker,
        settings: Settings = default_settings,
        providers: Optional[Dict[ProviderName, BaseProvider]] = None,
    ):
        self.registry = registry
        self.usage = usage
        self.providers: Dict[ProviderName, BaseProvider] = {
            name: build_provider(name, settings, usage) for name in ProviderName
        }
        if providers:
            self.providers.update(providers)

    def get(self, name: ProviderName) -> BaseProvider:
        return self.providers[name]

    async def dispatch(self, name: ProviderName, prompt: str, model: str) -> ProviderResult:
        if not self.registry.supports(name, model):
            logger.warning(f"Model {model} not in supported list for {name.value}, attempting anyway...")
        provider = self.providers[name]
        result = await provider.dispatch(prompt, model)
        logger.info(
            f"Dispatch complete | provider={name.value} model={result.model} status={result.status.value}"
        )
        return result

    def __repr__(self):
        return f"<ProviderDispatcher providers={[p.value for p in self.providers]}>"
