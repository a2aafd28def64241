# app/llm/service/registry.py
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from app.core.config import Settings, settings as default_settings
from app.llm.entity.result import ProviderName

STATUS_ACTIVE = "active"
STATUS_NEEDS_KEY = "needs_key"
STATUS_PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class ProviderSpec:
    name: ProviderName
    label: str
    models: Tuple[str, ...]
    # Settings attribute holding the credential; None for placeholder providers
    credential: Optional[str] = None


PROVIDER_CATALOG: Dict[ProviderName, ProviderSpec] = {
    ProviderName.GOOGLE: ProviderSpec(
        name=ProviderName.GOOGLE,
        label="Google AI",
        models=("gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro", "gemini-pro-vision"),
        credential="GEMINI_API_KEY",
    ),
    ProviderName.OPENAI: ProviderSpec(
        name=ProviderName.OPENAI,
        label="OpenAI",
        models=("gpt-4", "gpt-4-turbo", "gpt-4-turbo-preview", "gpt-3.5-turbo", "gpt-3.5-turbo-16k"),
        credential="OPENAI_API_KEY",
    ),
    ProviderName.ANTHROPIC: ProviderSpec(
        name=ProviderName.ANTHROPIC,
        label="Anthropic",
        models=("claude-3-opus-20240229", "claude-3-sonnet-20240229", "claude-3-haiku-20240307"),
        credential="ANTHROPIC_API_KEY",
    ),
    ProviderName.COHERE: ProviderSpec(
        name=ProviderName.COHERE,
        label="Cohere",
        models=("command", "command-light", "command-nightly"),
    ),
    ProviderName.HUGGINGFACE: ProviderSpec(
        name=ProviderName.HUGGINGFACE,
        label="Hugging Face",
        models=("microsoft/DialoGPT-large", "facebook/blenderbot-400M-distill"),
    ),
}


class ProviderRegistry:
    """
    Read-only view over the provider catalog.
    Statuses are resolved once, from the settings given at construction,
    and are informational only: dispatch never consults them.
    """

    def __init__(self, settings: Settings = default_settings):
        self._key_present: Dict[ProviderName, bool] = {}
        self._status: Dict[ProviderName, str] = {}
        for name, spec in PROVIDER_CATALOG.items():
            if spec.credential is None:
                self._key_present[name] = False
                self._status[name] = STATUS_PLACEHOLDER
                continue
            present = bool(getattr(settings, spec.credential, None))
            self._key_present[name] = present
            self._status[name] = STATUS_ACTIVE if present else STATUS_NEEDS_KEY

    def names(self) -> List[str]:
        return [name.value for name in PROVIDER_CATALOG]

    def spec(self, name: ProviderName) -> ProviderSpec:
        return PROVIDER_CATALOG[name]

    def status(self, name: ProviderName) -> str:
        return self._status[name]

    def has_api_key(self, name: ProviderName) -> bool:
        return self._key_present[name]

    def supports(self, name: ProviderName, model: str) -> bool:
        return model in PROVIDER_CATALOG[name].models

    def status_map(self) -> Dict[str, str]:
        return {name.value: status for name, status in self._status.items()}

    def api_key_map(self) -> Dict[str, bool]:
        """Credential presence for providers that take one."""
        return {
            name.value: self._key_present[name]
            for name, spec in PROVIDER_CATALOG.items()
            if spec.credential is not None
        }

    def describe(self) -> List[dict]:
        return [
            {
                "name": name.value,
                "models": list(spec.models),
                "status": self._status[name],
                "hasApiKey": self._key_present[name],
            }
            for name, spec in PROVIDER_CATALOG.items()
        ]
