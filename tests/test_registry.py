from app.core.config import Settings
from app.llm.entity.result import ProviderName, parse_provider_name
from app.llm.service.registry import (
    STATUS_ACTIVE,
    STATUS_NEEDS_KEY,
    STATUS_PLACEHOLDER,
    ProviderRegistry,
)


def test_statuses_follow_configured_keys(test_settings):
    keyed = test_settings.model_copy(update={"OPENAI_API_KEY": "sk-test"})
    registry = ProviderRegistry(keyed)

    assert registry.status(ProviderName.OPENAI) == STATUS_ACTIVE
    assert registry.status(ProviderName.GOOGLE) == STATUS_NEEDS_KEY
    assert registry.status(ProviderName.ANTHROPIC) == STATUS_NEEDS_KEY
    assert registry.status(ProviderName.COHERE) == STATUS_PLACEHOLDER
    assert registry.status(ProviderName.HUGGINGFACE) == STATUS_PLACEHOLDER


def test_api_key_map_only_lists_credentialed_providers(registry):
    assert registry.api_key_map() == {"google": False, "openai": False, "anthropic": False}


def test_describe_lists_every_provider_in_order(registry):
    described = registry.describe()

    assert [p["name"] for p in described] == ["google", "openai", "anthropic", "cohere", "huggingface"]
    google = described[0]
    assert "gemini-1.5-flash" in google["models"]
    assert google["hasApiKey"] is False
    assert google["status"] == STATUS_NEEDS_KEY


def test_supports_checks_catalog(registry):
    assert registry.supports(ProviderName.OPENAI, "gpt-4")
    assert not registry.supports(ProviderName.OPENAI, "gemini-pro")


def test_parse_provider_name():
    assert parse_provider_name("google") is ProviderName.GOOGLE
    assert parse_provider_name("mistral") is None
    assert parse_provider_name("") is None
    assert parse_provider_name(None) is None


def test_settings_defaults(monkeypatch):
    for var in ("PORT", "MAX_UPLOAD_BYTES", "PROVIDER_TIMEOUT_SECONDS"):
        monkeypatch.delenv(var, raising=False)
    s = Settings(_env_file=None, DATABASE_URL="memory://")
    assert s.PORT == 5000
    assert s.MAX_UPLOAD_BYTES == 10 * 1024 * 1024
    assert s.PROVIDER_TIMEOUT_SECONDS == 60.0
