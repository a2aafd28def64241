# app/llm/service/provider/base_provider.py
import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from app.core.config import Settings
from app.core.logger import get_logger
from app.llm.entity.result import ProviderName, ProviderResult, ResultStatus
from app.llm.service.registry import PROVIDER_CATALOG
from app.llm.service.usage_tracker import UsageTracker

logger = get_logger("Provider")

# Prompts carrying file content get a larger output ceiling
FILE_CONTENT_MARKER = "File Content:"
DEFAULT_MAX_TOKENS = 1000
FILE_MAX_TOKENS = 2000


def max_tokens_for(prompt: str) -> int:
    return FILE_MAX_TOKENS if FILE_CONTENT_MARKER in prompt else DEFAULT_MAX_TOKENS


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class BaseProvider(ABC):
    """Abstract base provider for all LLM integrations."""

    name: ProviderName

    def __init__(self, settings: Settings, usage: UsageTracker):
        self.settings = settings
        self.usage = usage
        self.spec = PROVIDER_CATALOG[self.name]
        self.api_key: Optional[str] = getattr(settings, self.spec.credential) if self.spec.credential else None
        self.timeout = settings.PROVIDER_TIMEOUT_SECONDS

    @abstractmethod
    async def generate(self, prompt: str, model: str, max_tokens: int) -> Tuple[str, str]:
        """Call the vendor. Returns (text, model id reported by the vendor)."""
        pass

    def is_enabled(self) -> bool:
        """Whether this provider is usable (API key present)."""
        return bool(self.api_key)

    async def dispatch(self, prompt: str, model: str) -> ProviderResult:
        """
        Run one request against the vendor and normalize the outcome.
        Never raises: a missing key, a timeout or a vendor failure all come
        back as status=error with an explanatory response.
        """
        start = time.perf_counter()
        label = self.spec.label

        if not self.is_enabled():
            error = f"{label} API key not configured"
            self.usage.record(self.name.value, model, ResultStatus.ERROR.value, _elapsed_ms(start), error)
            return ProviderResult(
                response=(
                    f"{model}: {label} API key not configured. Please add {self.spec.credential} "
                    f"to your .env file to use {label} models."
                ),
                model=model,
                provider=self.name,
                status=ResultStatus.ERROR,
                error=error,
            )

        try:
            text, resolved_model = await asyncio.wait_for(
                self.generate(prompt, model, max_tokens_for(prompt)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            error = f"request timed out after {self.timeout:g}s"
            logger.error(f"{self.name.value} call failed | model={model} | {error}")
            return self._failure(model, error, start)
        except Exception as e:
            logger.error(f"{self.name.value} call failed | model={model} | {e}")
            return self._failure(model, str(e) or e.__class__.__name__, start)

        resolved_model = resolved_model or model
        self.usage.record(self.name.value, resolved_model, ResultStatus.SUCCESS.value, _elapsed_ms(start))
        return ProviderResult(
            response=text,
            model=resolved_model,
            provider=self.name,
            status=ResultStatus.SUCCESS,
        )

    def _failure(self, model: str, error: str, start: float) -> ProviderResult:
        self.usage.record(self.name.value, model, ResultStatus.ERROR.value, _elapsed_ms(start), error)
        return ProviderResult(
            response=(
                f"{model}: Error - {error}. Please check your {self.spec.label} API key "
                f"and model availability."
            ),
            model=model,
            provider=self.name,
            status=ResultStatus.ERROR,
            error=error,
        )

    def __repr__(self):
        return f"<{self.__class__.__name__} enabled={self.is_enabled()}>"
