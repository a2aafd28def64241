# app/llm/service/provider/placeholder.py
import time
from typing import Tuple

from .base_provider import BaseProvider
from app.llm.entity.result import ProviderName, ProviderResult, ResultStatus


class PlaceholderProvider(BaseProvider):
    """Listed in the catalog but not wired to a vendor. Always answers with setup instructions."""

    package: str = ""

    def is_enabled(self) -> bool:
        return False

    async def generate(self, prompt: str, model: str, max_tokens: int) -> Tuple[str, str]:
        raise NotImplementedError(f"{self.spec.label} integration not implemented")

    async def dispatch(self, prompt: str, model: str) -> ProviderResult:
        start = time.perf_counter()
        label = self.spec.label
        self.usage.record(
            self.name.value, model, ResultStatus.PLACEHOLDER.value, int((time.perf_counter() - start) * 1000)
        )
        return ProviderResult(
            response=(
                f"{model}: {label} integration not implemented yet. To add {label} support, "
                f"install the {self.package} package and add your API key."
            ),
            model=model,
            provider=self.name,
            status=ResultStatus.PLACEHOLDER,
        )


class CohereProvider(PlaceholderProvider):
    name = ProviderName.COHERE
    package = "cohere"


class HuggingFaceProvider(PlaceholderProvider):
    name = ProviderName.HUGGINGFACE
    package = "huggingface_hub"
