# app/llm/service/provider/openai_provider.py
from typing import Tuple
from openai import AsyncOpenAI
from .base_provider import BaseProvider
from app.llm.entity.result import ProviderName

DEFAULT_TEMPERATURE = 0.7


class OpenAIProvider(BaseProvider):
    """Handles OpenAI chat completion models."""

    name = ProviderName.OPENAI

    def __init__(self, settings, usage, client: AsyncOpenAI | None = None):
        super().__init__(settings, usage)
        if client is None and self.api_key:
            client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        self.client = client

    async def generate(self, prompt: str, model: str, max_tokens: int) -> Tuple[str, str]:
        completion = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=DEFAULT_TEMPERATURE,
        )
        # vendor may alias the requested model (e.g. gpt-4 -> gpt-4-0613)
        return completion.choices[0].message.content or "", completion.model
