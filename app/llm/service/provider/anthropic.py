# app/llm/service/provider/anthropic.py
from typing import Tuple
from anthropic import AsyncAnthropic
from .base_provider import BaseProvider
from app.llm.entity.result import ProviderName


class AnthropicProvider(BaseProvider):
    """Handles Claude (Anthropic) models."""

    name = ProviderName.ANTHROPIC

    def __init__(self, settings, usage, client: AsyncAnthropic | None = None):
        super().__init__(settings, usage)
        if client is None and self.api_key:
            client = AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        self.client = client

    async def generate(self, prompt: str, model: str, max_tokens: int) -> Tuple[str, str]:
        msg = await self.client.messages.create(
            model=model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(block.text for block in msg.content if getattr(block, "type", None) == "text")
        return text, msg.model
