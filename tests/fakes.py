import asyncio

from app.llm.service.provider.base_provider import BaseProvider


class FakeProvider(BaseProvider):
    """Credentialed provider that answers locally and remembers what it was sent."""

    def __init__(self, name, settings, usage, reply="fake reply", error=None, delay=0.0, resolved_model=None):
        self.name = name
        super().__init__(settings, usage)
        self.api_key = "test-key"
        self.reply = reply
        self.error = error
        self.delay = delay
        self.resolved_model = resolved_model
        self.calls = []

    async def generate(self, prompt, model, max_tokens):
        self.calls.append({"prompt": prompt, "model": model, "max_tokens": max_tokens})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.reply, self.resolved_model or model
