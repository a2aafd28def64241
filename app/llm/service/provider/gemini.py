import httpx
from typing import Tuple
from .base_provider import BaseProvider
from app.llm.entity.result import ProviderName


class GeminiProvider(BaseProvider):
    """Handles Google Gemini models over the REST API."""

    name = ProviderName.GOOGLE

    def __init__(self, settings, usage, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(settings, usage)
        self.endpoint = settings.GEMINI_ENDPOINT.rstrip("/")
        self._transport = transport

    async def generate(self, prompt: str, model: str, max_tokens: int) -> Tuple[str, str]:
        url = f"{self.endpoint}/v1beta/models/{model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": max_tokens},
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            res = await client.post(url, params={"key": self.api_key}, json=payload)
            if res.status_code != 200:
                raise RuntimeError(self._error_message(res))
            data = res.json()

        candidates = data.get("candidates", [])
        if not candidates:
            feedback = data.get("promptFeedback", {}).get("blockReason")
            raise RuntimeError(f"No candidates returned{f' (blocked: {feedback})' if feedback else ''}")
        parts = candidates[0].get("content", {}).get("parts", [])
        text = "".join(p.get("text", "") for p in parts if "text" in p)
        return text, data.get("modelVersion") or model

    @staticmethod
    def _error_message(res: httpx.Response) -> str:
        try:
            detail = res.json().get("error", {}).get("message")
        except ValueError:
            detail = None
        return f"[{res.status_code}] {detail or res.text[:200]}"
