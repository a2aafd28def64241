# app/llm/entity/result.py
"""
Provider-agnostic result of a single dispatch.
Every provider, real or placeholder, hands back this shape.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ProviderName(str, Enum):
    GOOGLE = "google"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    COHERE = "cohere"
    HUGGINGFACE = "huggingface"


class ResultStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    PLACEHOLDER = "placeholder"


class ProviderResult(BaseModel):
    """Normalized outcome of a provider call."""
    response: str
    model: str
    provider: ProviderName
    status: ResultStatus
    error: Optional[str] = None


def parse_provider_name(value: Optional[str]) -> Optional[ProviderName]:
    """Return the ProviderName for a raw string, or None when unknown."""
    if not value:
        return None
    try:
        return ProviderName(value)
    except ValueError:
        return None
