import os

os.environ.setdefault("DATABASE_URL", "memory://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from app.chat.repository.memory_repository import InMemoryChatRepository
from app.core.config import Settings
from app.file.repository.memory_repository import InMemoryFileRepository
from app.llm.entity.result import ProviderName
from app.llm.service.dispatcher import ProviderDispatcher
from app.llm.service.registry import ProviderRegistry
from app.llm.service.usage_tracker import UsageTracker
from tests.fakes import FakeProvider


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL="memory://",
        GEMINI_API_KEY=None,
        OPENAI_API_KEY=None,
        ANTHROPIC_API_KEY=None,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        PROVIDER_TIMEOUT_SECONDS=0.5,
    )


@pytest.fixture
def usage():
    return UsageTracker()


@pytest.fixture
def registry(test_settings):
    return ProviderRegistry(test_settings)


@pytest.fixture
def chat_repo():
    return InMemoryChatRepository()


@pytest.fixture
def file_repo():
    return InMemoryFileRepository()


@pytest.fixture
def openai_fake(test_settings, usage):
    return FakeProvider(ProviderName.OPENAI, test_settings, usage, reply="Hi from the fake model")


@pytest.fixture
def dispatcher(registry, usage, test_settings, openai_fake):
    # google and anthropic stay unconfigured; openai answers locally
    return ProviderDispatcher(registry, usage, test_settings, providers={ProviderName.OPENAI: openai_fake})


@pytest.fixture
def client(test_settings, chat_repo, file_repo, dispatcher):
    from main import create_app

    app = create_app(test_settings, chat_repository=chat_repo, file_repository=file_repo, dispatcher=dispatcher)
    with TestClient(app) as c:
        yield c
