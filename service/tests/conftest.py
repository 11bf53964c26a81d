"""
Shared fixtures: in-memory services, API client, signed initData.
"""

import hashlib
import hmac
import json
from urllib.parse import urlencode

import pytest
from fastapi.testclient import TestClient

from kin_archive.agents.schemas import AIAnalysisResult
from kin_archive.config import get_settings
from kin_archive.dependencies import build_services, get_services, set_services
from kin_archive.storage import MemoryStorage

TEST_BOT_TOKEN = "123456:TEST-TOKEN"


class FakeClassifier:
    """Delegated classifier double: returns a fixed result or raises."""

    def __init__(self, result: AIAnalysisResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[str] = []

    async def suggest(self, filename: str) -> AIAnalysisResult:
        self.calls.append(filename)
        if self.error is not None:
            raise self.error
        return self.result


def make_init_data(bot_token: str = TEST_BOT_TOKEN, user: dict | None = None, **fields) -> str:
    """initData string signed the way Telegram signs it."""
    data = {
        "auth_date": "1700000000",
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "user": json.dumps(user or {"id": 42, "first_name": "Анна", "username": "anna"}, ensure_ascii=False),
        **fields,
    }
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(data.items()))
    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    data["hash"] = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode(data)


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Deterministic settings: no LLM credentials, memory storage."""
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", TEST_BOT_TOKEN)
    monkeypatch.setenv("TELEGRAM_WEBHOOK_SECRET", "")
    monkeypatch.setenv("BOT_USERNAME", "Test_bot")
    monkeypatch.setenv("MINI_APP_URL", "https://archive.example")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("CLASSIFIER_PROVIDER", "openai")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def services(storage):
    built = build_services(storage=storage)
    set_services(built)
    yield built
    set_services(None)


@pytest.fixture
def client(services):
    from kin_archive.main import app
    from kin_archive.api.documents import limiter

    limiter.reset()
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()
