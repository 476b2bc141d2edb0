from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from config.settings import Settings
from relay.clients import GeminiClient
from relay.core import TranscriptStore
from tests.fakes import TEST_API_URL, FakeGemini


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("GEMINI_API_URL", TEST_API_URL)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("PUBLIC_DIR", str(tmp_path / "public"))
    return Settings()


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def gemini_client(settings, gemini) -> GeminiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(gemini))
    return GeminiClient(settings, http_client=http_client)


@pytest.fixture
def store() -> TranscriptStore:
    return TranscriptStore()


@pytest.fixture
def api(settings, gemini_client, store) -> TestClient:
    return TestClient(create_app(settings, gemini_client, store))
