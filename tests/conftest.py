"""Test fixtures for botguard.

Provides fixtures for:
- The bundled default corpus
- A fresh global bot detector per test
- A FastAPI test client with an admin token configured
"""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from botguard.security.corpus import BUNDLED_CORPUS_PATH
from botguard.security.detector import BotDetector, set_bot_detector

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture(scope="session")
def default_corpus() -> str:
    """Bundled default pattern corpus text."""
    return BUNDLED_CORPUS_PATH.read_text(encoding="utf-8")


@pytest.fixture
def detector(default_corpus: str) -> Iterator[BotDetector]:
    """Install a fresh global detector built from the bundled corpus."""
    instance = BotDetector(default_corpus)
    set_bot_detector(instance)
    yield instance
    set_bot_detector(None)


@pytest.fixture
def client(detector: BotDetector, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """Test client for the app with pattern management enabled."""
    from botguard.main import app
    from botguard.security import corpus

    monkeypatch.setattr(corpus, "PATTERNS_URL", None)
    monkeypatch.setenv("BOTGUARD_ADMIN_TOKEN", ADMIN_TOKEN)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
