from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _set_test_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    monkeypatch.delenv("MOBILE_PROMPT_ENVELOPE", raising=False)
    monkeypatch.delenv("MAX_PROMPT_CHARS", raising=False)
    # Settings are cached via @lru_cache; clear so each test sees its own environment.
    from app.core.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from app.main import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c
