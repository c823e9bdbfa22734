# tests/conftest.py

import pytest
from fastapi.testclient import TestClient

import main


@pytest.fixture(scope="session")
def client():
    return TestClient(main.app)


# ----------------------------------------------------------
# No real LLM credentials in ANY test
# ----------------------------------------------------------
@pytest.fixture(autouse=True)
def no_llm_credentials(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENAI_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def llm_credentials(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://llm.example.test/v1")
    yield


@pytest.fixture
def fake_completion():
    """Builds a minimal stand-in for an OpenAI chat completion response."""

    def build(content):
        message = type("Message", (), {"content": content})
        choice = type("Choice", (), {"message": message})
        return type("Completion", (), {"choices": [choice]})

    return build
