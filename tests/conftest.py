"""Pytest fixtures for Mockly tests."""

import pytest

from mockly.config import reset_config

API_KEY_VARS = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "ELEVENLABS_API_KEY",
    "AI_PRIMARY_PROVIDER",
    "MOCKLY_PRIMARY_PROVIDER",
    "OPENAI_MODEL",
    "GEMINI_MODEL",
    "GEMINI_MODEL_ID",
    "ELEVENLABS_MODEL_ID",
    "ELEVENLABS_BASE_URL",
    "MOCKLY_OLLAMA_MODEL",
    "MOCKLY_OLLAMA_BASE_URL",
    "MOCKLY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Each test starts without provider keys and with a fresh config cache."""
    for name in API_KEY_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sample_config():
    """Sample config for testing."""
    return {
        "llm": {
            "primary_provider": "openai",
            "temperature": 0.2,
            "max_attempts": 1,
            "retry_base_delay": 0,
            "openai": {"base_url": "https://api.openai.test/v1", "model": "gpt-test", "timeout": 5},
            "gemini": {
                "base_url": "https://gemini.test/v1beta",
                "models": ["gemini-old", "gemini-new"],
                "timeout": 5,
            },
            "ollama": {"enabled": False, "model": "llama3:8b", "base_url": "http://localhost:11434"},
        },
        "voice": {
            "elevenlabs": {
                "base_url": "https://elevenlabs.test",
                "model_id": "eleven_turbo_v2_5",
                "default_voice_id": "voice-default",
                "max_attempts": 3,
                "backoff_ms": 0,
                "timeout": 5,
            }
        },
        "logging": {"level": "INFO", "json": False},
    }
