"""Tests for Ollama client (mocked)."""

from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("ollama")


@patch("mockly.llm.ollama_client.ollama")
def test_ollama_client_query_mock(mock_ollama):
    """Ollama client sends query and returns response."""
    mock_client = MagicMock()
    mock_client.chat.return_value = {"message": {"content": "Hello"}}
    mock_ollama.Client.return_value = mock_client

    from mockly.llm.ollama_client import OllamaClient

    client = OllamaClient()
    result = client.query("test prompt", system="You are an interviewer.")
    assert result == "Hello"
    mock_client.chat.assert_called_once()
    messages = mock_client.chat.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": "You are an interviewer."}
    assert messages[1] == {"role": "user", "content": "test prompt"}


@patch("mockly.llm.ollama_client.ollama")
def test_ollama_client_extract_json_from_prose(mock_ollama):
    """extract_json recovers the object from a chatty, fenced response."""
    mock_client = MagicMock()
    mock_client.chat.return_value = {
        "message": {"content": 'Sure!\n```json\n{"prompt": "My order is late", "difficulty": "hard"}\n```'}
    }
    mock_ollama.Client.return_value = mock_client

    from mockly.llm.ollama_client import OllamaClient

    client = OllamaClient()
    result = client.extract_json("generate scenario")
    assert result["prompt"] == "My order is late"
    assert result["difficulty"] == "hard"


@patch("mockly.llm.ollama_client.ollama")
def test_ollama_client_extract_json_fallback(mock_ollama):
    mock_client = MagicMock()
    mock_client.chat.return_value = {"message": {"content": "no json"}}
    mock_ollama.Client.return_value = mock_client

    from mockly.llm.ollama_client import OllamaClient

    assert OllamaClient(model="tiny").extract_json("x") == {"raw": "no json"}
    assert mock_client.chat.call_args.kwargs["model"] == "tiny"
