"""Ollama client for running completions against a local model."""

import logging
from typing import Any

from mockly.config import get_config
from mockly.llm.json_recovery import extract_json_with_fallback

try:
    import ollama
except ImportError:
    ollama = None

logger = logging.getLogger(__name__)


class OllamaClient:
    """Client for a local Ollama server."""

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        if ollama is None:
            raise ImportError("ollama package required. Install with: pip install ollama")
        config = config if config is not None else get_config()
        ollama_config = config.get("llm", {}).get("ollama", {})
        self.model = model or ollama_config.get("model", "llama3:8b")
        self.base_url = base_url or ollama_config.get("base_url", "http://localhost:11434")
        self.timeout = timeout or ollama_config.get("timeout", 60)

    def query(self, prompt: str, system: str | None = None, temperature: float | None = None) -> str:
        """Send a query to Ollama and return the response text."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        options = {"temperature": temperature} if temperature is not None else None
        client = ollama.Client(host=self.base_url, timeout=self.timeout)
        logger.debug("ollama chat model=%s prompt_chars=%d", self.model, len(prompt))
        response = client.chat(
            model=self.model,
            messages=messages,
            options=options,
        )
        return response["message"]["content"]

    def extract_json(self, prompt: str, system: str | None = None) -> dict[str, Any]:
        """Query Ollama and recover a JSON object from the response."""
        response = self.query(prompt, system)
        return extract_json_with_fallback(response)
