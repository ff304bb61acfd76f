"""LLM text completion with provider fallback (OpenAI, Gemini, Ollama)."""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from mockly.config import get_api_key, get_config
from mockly.http_retry import retry_request
from mockly.llm.json_recovery import recover_json_candidate, strip_code_fences

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "gemini", "ollama")


class LLMProviderError(RuntimeError):
    """A provider could not produce a completion."""


@dataclass
class LLMTextResult:
    provider: str
    text: str


class LLMClient:
    """Run a prompt against the configured providers, primary first."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        config = config if config is not None else get_config()
        self.llm_config = config.get("llm", {})
        self.temperature = self.llm_config.get("temperature", 0.2)
        self.max_attempts = int(self.llm_config.get("max_attempts", 2))
        self.retry_base_delay = float(self.llm_config.get("retry_base_delay", 1.0))

    def provider_order(self, primary: str | None = None) -> list[str]:
        """Primary provider first, then the remaining enabled providers."""
        primary = (primary or self.llm_config.get("primary_provider") or "openai").lower()
        if primary not in PROVIDERS:
            logger.warning("Unknown primary provider %r, using openai", primary)
            primary = "openai"
        ollama_enabled = bool(self.llm_config.get("ollama", {}).get("enabled")) or primary == "ollama"
        order = [primary]
        for provider in PROVIDERS:
            if provider == primary:
                continue
            if provider == "ollama" and not ollama_enabled:
                continue
            order.append(provider)
        return order

    def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        primary: str | None = None,
        temperature: float | None = None,
    ) -> LLMTextResult:
        """
        Return the first non-empty completion from the provider chain.

        Raises LLMProviderError listing every provider's failure when none
        succeeds.
        """
        temperature = self.temperature if temperature is None else temperature
        errors = []
        for provider in self.provider_order(primary):
            try:
                if provider == "openai":
                    text = self._run_openai(prompt, system_prompt, temperature)
                elif provider == "gemini":
                    text = self._run_gemini(prompt, system_prompt, temperature)
                else:
                    text = self._run_ollama(prompt, system_prompt, temperature)
            except Exception as e:
                logger.warning("LLM provider %s failed: %s", provider, e)
                errors.append(f"{provider}: {e}")
                continue
            logger.info("LLM provider %s answered (%d chars)", provider, len(text))
            return LLMTextResult(provider=provider, text=text)

        raise LLMProviderError(f"No LLM provider succeeded ({' | '.join(errors)})")

    def generate_json(
        self,
        prompt: str,
        fallback: dict[str, Any],
        *,
        required: Iterable[str] = (),
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Ask for a JSON object and validate it against a fallback payload.

        Fields present in the response replace the fallback's fields when
        their type matches; anything else keeps the fallback value. Provider
        failure, unrecoverable JSON, a non-object or a missing required key
        all return a copy of the fallback.
        """
        try:
            result = self.generate_text(prompt, **kwargs)
        except LLMProviderError as e:
            logger.warning("Using fallback payload: %s", e)
            return copy.deepcopy(fallback)

        parsed = recover_json_candidate(result.text)
        if not isinstance(parsed, dict):
            logger.warning("Using fallback payload: no JSON object in %s response: %.200s", result.provider, result.text)
            return copy.deepcopy(fallback)

        missing = [key for key in required if parsed.get(key) in (None, "", [], {})]
        if missing:
            logger.warning("Using fallback payload: %s response missing %s", result.provider, ", ".join(missing))
            return copy.deepcopy(fallback)

        merged = copy.deepcopy(fallback)
        for key, value in parsed.items():
            merged[key] = _coerce_field(value, fallback.get(key))
        return merged

    def _full_prompt(self, prompt: str, system_prompt: str | None) -> str:
        return f"{system_prompt}\n\n{prompt}" if system_prompt else prompt

    def _run_openai(self, prompt: str, system_prompt: str | None, temperature: float) -> str:
        api_key = get_api_key("openai")
        if not api_key:
            raise LLMProviderError("openai key unavailable")
        cfg = self.llm_config.get("openai", {})
        base_url = cfg.get("base_url", "https://api.openai.com/v1").rstrip("/")
        resp = retry_request(
            "POST",
            f"{base_url}/chat/completions",
            max_attempts=self.max_attempts,
            base_delay=self.retry_base_delay,
            headers={"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"},
            json={
                "model": cfg.get("model", "gpt-5-mini"),
                "temperature": temperature,
                "messages": [{"role": "user", "content": self._full_prompt(prompt, system_prompt)}],
            },
            timeout=cfg.get("timeout", 60),
        )
        if not resp.ok:
            raise LLMProviderError(f"openai request failed: {resp.status_code} {resp.text}"[:300])
        payload = resp.json()
        choices = payload.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        text = strip_code_fences(content)
        if not text:
            raise LLMProviderError("empty openai response")
        return text

    def _run_gemini(self, prompt: str, system_prompt: str | None, temperature: float) -> str:
        api_key = get_api_key("gemini")
        if not api_key:
            raise LLMProviderError("gemini key unavailable")
        cfg = self.llm_config.get("gemini", {})
        base_url = cfg.get("base_url", "https://generativelanguage.googleapis.com/v1beta").rstrip("/")
        models = cfg.get("models") or ["gemini-2.5-flash"]
        body = {
            "contents": [{"parts": [{"text": self._full_prompt(prompt, system_prompt)}]}],
            "generationConfig": {"temperature": temperature},
        }

        last_error: Exception | None = None
        for model in models:
            resp = retry_request(
                "POST",
                f"{base_url}/models/{model}:generateContent",
                max_attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                params={"key": api_key},
                json=body,
                timeout=cfg.get("timeout", 60),
            )
            if resp.status_code == 404:
                # Retired model ids 404; try the next one
                last_error = LLMProviderError(f"gemini model {model} not found")
                continue
            if not resp.ok:
                raise LLMProviderError(f"gemini request failed: {resp.status_code} {resp.text}"[:300])
            text = strip_code_fences(_gemini_text(resp.json()))
            if not text:
                raise LLMProviderError("empty gemini response")
            return text

        raise last_error or LLMProviderError("gemini request failed")

    def _run_ollama(self, prompt: str, system_prompt: str | None, temperature: float) -> str:
        from mockly.llm.ollama_client import OllamaClient

        client = OllamaClient(config={"llm": self.llm_config})
        text = strip_code_fences(client.query(prompt, system=system_prompt, temperature=temperature))
        if not text:
            raise LLMProviderError("empty ollama response")
        return text


def _gemini_text(payload: dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def _coerce_field(value: Any, default: Any) -> Any:
    """Keep value when it has the same JSON type as default, else default."""
    if default is None:
        return value
    if isinstance(default, bool):
        return value if isinstance(value, bool) else default
    if isinstance(default, (int, float)):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return default
    return value if isinstance(value, type(default)) else default
