"""Configuration loader with environment variable overrides."""

import os
from pathlib import Path
from typing import Any

import yaml


_config: dict[str, Any] | None = None


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file with environment variable overrides."""
    global _config
    if _config is not None:
        return _config

    if config_path is None:
        base_dir = Path(__file__).resolve().parent.parent.parent
        config_path = base_dir / "config" / "default.yaml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    _apply_env_overrides(loaded)
    _config = loaded
    return _config


def _apply_env_overrides(config: dict[str, Any]) -> None:
    llm = config.setdefault("llm", {})
    primary = os.getenv("MOCKLY_PRIMARY_PROVIDER") or os.getenv("AI_PRIMARY_PROVIDER")
    if primary:
        llm["primary_provider"] = primary.strip().lower()

    openai_cfg = llm.setdefault("openai", {})
    if os.getenv("OPENAI_MODEL"):
        openai_cfg["model"] = os.getenv("OPENAI_MODEL")

    # Explicit model ids go to the front of the list, in the order the env names them
    gemini_cfg = llm.setdefault("gemini", {})
    models = list(gemini_cfg.get("models") or [])
    for name in ("GEMINI_MODEL", "GEMINI_MODEL_ID"):
        value = (os.getenv(name) or "").strip()
        if value:
            if value in models:
                models.remove(value)
            models.insert(0, value)
    gemini_cfg["models"] = models

    ollama_cfg = llm.setdefault("ollama", {})
    if os.getenv("MOCKLY_OLLAMA_MODEL"):
        ollama_cfg["model"] = os.getenv("MOCKLY_OLLAMA_MODEL")
    if os.getenv("MOCKLY_OLLAMA_BASE_URL"):
        ollama_cfg["base_url"] = os.getenv("MOCKLY_OLLAMA_BASE_URL")

    elevenlabs = config.setdefault("voice", {}).setdefault("elevenlabs", {})
    if os.getenv("ELEVENLABS_MODEL_ID"):
        elevenlabs["model_id"] = os.getenv("ELEVENLABS_MODEL_ID")
    if os.getenv("ELEVENLABS_BASE_URL"):
        elevenlabs["base_url"] = os.getenv("ELEVENLABS_BASE_URL")

    logging_cfg = config.setdefault("logging", {})
    if os.getenv("MOCKLY_LOG_LEVEL"):
        logging_cfg["level"] = os.getenv("MOCKLY_LOG_LEVEL")


def get_config() -> dict[str, Any]:
    """Get loaded configuration. Loads if not already loaded."""
    if _config is None:
        load_config()
    return _config or {}


def reset_config() -> None:
    """Drop the cached configuration so the next access reloads it."""
    global _config
    _config = None


def get_api_key(provider: str) -> str:
    """Return the API key for a provider from the environment, or ""."""
    if provider == "openai":
        return os.getenv("OPENAI_API_KEY", "")
    if provider == "gemini":
        return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""
    if provider == "elevenlabs":
        return os.getenv("ELEVENLABS_API_KEY", "")
    return ""
