"""Live/fallback status of the configured LLM and voice providers."""

from datetime import datetime, timezone
from typing import Any

from mockly.config import get_api_key, get_config

# Models ElevenLabs no longer serves on the free tier
LEGACY_FREE_TIER_MODELS = {"eleven_monolingual_v1", "eleven_multilingual_v1"}


def resolve_provider_status(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Report which providers are configured and whether callers get live or fallback data."""
    config = config if config is not None else get_config()
    llm_cfg = config.get("llm", {})
    voice_cfg = config.get("voice", {}).get("elevenlabs", {})

    gemini_configured = bool(get_api_key("gemini"))
    openai_configured = bool(get_api_key("openai"))
    primary = "gemini" if llm_cfg.get("primary_provider") == "gemini" else "openai"
    llm_mode = "live" if gemini_configured or openai_configured else "fallback"

    model_id = voice_cfg.get("model_id", "eleven_turbo_v2_5")
    free_tier_ok = model_id not in LEGACY_FREE_TIER_MODELS
    elevenlabs_configured = bool(get_api_key("elevenlabs"))
    voice_mode = "live" if elevenlabs_configured and free_tier_ok else "fallback"

    if not elevenlabs_configured:
        voice_reason = "NO_ELEVENLABS_KEY"
    elif not free_tier_ok:
        voice_reason = "ELEVENLABS_MODEL_FREE_TIER_INCOMPATIBLE"
    else:
        voice_reason = None

    return {
        "checkedAt": datetime.now(timezone.utc).isoformat(),
        "llm": {
            "primary": primary,
            "geminiConfigured": gemini_configured,
            "openAiConfigured": openai_configured,
            "mode": llm_mode,
            "reasonCode": "NO_LLM_API_KEY" if llm_mode == "fallback" else None,
        },
        "voice": {
            "elevenLabsConfigured": elevenlabs_configured,
            "modelId": model_id,
            "modelFreeTierCompatible": free_tier_ok,
            "mode": voice_mode,
            "reasonCode": voice_reason,
            "browserFallbackAvailable": True,
        },
    }
