"""ElevenLabs speech synthesis for sanitized text."""

import json
import logging
import time
from typing import Any

import requests

from mockly.config import get_api_key, get_config
from mockly.speech.text_sanitizer import sanitize_text_for_tts

logger = logging.getLogger(__name__)

VOICE_TEXT_REQUIRED = "VOICE_TEXT_REQUIRED"
VOICE_PROVIDER_UNAVAILABLE = "VOICE_PROVIDER_UNAVAILABLE"
VOICE_PROVIDER_RATE_LIMIT = "VOICE_PROVIDER_RATE_LIMIT"
VOICE_PROVIDER_PAYMENT_REQUIRED = "VOICE_PROVIDER_PAYMENT_REQUIRED"
VOICE_PROVIDER_MODEL_UNAVAILABLE = "VOICE_PROVIDER_MODEL_UNAVAILABLE"
VOICE_REQUEST_FAILED = "VOICE_REQUEST_FAILED"


def build_voice_error(code: str, message: str) -> dict[str, Any]:
    return {
        "success": False,
        "provider": "elevenlabs",
        "code": code,
        "message": message,
        "fallbackAvailable": True,
    }


class VoiceSynthesisError(RuntimeError):
    """Speech could not be produced; payload says why and that browser fallback applies."""

    def __init__(self, payload: dict[str, Any], status: int = 502) -> None:
        super().__init__(payload["message"])
        self.payload = payload
        self.code = payload["code"]
        self.status = status


def _preview(text: str) -> str:
    return text[:100] + ("..." if len(text) > 100 else "")


def prepare_speech_text(raw_text: str) -> str:
    """Sanitize text for TTS, logging what sanitization removed."""
    raw_text = (raw_text or "").strip()
    text = sanitize_text_for_tts(raw_text)
    if text != raw_text:
        logger.info(
            "Text sanitized for speech: original=%r sanitized=%r length_change=%d",
            _preview(raw_text),
            _preview(text),
            len(raw_text) - len(text),
        )
    return text


def map_elevenlabs_error(status: int, raw_body: str) -> dict[str, Any]:
    """Translate an ElevenLabs error response into a voice error payload."""
    try:
        parsed = json.loads(raw_body) if raw_body else None
    except json.JSONDecodeError:
        parsed = None
    detail = parsed.get("detail") if isinstance(parsed, dict) else None
    if not isinstance(detail, dict):
        detail = {}
    provider_status = detail.get("status") or ""
    provider_message = detail.get("message") or raw_body or "Voice provider request failed."

    if status == 429 or provider_status == "rate_limit_exceeded":
        return build_voice_error(
            VOICE_PROVIDER_RATE_LIMIT,
            "Voice service is being rate-limited right now. Using browser voice fallback.",
        )
    if status == 402 or provider_status == "payment_required":
        return build_voice_error(
            VOICE_PROVIDER_PAYMENT_REQUIRED,
            "Current ElevenLabs plan cannot use this voice. Using browser voice fallback.",
        )
    if provider_status == "model_deprecated_free_tier":
        return build_voice_error(
            VOICE_PROVIDER_MODEL_UNAVAILABLE,
            "Configured ElevenLabs model is unavailable on free tier. Using browser voice fallback.",
        )
    return build_voice_error(VOICE_REQUEST_FAILED, str(provider_message)[:300])


class ElevenLabsClient:
    """Text-to-speech through the ElevenLabs REST API."""

    def __init__(self, config: dict[str, Any] | None = None, api_key: str | None = None) -> None:
        config = config if config is not None else get_config()
        cfg = config.get("voice", {}).get("elevenlabs", {})
        self.api_key = api_key if api_key is not None else get_api_key("elevenlabs")
        self.base_url = cfg.get("base_url", "https://api.elevenlabs.io").rstrip("/")
        self.model_id = cfg.get("model_id", "eleven_turbo_v2_5")
        self.default_voice_id = cfg.get("default_voice_id", "")
        self.max_attempts = int(cfg.get("max_attempts", 3))
        self.backoff_ms = int(cfg.get("backoff_ms", 200))
        self.timeout = cfg.get("timeout", 30)

    def _synthesize_once(self, text: str, voice_id: str) -> requests.Response:
        return requests.post(
            f"{self.base_url}/v1/text-to-speech/{voice_id}",
            headers={
                "Content-Type": "application/json",
                "Accept": "audio/mpeg",
                "xi-api-key": self.api_key,
            },
            json={"text": text, "model_id": self.model_id},
            timeout=self.timeout,
        )

    def synthesize(self, raw_text: str, voice_id: str | None = None) -> bytes:
        """
        Sanitize text and return MPEG audio bytes.

        Failed responses are retried with linear backoff (backoff_ms per
        attempt). Raises VoiceSynthesisError when there is nothing to say,
        no API key, or every attempt failed.
        """
        if not (raw_text or "").strip():
            raise VoiceSynthesisError(build_voice_error(VOICE_TEXT_REQUIRED, "Field 'text' is required."), status=400)
        if not self.api_key:
            raise VoiceSynthesisError(
                build_voice_error(VOICE_PROVIDER_UNAVAILABLE, "ElevenLabs API key missing. Using browser voice fallback."),
                status=503,
            )

        text = prepare_speech_text(raw_text)
        if not text:
            raise VoiceSynthesisError(
                build_voice_error(VOICE_TEXT_REQUIRED, "Text became empty after sanitization."), status=400
            )

        voice_id = voice_id or self.default_voice_id
        last_status, last_body = 502, "Failed to synthesize speech."
        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = self._synthesize_once(text, voice_id)
            except requests.RequestException as e:
                logger.error("ElevenLabs request failed: %s", e)
                raise VoiceSynthesisError(
                    build_voice_error(VOICE_REQUEST_FAILED, "Failed to synthesize speech with ElevenLabs."),
                    status=500,
                ) from e
            if resp.ok:
                return resp.content
            last_status, last_body = resp.status_code, resp.text
            logger.warning("ElevenLabs attempt %d/%d failed with %d", attempt, self.max_attempts, resp.status_code)
            if attempt < self.max_attempts:
                time.sleep(self.backoff_ms * attempt / 1000)

        raise VoiceSynthesisError(map_elevenlabs_error(last_status, last_body), status=502)
