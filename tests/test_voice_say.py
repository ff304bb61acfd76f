"""Tests for ElevenLabs synthesis and voice error mapping (HTTP mocked)."""

import json
import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from mockly.speech.voice_say import (
    VOICE_PROVIDER_MODEL_UNAVAILABLE,
    VOICE_PROVIDER_PAYMENT_REQUIRED,
    VOICE_PROVIDER_RATE_LIMIT,
    VOICE_PROVIDER_UNAVAILABLE,
    VOICE_REQUEST_FAILED,
    VOICE_TEXT_REQUIRED,
    ElevenLabsClient,
    VoiceSynthesisError,
    map_elevenlabs_error,
    prepare_speech_text,
)


def _response(status=200, content=b"", text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.content = content
    resp.text = text
    return resp


def test_prepare_speech_text_logs_changes(caplog):
    with caplog.at_level(logging.INFO, logger="mockly.speech.voice_say"):
        text = prepare_speech_text("  **Welcome** to your interview!!  ")
    assert text == "Welcome to your interview!"
    assert "length_change" in caplog.text


def test_prepare_speech_text_silent_when_unchanged(caplog):
    with caplog.at_level(logging.INFO, logger="mockly.speech.voice_say"):
        assert prepare_speech_text("Hello there.") == "Hello there."
    assert caplog.text == ""


def test_map_rate_limit():
    assert map_elevenlabs_error(429, "")["code"] == VOICE_PROVIDER_RATE_LIMIT
    body = json.dumps({"detail": {"status": "rate_limit_exceeded"}})
    assert map_elevenlabs_error(400, body)["code"] == VOICE_PROVIDER_RATE_LIMIT


def test_map_payment_required():
    error = map_elevenlabs_error(402, "")
    assert error["code"] == VOICE_PROVIDER_PAYMENT_REQUIRED
    assert error["success"] is False
    assert error["provider"] == "elevenlabs"
    assert error["fallbackAvailable"] is True


def test_map_model_deprecated():
    body = json.dumps({"detail": {"status": "model_deprecated_free_tier", "message": "gone"}})
    assert map_elevenlabs_error(400, body)["code"] == VOICE_PROVIDER_MODEL_UNAVAILABLE


def test_map_generic_error_uses_provider_message():
    body = json.dumps({"detail": {"status": "other", "message": "voice not found"}})
    error = map_elevenlabs_error(404, body)
    assert error["code"] == VOICE_REQUEST_FAILED
    assert error["message"] == "voice not found"


def test_map_generic_error_truncates_raw_body():
    error = map_elevenlabs_error(500, "x" * 1000)
    assert error["message"] == "x" * 300


def test_map_generic_error_default_message():
    assert map_elevenlabs_error(500, "")["message"] == "Voice provider request failed."


@patch("mockly.speech.voice_say.requests.post")
def test_synthesize_sends_sanitized_text(mock_post, sample_config):
    mock_post.return_value = _response(content=b"mp3-bytes")
    client = ElevenLabsClient(sample_config, api_key="xi-key")

    audio = client.synthesize("Visit https://example.com **now**")

    assert audio == b"mp3-bytes"
    url = mock_post.call_args.args[0]
    kwargs = mock_post.call_args.kwargs
    assert url == "https://elevenlabs.test/v1/text-to-speech/voice-default"
    assert kwargs["json"] == {"text": "Visit link now", "model_id": "eleven_turbo_v2_5"}
    assert kwargs["headers"]["xi-api-key"] == "xi-key"


@patch("mockly.speech.voice_say.time.sleep")
@patch("mockly.speech.voice_say.requests.post")
def test_synthesize_retries_then_succeeds(mock_post, mock_sleep, sample_config):
    mock_post.side_effect = [_response(status=500, text="oops"), _response(content=b"ok")]
    client = ElevenLabsClient(sample_config, api_key="xi-key")

    assert client.synthesize("Hello", voice_id="custom") == b"ok"
    assert mock_post.call_count == 2
    assert mock_post.call_args.args[0].endswith("/v1/text-to-speech/custom")


@patch("mockly.speech.voice_say.time.sleep")
@patch("mockly.speech.voice_say.requests.post")
def test_synthesize_maps_final_error(mock_post, mock_sleep, sample_config):
    mock_post.return_value = _response(status=429, text="")
    client = ElevenLabsClient(sample_config, api_key="xi-key")

    with pytest.raises(VoiceSynthesisError) as exc:
        client.synthesize("Hello")

    assert exc.value.code == VOICE_PROVIDER_RATE_LIMIT
    assert exc.value.status == 502
    assert mock_post.call_count == 3
    assert mock_sleep.call_count == 2


@patch("mockly.speech.voice_say.requests.post")
def test_synthesize_without_key(mock_post, sample_config):
    client = ElevenLabsClient(sample_config, api_key="")
    with pytest.raises(VoiceSynthesisError) as exc:
        client.synthesize("Hello")
    assert exc.value.code == VOICE_PROVIDER_UNAVAILABLE
    assert exc.value.status == 503
    mock_post.assert_not_called()


@patch("mockly.speech.voice_say.requests.post")
def test_synthesize_requires_text(mock_post, sample_config):
    client = ElevenLabsClient(sample_config, api_key="xi-key")
    with pytest.raises(VoiceSynthesisError) as exc:
        client.synthesize("   ")
    assert exc.value.code == VOICE_TEXT_REQUIRED
    assert exc.value.status == 400

    with pytest.raises(VoiceSynthesisError, match="empty after sanitization"):
        client.synthesize("```\nprint('hi')\n```")
    mock_post.assert_not_called()


def test_client_reads_key_from_environment(sample_config, monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "env-key")
    assert ElevenLabsClient(sample_config).api_key == "env-key"


@pytest.mark.parametrize("error", [requests.ConnectionError("down"), requests.Timeout("slow")])
def test_synthesize_wraps_transport_errors(error, sample_config):
    client = ElevenLabsClient(sample_config, api_key="xi-key")
    with patch("mockly.speech.voice_say.requests.post", side_effect=error):
        with pytest.raises(VoiceSynthesisError) as exc:
            client.synthesize("hello")
    assert exc.value.code == VOICE_REQUEST_FAILED
    assert exc.value.status == 500
    assert exc.value.payload["fallbackAvailable"] is True
    assert isinstance(exc.value.__cause__, requests.RequestException)
