"""
ElevenLabs API client.

Makes exactly one request per call. Provider error bodies are logged for
debugging and never surfaced to callers.
"""

import logging
import time
from typing import Optional

import httpx

from .constants import (
    DEFAULT_TIMEOUT,
    ELEVENLABS_API,
    RECORDING_CONTENT_TYPE,
    STT_MODEL_ID,
    TTS_MODEL_ID,
    VOICE_SETTINGS,
)
from .errors import ProviderError
from .logging_utils import log_external_call

logger = logging.getLogger(__name__)

# Provider bodies can be large; keep log lines bounded
MAX_LOGGED_ERROR_CHARS = 500


class ElevenLabsClient:
    """Text-to-speech and speech-to-text over the ElevenLabs HTTP API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = ELEVENLABS_API,
        model_id: str = TTS_MODEL_ID,
        transcription_model_id: str = STT_MODEL_ID,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_id = model_id
        self.transcription_model_id = transcription_model_id
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            headers={"xi-api-key": self.api_key},
            transport=self._transport,
        )

    def _post(self, operation: str, url: str, error_message: str, **kwargs) -> httpx.Response:
        start = time.time()
        try:
            with self._client() as client:
                response = client.post(url, **kwargs)
        except httpx.HTTPError as e:
            log_external_call(logger, "elevenlabs", operation, False, (time.time() - start) * 1000, str(e))
            raise ProviderError(error_message) from e

        latency_ms = (time.time() - start) * 1000
        if not response.is_success:
            detail = response.text[:MAX_LOGGED_ERROR_CHARS]
            log_external_call(logger, "elevenlabs", operation, False, latency_ms, f"HTTP {response.status_code}")
            logger.error(
                f"ElevenLabs API error: {detail}",
                extra={"status_code": response.status_code},
            )
            raise ProviderError(error_message)

        log_external_call(logger, "elevenlabs", operation, True, latency_ms)
        return response

    def synthesize(self, text: str, voice_id: str) -> bytes:
        """
        Convert text to MP3 audio.

        Args:
            text: Text to speak
            voice_id: ElevenLabs voice identifier

        Returns:
            Raw audio/mpeg bytes

        Raises:
            ProviderError: on a non-2xx response or transport failure
        """
        response = self._post(
            "text_to_speech",
            f"{self.base_url}/text-to-speech/{voice_id}",
            "Failed to generate audio",
            headers={"Accept": "audio/mpeg"},
            json={
                "text": text,
                "model_id": self.model_id,
                "voice_settings": dict(VOICE_SETTINGS),
            },
        )
        return response.content

    def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.webm",
        content_type: str = RECORDING_CONTENT_TYPE,
    ) -> str:
        """
        Transcribe recorded audio.

        Returns:
            The transcribed text (empty string if the provider found no speech)

        Raises:
            ProviderError: on a non-2xx response, transport failure or unreadable result
        """
        response = self._post(
            "speech_to_text",
            f"{self.base_url}/speech-to-text",
            "Failed to transcribe audio",
            files={"file": (filename, audio, content_type)},
            data={"model_id": self.transcription_model_id},
        )
        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"ElevenLabs returned a non-JSON transcription: {response.text[:MAX_LOGGED_ERROR_CHARS]}")
            raise ProviderError("Failed to transcribe audio") from e
        if not isinstance(result, dict):
            raise ProviderError("Failed to transcribe audio")
        return result.get("text") or ""
