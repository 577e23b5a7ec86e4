"""
Voice note synthesis pipeline: validate -> synthesize -> store.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from .constants import AUDIO_CONTENT_TYPE, DEFAULT_VOICE_ID, VOICE_NOTES_PREFIX
from .request_utils import require_fields
from .types import ArtifactStore, SpeechSynthesizer, VoiceNoteResponse

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Text and message ID are required"


@dataclass(frozen=True)
class VoiceNoteRequest:
    text: str
    message_id: str
    voice_id: str


@dataclass(frozen=True)
class VoiceNoteArtifact:
    message_id: str
    voice_id: str
    storage_key: str
    file_name: str
    public_url: str

    def to_response(self) -> VoiceNoteResponse:
        return {
            "voiceNoteUrl": self.public_url,
            "fileName": self.file_name,
            "filePath": self.storage_key,
        }


def parse_voice_note_request(payload: dict, default_voice_id: str = DEFAULT_VOICE_ID) -> VoiceNoteRequest:
    """
    Validate a POST /generate-tts body.

    Raises:
        ValidationError: if text or messageId is missing or empty
    """
    require_fields(payload, ("text", "messageId"), MISSING_FIELDS_MESSAGE)

    voice_id = payload.get("voiceId")
    if not isinstance(voice_id, str) or not voice_id.strip():
        voice_id = default_voice_id

    return VoiceNoteRequest(
        text=payload["text"],
        message_id=payload["messageId"],
        voice_id=voice_id,
    )


def build_file_name(message_id: str, timestamp_ms: int) -> str:
    return f"amara_{message_id}_{timestamp_ms}.mp3"


def build_storage_key(message_id: str, timestamp_ms: int, prefix: str = VOICE_NOTES_PREFIX) -> str:
    """Derive the object key for a voice note. Distinct timestamps give distinct keys."""
    return f"{prefix}/{build_file_name(message_id, timestamp_ms)}"


def generate_voice_note(
    request: VoiceNoteRequest,
    synthesizer: SpeechSynthesizer,
    store: ArtifactStore,
    prefix: str = VOICE_NOTES_PREFIX,
    now_ms: Optional[int] = None,
) -> VoiceNoteArtifact:
    """
    Synthesize the text and persist it as a new MP3 object.

    Nothing is written if synthesis fails. Each call writes a new key.

    Raises:
        ProviderError: synthesis failed
        StorageError: upload failed or the key already exists
    """
    audio = synthesizer.synthesize(request.text, request.voice_id)

    timestamp_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    file_name = build_file_name(request.message_id, timestamp_ms)
    storage_key = build_storage_key(request.message_id, timestamp_ms, prefix)

    public_url = store.upload(storage_key, audio, AUDIO_CONTENT_TYPE)
    logger.info(
        f"Stored voice note for message {request.message_id}",
        extra={"storage_key": storage_key, "audio_bytes": len(audio)},
    )

    return VoiceNoteArtifact(
        message_id=request.message_id,
        voice_id=request.voice_id,
        storage_key=storage_key,
        file_name=file_name,
        public_url=public_url,
    )
