"""
Text-to-Speech Endpoint - POST /generate-tts

Synthesizes a companion message with ElevenLabs and stores it as an MP3
voice note in S3. One provider attempt per request; no object is written
unless synthesis succeeded.

Request body:
{
    "text": "Hello there",
    "messageId": "m1",
    "voiceId": "optional ElevenLabs voice id"
}
"""

import logging
import time
from typing import Optional

from shared.config import Settings, get_settings
from shared.elevenlabs_client import ElevenLabsClient
from shared.errors import APIError, InternalError
from shared.logging_utils import configure_structured_logging, log_api_request, set_request_id
from shared.metrics import emit_error_metric, emit_metric
from shared.request_utils import get_method, parse_json_body
from shared.response_utils import preflight_response, success_response
from shared.storage import S3ArtifactStore
from shared.types import ArtifactStore, SpeechSynthesizer
from shared.voice_notes import generate_voice_note, parse_voice_note_request

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PATH = "/generate-tts"


def handle_request(
    event: dict,
    settings: Settings,
    synthesizer: Optional[SpeechSynthesizer] = None,
    store: Optional[ArtifactStore] = None,
) -> dict:
    """
    Run the synthesis pipeline for one request.

    Collaborators default to the ElevenLabs and S3 implementations built
    from ``settings``; tests inject fakes.
    """
    try:
        request = parse_voice_note_request(parse_json_body(event), settings.default_voice_id)

        if synthesizer is None:
            synthesizer = ElevenLabsClient(settings.require_elevenlabs_api_key())
        if store is None:
            store = S3ArtifactStore(settings.voice_notes_bucket, settings.voice_notes_public_base_url)

        artifact = generate_voice_note(
            request,
            synthesizer=synthesizer,
            store=store,
            prefix=settings.voice_notes_prefix,
        )
    except APIError as e:
        if e.status_code >= 500:
            emit_error_metric(type(e).__name__, handler="generate_tts")
        return e.to_response()
    except Exception as e:
        logger.error(f"Generate TTS error: {e}", exc_info=True)
        emit_error_metric("unexpected", handler="generate_tts")
        return InternalError().to_response()

    emit_metric("VoiceNotesGenerated")
    return success_response(artifact.to_response())


def handler(event, context):
    """Lambda handler for POST /generate-tts."""
    start_time = time.time()
    configure_structured_logging()
    set_request_id(event)

    if get_method(event) == "OPTIONS":
        response = preflight_response()
    else:
        try:
            settings = get_settings()
        except APIError as e:
            response = e.to_response()
        else:
            response = handle_request(event, settings)

    log_api_request(
        logger, get_method(event) or "POST", PATH, response["statusCode"], (time.time() - start_time) * 1000
    )
    return response
