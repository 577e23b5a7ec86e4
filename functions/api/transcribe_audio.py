"""
Transcription Endpoint - POST /transcribe-audio

Transcribes a recording the web client has already uploaded to the voice
notes bucket.

Request body:
{
    "filePath": "amara_voice_notes/recording_abc.webm",
    "userId": "optional",
    "deviceId": "optional"
}
"""

import logging
import os
import time
from typing import Optional

from shared.config import Settings, get_settings
from shared.constants import RECORDING_CONTENT_TYPE
from shared.elevenlabs_client import ElevenLabsClient
from shared.errors import APIError, InternalError
from shared.logging_utils import configure_structured_logging, log_api_request, set_request_id
from shared.metrics import emit_error_metric, emit_metric
from shared.request_utils import get_method, parse_json_body, require_fields
from shared.response_utils import preflight_response, success_response
from shared.storage import S3ArtifactStore
from shared.types import ArtifactStore, SpeechTranscriber

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PATH = "/transcribe-audio"


def handle_request(
    event: dict,
    settings: Settings,
    transcriber: Optional[SpeechTranscriber] = None,
    store: Optional[ArtifactStore] = None,
) -> dict:
    try:
        body = parse_json_body(event)
        require_fields(body, ("filePath",), "File path is required")
        file_path = body["filePath"]
        logger.info(
            "Transcription requested",
            extra={"file_path": file_path, "user_id": body.get("userId"), "device_id": body.get("deviceId")},
        )

        if store is None:
            store = S3ArtifactStore(settings.voice_notes_bucket, settings.voice_notes_public_base_url)
        audio = store.download(file_path)

        if transcriber is None:
            transcriber = ElevenLabsClient(settings.require_elevenlabs_api_key())
        text = transcriber.transcribe(
            audio,
            filename=os.path.basename(file_path) or "audio.webm",
            content_type=RECORDING_CONTENT_TYPE,
        )
    except APIError as e:
        if e.status_code >= 500:
            emit_error_metric(type(e).__name__, handler="transcribe_audio")
        return e.to_response()
    except Exception as e:
        logger.error(f"Transcribe audio error: {e}", exc_info=True)
        emit_error_metric("unexpected", handler="transcribe_audio")
        return InternalError().to_response()

    emit_metric("TranscriptionsCompleted")
    return success_response({"transcription": text})


def handler(event, context):
    """Lambda handler for POST /transcribe-audio."""
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
