"""
Shared Type Definitions for Lambda Handlers.

Response body shapes and the narrow capability interfaces the handlers
depend on.
"""

from typing import TypedDict, Optional, Protocol


class VoiceNoteResponse(TypedDict):
    """Body of a successful POST /generate-tts."""

    voiceNoteUrl: str
    fileName: str
    filePath: str


class PlanLimitsBody(TypedDict):
    """Serialized plan limits."""

    maxMessages: int
    maxVoiceNotes: int


class UsageBody(TypedDict):
    """Usage snapshot returned by POST /check-usage. Limits are null when unlimited."""

    messagesUsed: int
    voiceNotesUsed: int
    maxMessages: Optional[int]
    maxVoiceNotes: Optional[int]


class SpeechSynthesizer(Protocol):
    """Turns text into audio bytes for a voice."""

    def synthesize(self, text: str, voice_id: str) -> bytes:
        ...


class SpeechTranscriber(Protocol):
    """Turns recorded audio into text."""

    def transcribe(self, audio: bytes, filename: str = ..., content_type: str = ...) -> str:
        ...


class ArtifactStore(Protocol):
    """Stores blobs under a key and resolves their public URL."""

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        ...

    def download(self, key: str) -> bytes:
        ...
