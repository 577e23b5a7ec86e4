"""
Shared constants for the Amara backend functions.
"""

# Default usage limits per plan (maxMessages, maxVoiceNotes)
ANONYMOUS_LIMITS = {"maxMessages": 10, "maxVoiceNotes": 1}

PLAN_LIMITS = {
    "freemium": {"maxMessages": 50, "maxVoiceNotes": 5},
    "monthly_trial": {"maxMessages": 100, "maxVoiceNotes": 20},
    "yearly_trial": {"maxMessages": 100, "maxVoiceNotes": 20},
    "monthly_premium": {"maxMessages": 1000, "maxVoiceNotes": 100},
    "yearly_premium": {"maxMessages": 1000, "maxVoiceNotes": 100},
    "premium": {"maxMessages": 1000, "maxVoiceNotes": 100},
}

# External APIs
ELEVENLABS_API = "https://api.elevenlabs.io/v1"

# Voice settings
DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"  # Amara
TTS_MODEL_ID = "eleven_monolingual_v1"
STT_MODEL_ID = "scribe_v1"
VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.5,
    "style": 0.0,
    "use_speaker_boost": True,
}

# Storage
VOICE_NOTES_PREFIX = "amara_voice_notes"
AUDIO_CONTENT_TYPE = "audio/mpeg"
RECORDING_CONTENT_TYPE = "audio/webm"
AUDIO_CACHE_CONTROL = "max-age=3600"

# Paystack
PAYSTACK_SIGNATURE_HEADER = "x-paystack-signature"
CHARGE_SUCCESS_EVENT = "charge.success"
CHARGE_STATUS_SUCCESS = "success"

# Timeouts
DEFAULT_TIMEOUT = 30.0
