"""
Process-wide configuration.

Settings are resolved once per Lambda execution context and passed into
the handler pipelines explicitly. Credentials come from Secrets Manager
when an ARN is configured, otherwise straight from the environment.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import get_secretsmanager
from .constants import ANONYMOUS_LIMITS, DEFAULT_VOICE_ID, PLAN_LIMITS, VOICE_NOTES_PREFIX
from .errors import ConfigError
from .plan_limits import DEFAULT_PLAN_LIMITS, PlanLimitTable

logger = logging.getLogger(__name__)

_settings: Optional["Settings"] = None


@dataclass(frozen=True)
class Settings:
    elevenlabs_api_key: Optional[str] = None
    paystack_secret_key: Optional[str] = None
    voice_notes_bucket: str = "amara-voice-notes"
    voice_notes_prefix: str = VOICE_NOTES_PREFIX
    voice_notes_public_base_url: Optional[str] = None
    user_profiles_table: str = "amara-user-profiles"
    anonymous_devices_table: str = "amara-anonymous-devices"
    default_voice_id: str = DEFAULT_VOICE_ID
    plan_limits: PlanLimitTable = field(default=DEFAULT_PLAN_LIMITS)

    def require_elevenlabs_api_key(self) -> str:
        if not self.elevenlabs_api_key:
            logger.error("ElevenLabs API key not configured")
            raise ConfigError("ElevenLabs API key not configured")
        return self.elevenlabs_api_key

    def require_paystack_secret(self) -> str:
        if not self.paystack_secret_key:
            logger.error("Paystack secret key not configured")
            raise ConfigError("Server configuration error")
        return self.paystack_secret_key


def _read_secret(arn: str, field_name: str = "key") -> Optional[str]:
    """Read a secret that is either a JSON object with ``field_name`` or a plain string."""
    response = get_secretsmanager().get_secret_value(SecretId=arn)
    secret_value = response.get("SecretString", "")
    try:
        secret_json = json.loads(secret_value)
    except json.JSONDecodeError:
        return secret_value or None
    if isinstance(secret_json, dict):
        return secret_json.get(field_name) or None
    return secret_value or None


def _resolve_credential(arn_var: str, env_var: str) -> tuple[Optional[str], bool]:
    """
    Resolve one credential.

    Returns:
        (value, ok) where ok is False if a configured secret could not be read
    """
    arn = os.environ.get(arn_var)
    if arn:
        try:
            return _read_secret(arn), True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to retrieve secret from {arn_var}: {e}")
            return None, False
    return os.environ.get(env_var) or None, True


def _load_plan_limits() -> PlanLimitTable:
    raw = os.environ.get("PLAN_LIMITS_JSON")
    if not raw:
        return DEFAULT_PLAN_LIMITS
    try:
        overrides = json.loads(raw)
        plans: Mapping = overrides.get("plans", PLAN_LIMITS)
        anonymous: Mapping = overrides.get("anonymous", ANONYMOUS_LIMITS)
        return PlanLimitTable.from_config(plans, anonymous)
    except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error(f"Invalid PLAN_LIMITS_JSON: {e}")
        raise ConfigError() from e


def load_settings() -> tuple[Settings, bool]:
    """Build settings from the environment. The flag is False if any secret lookup failed."""
    elevenlabs_key, elevenlabs_ok = _resolve_credential("ELEVENLABS_SECRET_ARN", "ELEVENLABS_API_KEY")
    paystack_key, paystack_ok = _resolve_credential("PAYSTACK_SECRET_ARN", "PAYSTACK_SECRET_KEY")

    settings = Settings(
        elevenlabs_api_key=elevenlabs_key,
        paystack_secret_key=paystack_key,
        voice_notes_bucket=os.environ.get("VOICE_NOTES_BUCKET") or "amara-voice-notes",
        voice_notes_prefix=os.environ.get("VOICE_NOTES_PREFIX") or VOICE_NOTES_PREFIX,
        voice_notes_public_base_url=os.environ.get("VOICE_NOTES_PUBLIC_BASE_URL") or None,
        user_profiles_table=os.environ.get("USER_PROFILES_TABLE") or "amara-user-profiles",
        anonymous_devices_table=os.environ.get("ANONYMOUS_DEVICES_TABLE") or "amara-anonymous-devices",
        default_voice_id=os.environ.get("DEFAULT_VOICE_ID") or DEFAULT_VOICE_ID,
        plan_limits=_load_plan_limits(),
    )
    return settings, elevenlabs_ok and paystack_ok


def get_settings() -> Settings:
    """Get the cached settings, loading them on first use."""
    global _settings
    if _settings is not None:
        return _settings

    settings, complete = load_settings()
    # A failed secret lookup is not cached so the next invocation retries it
    if complete:
        _settings = settings
    return settings


def reset_settings() -> None:
    """Drop cached settings. Used in tests for clean state."""
    global _settings
    _settings = None
