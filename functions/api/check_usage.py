"""
Usage Gate Endpoint - POST /check-usage

Called by the chat client before a message is sent. Resolves the caller's
plan (a signed-in profile, or the anonymous tier for a device) and rejects
the message with 429 once the plan's daily quota is spent. An expired trial
is reverted to freemium on the way through.

Request body:
{
    "message": "How are you?",
    "userId": "optional profile id",
    "deviceId": "optional anonymous device id",
    "messageType": "text | voice"
}
"""

import logging
import time
from typing import Callable, Optional

from shared.config import Settings, get_settings
from shared.devices import get_or_create_device
from shared.errors import APIError, InternalError, NotFoundError, StoreError, ValidationError
from shared.logging_utils import configure_structured_logging, log_api_request, set_request_id
from shared.metrics import emit_error_metric, emit_metric
from shared.profiles import get_profile, revert_expired_trial
from shared.request_utils import get_method, parse_json_body
from shared.response_utils import preflight_response, success_response
from shared.usage import UsageSnapshot, check_quota, trial_expired, usage_for_device, usage_for_profile

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PATH = "/check-usage"
MISSING_FIELDS_MESSAGE = "Message and user/device ID are required"


def _optional_str(body: dict, name: str) -> Optional[str]:
    value = body.get(name)
    return value if isinstance(value, str) and value else None


def resolve_usage(
    user_id: Optional[str],
    device_id: Optional[str],
    settings: Settings,
    profile_lookup: Optional[Callable[[str], Optional[dict]]] = None,
    device_lookup: Optional[Callable[[str], dict]] = None,
    trial_reverter: Optional[Callable[[str], bool]] = None,
) -> UsageSnapshot:
    """
    Find the caller's usage, preferring the signed-in profile.

    A failed profile read falls back to the device; a failed device read
    does not.

    Raises:
        NotFoundError: neither a profile nor a device id resolved
        StoreError: the device record could not be read or created
    """
    profile_lookup = profile_lookup or (lambda uid: get_profile(uid, table_name=settings.user_profiles_table))
    device_lookup = device_lookup or (
        lambda did: get_or_create_device(did, table_name=settings.anonymous_devices_table)
    )
    trial_reverter = trial_reverter or (
        lambda uid: revert_expired_trial(uid, table_name=settings.user_profiles_table)
    )

    if user_id:
        try:
            profile = profile_lookup(user_id)
        except StoreError:
            logger.warning(f"Profile lookup failed for {user_id}, falling back to device")
            profile = None
        if profile is not None:
            if trial_expired(profile):
                trial_reverter(user_id)
            return usage_for_profile(profile, settings.plan_limits)

    if device_id:
        return usage_for_device(device_lookup(device_id), settings.plan_limits)

    logger.error("No user profile or device found")
    raise NotFoundError()


def handle_request(event: dict, settings: Settings, **lookups) -> dict:
    """Apply the quota gate to one message; ``lookups`` override the DynamoDB stores."""
    try:
        body = parse_json_body(event)
        message = _optional_str(body, "message")
        user_id = _optional_str(body, "userId")
        device_id = _optional_str(body, "deviceId")
        if message is None or not (user_id or device_id):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        usage = resolve_usage(user_id, device_id, settings, **lookups)
        check_quota(usage, message, body.get("messageType"))
    except APIError as e:
        if e.status_code == 429:
            emit_metric("UsageLimitExceeded", dimensions={"Plan": usage.plan})
        elif e.status_code >= 500:
            emit_error_metric(type(e).__name__, handler="check_usage")
        return e.to_response()
    except Exception as e:
        logger.error(f"Check usage error: {e}", exc_info=True)
        emit_error_metric("unexpected", handler="check_usage")
        return InternalError().to_response()

    return success_response({"allowed": True, "plan": usage.plan, "usage": usage.to_dict()})


def handler(event, context):
    """Lambda handler for POST /check-usage."""
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
