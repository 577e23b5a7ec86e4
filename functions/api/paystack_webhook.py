"""
Paystack Webhook Endpoint - POST /paystack-webhook

Applies successful Paystack charges to the customer's entitlement.
The HMAC-SHA512 signature in x-paystack-signature is the only
authentication: it is checked against the raw body before anything is
parsed or any store is touched.

Once a request is authenticated and parses, it is acknowledged with 200
whether or not a profile changed, so Paystack does not keep redelivering
events we have deliberately ignored.
"""

import logging
import time
from typing import Callable, Optional

from shared.config import Settings, get_settings
from shared.constants import CHARGE_STATUS_SUCCESS, CHARGE_SUCCESS_EVENT, PAYSTACK_SIGNATURE_HEADER
from shared.errors import APIError, AuthError, InternalError
from shared.logging_utils import configure_structured_logging, log_api_request, mask_email, set_request_id
from shared.metrics import emit_error_metric, emit_metric, emit_webhook_metric
from shared.profiles import grant_premium
from shared.request_utils import get_header, get_method, get_raw_body
from shared.response_utils import preflight_response, text_response
from shared.signature import verify_signature
from shared.webhook_events import WebhookEvent, extract_charge_details, parse_webhook_event

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PATH = "/paystack-webhook"

# (customer_email, reference) -> whether a profile was updated
EntitlementUpdater = Callable[[str, str], bool]


def authenticate(event: dict, secret: str) -> bytes:
    """
    Verify the request signature and return the raw body.

    Raises:
        AuthError: signature header missing or not matching
    """
    signature = get_header(event, PAYSTACK_SIGNATURE_HEADER)
    if not signature:
        logger.error("No Paystack signature found")
        raise AuthError("Unauthorized: No signature")

    raw_body = get_raw_body(event)
    if not verify_signature(secret, raw_body, signature):
        logger.error("Invalid Paystack signature")
        raise AuthError("Unauthorized: Invalid signature")
    return raw_body


def _handle_charge_success(webhook_event: WebhookEvent, update_entitlement: EntitlementUpdater) -> None:
    status = webhook_event.data.get("status")
    if status != CHARGE_STATUS_SUCCESS:
        # Acknowledged without touching the store; customer fields are not required
        logger.info(f"Ignoring charge {webhook_event.data.get('reference')} with status {status}")
        return

    charge = extract_charge_details(webhook_event)
    logger.info(
        f"Charge success event received: {mask_email(charge.customer_email)}, "
        f"Amount: {charge.amount}, Ref: {charge.reference}, Status: {charge.status}"
    )

    if update_entitlement(charge.customer_email, charge.reference):
        emit_metric("EntitlementsGranted")


def handle_request(
    event: dict,
    settings: Settings,
    update_entitlement: Optional[EntitlementUpdater] = None,
) -> dict:
    """Verify, parse and dispatch one webhook delivery."""
    if update_entitlement is None:
        def update_entitlement(email: str, reference: str) -> bool:
            return grant_premium(email, reference, table_name=settings.user_profiles_table)

    try:
        secret = settings.require_paystack_secret()
        raw_body = authenticate(event, secret)
        webhook_event = parse_webhook_event(raw_body)
        emit_webhook_metric(webhook_event.event_type)

        if webhook_event.event_type == CHARGE_SUCCESS_EVENT:
            _handle_charge_success(webhook_event, update_entitlement)
        else:
            logger.info(f"Unhandled event type: {webhook_event.event_type}")
    except APIError as e:
        if e.status_code >= 500:
            emit_error_metric(type(e).__name__, handler="paystack_webhook")
        return e.to_response()
    except Exception as e:
        logger.error(f"Paystack webhook processing error: {e}", exc_info=True)
        emit_error_metric("unexpected", handler="paystack_webhook")
        return InternalError().to_response()

    return text_response("Webhook received")


def handler(event, context):
    """Lambda handler for POST /paystack-webhook."""
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
