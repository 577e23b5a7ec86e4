"""
Paystack webhook event parsing.

Parsing only ever happens after the signature over ``raw_body`` has been
verified.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)

INVALID_PAYLOAD_MESSAGE = "Invalid webhook payload"


@dataclass(frozen=True)
class WebhookEvent:
    event_type: str
    data: dict = field(default_factory=dict)
    raw_body: bytes = b""


@dataclass(frozen=True)
class ChargeDetails:
    customer_email: str
    reference: str
    status: Optional[str]
    amount: Any = None  # minor units (kobo)


def parse_webhook_event(raw_body: bytes) -> WebhookEvent:
    """
    Parse a verified webhook body.

    Raises:
        ValidationError: the body is not a JSON object with an event name
    """
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON")
        raise ValidationError(INVALID_PAYLOAD_MESSAGE)

    if not isinstance(payload, dict) or not isinstance(payload.get("event"), str):
        logger.warning("Webhook body has no event name")
        raise ValidationError(INVALID_PAYLOAD_MESSAGE)

    data = payload.get("data")
    return WebhookEvent(
        event_type=payload["event"],
        data=data if isinstance(data, dict) else {},
        raw_body=raw_body,
    )


def extract_charge_details(event: WebhookEvent) -> ChargeDetails:
    """
    Pull the fields a charge event needs out of ``data``.

    Raises:
        ValidationError: the customer email or reference is missing
    """
    customer = event.data.get("customer")
    email = customer.get("email") if isinstance(customer, dict) else None
    reference = event.data.get("reference")

    if not isinstance(email, str) or not email or reference in (None, ""):
        logger.warning(f"{event.event_type} event missing customer email or reference")
        raise ValidationError(INVALID_PAYLOAD_MESSAGE)

    return ChargeDetails(
        customer_email=email,
        reference=str(reference),
        status=event.data.get("status"),
        amount=event.data.get("amount"),
    )
