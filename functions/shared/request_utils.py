"""Shared request utilities for API handlers."""

import base64
import binascii
import json
import logging
from typing import Iterable, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)


def get_method(event: dict) -> str:
    """HTTP method for REST (v1) and HTTP API (v2) payloads."""
    method = event.get("httpMethod")
    if not method:
        method = (event.get("requestContext") or {}).get("http", {}).get("method", "")
    return method.upper()


def get_header(event: dict, name: str) -> Optional[str]:
    """Case-insensitive header lookup (API Gateway may or may not lowercase)."""
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def get_raw_body(event: dict) -> bytes:
    """
    Return the request body exactly as delivered.

    Base64-encoded bodies are decoded; text bodies are UTF-8 encoded
    without any re-serialization, so signatures computed over the wire
    bytes still match.
    """
    body = event.get("body")
    if body is None:
        return b""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Invalid request body")
    if isinstance(body, bytes):
        return body
    return body.encode("utf-8")


def parse_json_body(event: dict, message: str = "Invalid request body") -> dict:
    """Parse the request body as a JSON object or raise ValidationError."""
    raw = get_raw_body(event)
    try:
        payload = json.loads(raw or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Request body is not valid JSON")
        raise ValidationError(message)

    if not isinstance(payload, dict):
        raise ValidationError(message)
    return payload


def require_fields(payload: dict, fields: Iterable[str], message: str) -> None:
    """Raise ValidationError unless every field is a non-empty string."""
    for field in fields:
        value = payload.get(field)
        if not isinstance(value, str) or not value:
            raise ValidationError(message)
