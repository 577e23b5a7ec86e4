"""
Response utilities for Lambda handlers.

Provides consistent response formatting for success and error responses.
"""

import json
from decimal import Decimal
from typing import Optional, Any, Dict

# The web client calls these functions directly from the browser
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def get_cors_headers() -> Dict[str, str]:
    """Get the permissive CORS headers attached to every response."""
    return dict(CORS_HEADERS)


def decimal_default(obj: Any) -> Any:
    """JSON serializer for Decimal types from DynamoDB."""
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def json_response(
    status_code: int, body: Any, headers: Optional[dict] = None
) -> dict:
    """
    Create standardized JSON response.

    Args:
        status_code: HTTP status code
        body: Response body
        headers: Optional additional headers

    Returns:
        Lambda response dictionary
    """
    response_headers = {"Content-Type": "application/json"}
    response_headers.update(get_cors_headers())
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(body, default=decimal_default),
    }


def error_response(
    status_code: int,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> dict:
    """
    Create an error response with body ``{"error": message}``.

    Args:
        status_code: HTTP status code
        message: Human-readable error message
        headers: Additional response headers

    Returns:
        Lambda response dict
    """
    return json_response(status_code, {"error": message}, headers=headers)


def success_response(
    data: Any,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> dict:
    """Create a JSON success response."""
    return json_response(status_code, data, headers=headers)


def text_response(
    body: str,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> dict:
    """Create a plain-text response."""
    response_headers = {"Content-Type": "text/plain"}
    response_headers.update(get_cors_headers())
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": body,
    }


def preflight_response() -> dict:
    """Answer a CORS preflight request."""
    return text_response("ok")
